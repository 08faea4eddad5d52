"""Unit tests for building, filtering and merging feature descriptors."""

from feature_summarizer.descriptors import build_descriptor, filter_aborted, merge_same_named
from feature_summarizer.models import FEATURE_TAG, SCENARIO_TAG, ClassificationNode, FeatureDescriptor


def names(nodes):
    return [node.display_name for node in nodes]


def describe_root(source):
    return build_descriptor(source, source.get_roots()[0])


def node(uid, name=None):
    return ClassificationNode(node_id=f"[engine:test]/[method:{uid}]", display_name=name or uid)


def feature(uid, name=None, scenarios=(), subs=()):
    return FeatureDescriptor(origins=(node(uid, name),), scenarios=tuple(scenarios), sub_features=tuple(subs))


class TestBuildDescriptor:
    """Test cases for aggregating feature descriptions."""

    def test_all_child_tests_of_feature_are_scenarios(self, plan):
        """A feature container lists every direct test."""
        source = plan.source(plan.feature("p", "parent", children=[plan.test("foo", "Foo"), plan.test("bar", "Bar")]))

        assert names(describe_root(source).scenarios) == ["Foo", "Bar"]

    def test_untagged_container_collects_tagged_scenarios_only(self, plan):
        """Without a feature tag only scenario-tagged children are listed."""
        source = plan.source(plan.container("p", "parent", children=[plan.test("foo", "Foo"), plan.scenario("bar", "Bar")]))

        assert names(describe_root(source).scenarios) == ["Bar"]

    def test_scenario_leaf_of_feature_is_listed_once(self, plan):
        """A direct test that is also tagged scenario is not counted twice."""
        source = plan.source(
            plan.feature("p", "parent", children=[plan.scenario("foo", "Foo"), plan.test("bar", "Bar")])
        )
        scenarios = describe_root(source).scenarios

        assert names(scenarios) == ["Foo", "Bar"]
        assert len(set(scenarios)) == len(scenarios)

    def test_feature_lists_scenario_containers_and_plain_tests(self, plan):
        source = plan.source(
            plan.feature("p", "parent", children=[
                plan.container("flow", "Flow", SCENARIO_TAG, children=[plan.test("step", "Step")]),
                plan.test("bar", "Bar"),
            ])
        )
        descriptor = describe_root(source)

        assert names(descriptor.scenarios) == ["Flow", "Bar"]
        assert descriptor.sub_features == ()

    def test_scenario_containers_are_scenarios(self, plan):
        source = plan.source(
            plan.container("p", "parent", children=[plan.container("foo", "Foo", SCENARIO_TAG, FEATURE_TAG)])
        )

        assert names(describe_root(source).scenarios) == ["Foo"]

    def test_scenario_containers_are_not_sub_features(self, plan):
        """A child tagged scenario and feature is a scenario only."""
        source = plan.source(
            plan.feature("p", "parent", children=[plan.container("foo", "Foo", SCENARIO_TAG, FEATURE_TAG)])
        )
        descriptor = describe_root(source)

        assert descriptor.sub_features == ()
        assert names(descriptor.scenarios) == ["Foo"]

    def test_child_features_become_sub_features(self, plan):
        source = plan.source(plan.feature("p", "parent", children=[plan.feature("foo", "Foo")]))

        assert [sub.display_name for sub in describe_root(source).sub_features] == ["Foo"]

    def test_sub_features_found_through_untagged_containers(self, plan):
        """Sub-features are discovered below plain grouping containers, in order."""
        source = plan.source(
            plan.feature("p", "parent", children=[
                plan.container("group", "group", children=[plan.feature("a", "A"), plan.feature("b", "B")]),
                plan.feature("c", "C"),
            ])
        )

        assert [sub.display_name for sub in describe_root(source).sub_features] == ["A", "B", "C"]

    def test_boundary_with_scenarios_has_no_nested_features(self, plan):
        """An untagged boundary whose children are only scenarios has no sub-features."""
        source = plan.source(plan.container("p", "parent", children=[plan.scenario("foo", "Foo")]))

        assert describe_root(source).sub_features == ()

    def test_origins_hold_the_boundary(self, plan):
        source = plan.source(plan.feature("p", "parent"))
        descriptor = describe_root(source)

        assert descriptor.origins == (source.get_roots()[0],)
        assert descriptor.display_name == "parent"


class TestFilterAborted:
    """Test cases for dropping aborted parts of a descriptor."""

    def test_removes_aborted_scenarios(self):
        descriptor = feature("f", scenarios=[node("ok"), node("gone")])

        filtered = filter_aborted(descriptor, {node("gone").node_id})

        assert names(filtered.scenarios) == ["ok"]

    def test_removes_aborted_sub_feature_entirely(self):
        descriptor = feature("f", subs=[feature("keep"), feature("drop", scenarios=[node("s")])])

        filtered = filter_aborted(descriptor, {node("drop").node_id})

        assert [sub.display_name for sub in filtered.sub_features] == ["keep"]

    def test_removes_at_every_depth(self):
        descriptor = feature("f", subs=[feature("mid", subs=[feature("deep"), feature("deeper")])])

        filtered = filter_aborted(descriptor, {node("deep").node_id})

        assert [sub.display_name for sub in filtered.sub_features[0].sub_features] == ["deeper"]

    def test_any_aborted_origin_drops_a_merged_sub_feature(self):
        merged = FeatureDescriptor(origins=(node("a", "Same"), node("b", "Same")))
        descriptor = feature("f", subs=[merged])

        filtered = filter_aborted(descriptor, {node("b").node_id})

        assert filtered.sub_features == ()

    def test_does_not_mutate_input(self):
        descriptor = feature("f", scenarios=[node("gone")])

        filter_aborted(descriptor, {node("gone").node_id})

        assert names(descriptor.scenarios) == ["gone"]

    def test_keeps_origins(self):
        descriptor = feature("f")

        assert filter_aborted(descriptor, {node("f").node_id}).origins == descriptor.origins


class TestMergeSameNamed:
    """Test cases for merging same-named sibling features."""

    def test_merges_siblings_with_identical_names(self):
        root = FeatureDescriptor.synthetic_root([
            feature("a", "Same", scenarios=[node("s1")]),
            feature("b", "Same", scenarios=[node("s2")]),
        ])

        merged = merge_same_named(root)

        assert len(merged.sub_features) == 1
        only = merged.sub_features[0]
        assert names(only.scenarios) == ["s1", "s2"]
        assert only.origin_ids == (node("a").node_id, node("b").node_id)

    def test_unique_names_are_unchanged(self):
        root = FeatureDescriptor.synthetic_root([
            feature("a", "A", scenarios=[node("s1")], subs=[feature("x", "X")]),
            feature("b", "B"),
        ])

        assert merge_same_named(root) == root

    def test_group_order_follows_first_occurrence(self):
        root = FeatureDescriptor.synthetic_root([feature("a", "A"), feature("b", "B"), feature("c", "A")])

        merged = merge_same_named(root)

        assert [sub.display_name for sub in merged.sub_features] == ["A", "B"]

    def test_merges_children_of_merged_features(self):
        root = FeatureDescriptor.synthetic_root([
            feature("a", "Same", subs=[feature("a1", "Child", scenarios=[node("s1")])]),
            feature("b", "Same", subs=[feature("b1", "Child", scenarios=[node("s2")])]),
        ])

        child = merge_same_named(root).sub_features[0].sub_features

        assert len(child) == 1
        assert names(child[0].scenarios) == ["s1", "s2"]

    def test_shared_scenarios_are_not_deduplicated(self):
        shared = node("shared")
        root = FeatureDescriptor.synthetic_root([
            feature("a", "Same", scenarios=[shared]),
            feature("b", "Same", scenarios=[shared]),
        ])

        assert names(merge_same_named(root).sub_features[0].scenarios) == ["shared", "shared"]
