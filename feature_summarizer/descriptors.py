"""Building and rewriting feature descriptor trees.

Descriptors are immutable: ``filter_aborted`` and ``merge_same_named`` return
new trees and leave their input untouched.
"""

from __future__ import annotations

from typing import AbstractSet, Dict, List

from .models import ClassificationNode, FeatureDescriptor, NodeSource
from .search import find_features, is_feature, is_scenario


def build_descriptor(source: NodeSource, node: ClassificationNode) -> FeatureDescriptor:
    """Expand a feature boundary into its descriptor tree."""
    children = source.get_children(node.node_id)

    # dict keeps child order while deduplicating by node id
    scenarios: Dict[ClassificationNode, None] = {}
    include_tests = is_feature(node)
    for child in children:
        if is_scenario(child) or (include_tests and child.is_leaf):
            scenarios[child] = None

    sub_features = [
        build_descriptor(source, boundary)
        for child in children
        for boundary in find_features(source, child)
    ]

    return FeatureDescriptor(
        origins=(node,),
        scenarios=tuple(scenarios),
        sub_features=tuple(sub_features),
    )


def filter_aborted(descriptor: FeatureDescriptor, aborted: AbstractSet[str]) -> FeatureDescriptor:
    """Drop aborted scenarios and every sub-feature with an aborted origin."""
    scenarios = tuple(s for s in descriptor.scenarios if s.node_id not in aborted)
    sub_features = tuple(
        filter_aborted(sub, aborted)
        for sub in descriptor.sub_features
        if not any(origin_id in aborted for origin_id in sub.origin_ids)
    )
    return FeatureDescriptor(descriptor.origins, scenarios, sub_features)


def merge_same_named(descriptor: FeatureDescriptor) -> FeatureDescriptor:
    """Coalesce sibling sub-features sharing a display name, at every level.

    Scenarios of merged siblings are concatenated without deduplication.
    """
    groups: Dict[str, List[FeatureDescriptor]] = {}
    for sub in descriptor.sub_features:
        groups.setdefault(sub.display_name, []).append(sub)

    merged = []
    for members in groups.values():
        combined = FeatureDescriptor(
            origins=tuple(origin for member in members for origin in member.origins),
            scenarios=tuple(scenario for member in members for scenario in member.scenarios),
            sub_features=tuple(child for member in members for child in member.sub_features),
        )
        merged.append(merge_same_named(combined))

    return FeatureDescriptor(descriptor.origins, descriptor.scenarios, tuple(merged))
