"""Feature boundary search over a node hierarchy."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .models import FEATURE_TAG, SCENARIO_TAG, ClassificationNode, NodeSource

logger = logging.getLogger("feature_summarizer.search")


def is_scenario(node: ClassificationNode) -> bool:
    return node.has_tag(SCENARIO_TAG)


def is_feature(node: ClassificationNode) -> bool:
    """A container explicitly tagged as feature and not as scenario."""
    return node.is_container and node.has_tag(FEATURE_TAG) and not is_scenario(node)


def is_feature_boundary(
    node: ClassificationNode,
    children: Sequence[ClassificationNode],
) -> bool:
    """Tagged feature, or an untagged node holding scenarios directly."""
    if is_feature(node):
        return True
    return not is_scenario(node) and any(is_scenario(child) for child in children)


def find_features(
    source: NodeSource,
    node: ClassificationNode,
    children: Optional[Sequence[ClassificationNode]] = None,
) -> List[ClassificationNode]:
    """Return the topmost feature boundaries in the subtree rooted at ``node``.

    Descent stops at a boundary and never enters a scenario-tagged subtree.
    The node source must be acyclic.
    """
    if children is None:
        children = source.get_children(node.node_id)

    if is_feature_boundary(node, children):
        logger.debug(f"Feature boundary found: {node.node_id}")
        return [node]
    if is_scenario(node):
        return []

    found: List[ClassificationNode] = []
    for child in children:
        found.extend(find_features(source, child))
    return found
