"""Data models for the feature summarizer.

This module contains the core data structures used throughout the pipeline:
classified nodes supplied by a host, the node source contract, and the
recursive feature descriptor built from them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

FEATURE_TAG = "feature"
SCENARIO_TAG = "scenario"

CONTAINER = "container"
LEAF = "leaf"
NODE_TYPES = (CONTAINER, LEAF)


@dataclass(frozen=True, slots=True)
class ClassificationNode:
    """A host-supplied execution node (container or leaf check).

    Only ``node_id`` takes part in equality and hashing, so nodes can be
    placed in sets regardless of how the host builds them.
    """

    node_id: str
    display_name: str = field(compare=False)
    node_type: str = field(default=LEAF, compare=False)
    tags: FrozenSet[str] = field(default_factory=frozenset, compare=False)

    @property
    def is_container(self) -> bool:
        return self.node_type == CONTAINER

    @property
    def is_leaf(self) -> bool:
        return self.node_type == LEAF

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.node_id,
            "name": self.display_name,
            "type": self.node_type,
            "tags": sorted(self.tags),
        }

    def validate(self) -> List[str]:
        """Validate the node and return any issues."""
        issues = []

        if not self.node_id:
            issues.append("Node ID is required")
        if self.node_type not in NODE_TYPES:
            issues.append(f"Invalid node type: {self.node_type}")

        return issues


class NodeSource(Protocol):
    """Read-only access to an acyclic, finite node hierarchy."""

    def get_roots(self) -> Sequence[ClassificationNode]:
        ...

    def get_children(self, node_id: str) -> Sequence[ClassificationNode]:
        ...


@dataclass(frozen=True, slots=True)
class FeatureDescriptor:
    """Recursive description of one business feature.

    ``origins`` holds every node the feature was built from (several after
    same-name merging). Only the synthetic root used during orchestration has
    no origins.
    """

    origins: Tuple[ClassificationNode, ...]
    scenarios: Tuple[ClassificationNode, ...] = ()
    sub_features: Tuple["FeatureDescriptor", ...] = ()

    @classmethod
    def synthetic_root(cls, sub_features: Iterable["FeatureDescriptor"]) -> "FeatureDescriptor":
        """Wrap top-level features so rewrites can treat them as one tree."""
        return cls(origins=(), scenarios=(), sub_features=tuple(sub_features))

    @property
    def display_name(self) -> str:
        if not self.origins:
            raise ValueError("Synthetic root descriptor has no display name")
        return self.origins[0].display_name

    @property
    def origin_ids(self) -> Tuple[str, ...]:
        return tuple(origin.node_id for origin in self.origins)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "origins": list(self.origin_ids),
            "scenarios": [scenario.node_id for scenario in self.scenarios],
            "sub_features": [sub.to_dict() for sub in self.sub_features],
        }


class InMemoryNodeSource:
    """Node source backed by plain dictionaries, usually loaded from JSON.

    Expected shape::

        {"roots": [{"id": ..., "name": ..., "type": ..., "tags": [...],
                    "children": [...]}],
         "aborted": ["<node id>", ...]}
    """

    def __init__(
        self,
        roots: Sequence[ClassificationNode],
        children: Optional[Dict[str, Sequence[ClassificationNode]]] = None,
        aborted: Iterable[str] = (),
    ):
        self._roots: List[ClassificationNode] = list(roots)
        self._children: Dict[str, List[ClassificationNode]] = {
            node_id: list(nodes) for node_id, nodes in (children or {}).items()
        }
        self.aborted: Set[str] = set(aborted)

    def get_roots(self) -> List[ClassificationNode]:
        return list(self._roots)

    def get_children(self, node_id: str) -> List[ClassificationNode]:
        return list(self._children.get(node_id, ()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryNodeSource":
        """Create from dictionary representation."""
        if not isinstance(data, dict) or not isinstance(data.get("roots"), list):
            raise ValueError("Node plan must contain a 'roots' list")

        seen: Set[str] = set()
        children: Dict[str, List[ClassificationNode]] = {}

        def parse(raw: Dict[str, Any]) -> ClassificationNode:
            if not isinstance(raw, dict) or "id" not in raw:
                raise ValueError(f"Node entry must be an object with an 'id': {raw!r}")
            raw_tags = raw.get("tags", [])
            if not isinstance(raw_tags, list):
                raise ValueError(f"Tags of node {raw['id']!r} must be a list, got {type(raw_tags).__name__}")
            raw_children = raw.get("children", [])
            if not isinstance(raw_children, list):
                raise ValueError(f"Children of node {raw['id']!r} must be a list")
            node = ClassificationNode(
                node_id=str(raw["id"]),
                display_name=str(raw.get("name", raw["id"])),
                node_type=raw.get("type", CONTAINER if raw_children else LEAF),
                tags=frozenset(str(tag) for tag in raw_tags),
            )
            issues = node.validate()
            if issues:
                raise ValueError(f"Invalid node {raw.get('id')!r}: {'; '.join(issues)}")
            if node.node_id in seen:
                raise ValueError(f"Duplicate node id: {node.node_id}")
            seen.add(node.node_id)
            if raw_children:
                children[node.node_id] = [parse(child) for child in raw_children]
            return node

        roots = [parse(raw) for raw in data["roots"]]
        return cls(roots, children, aborted=data.get("aborted", []))

    @classmethod
    def from_file(cls, path: Path | str) -> "InMemoryNodeSource":
        """Load a node plan from a JSON file."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the nested dictionary shape."""

        def dump(node: ClassificationNode) -> Dict[str, Any]:
            entry = node.to_dict()
            kids = self._children.get(node.node_id)
            if kids:
                entry["children"] = [dump(child) for child in kids]
            return entry

        return {
            "roots": [dump(root) for root in self._roots],
            "aborted": sorted(self.aborted),
        }
