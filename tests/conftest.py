"""Shared fixtures for feature summarizer tests."""

import logging

import pytest

from feature_summarizer.models import FEATURE_TAG, SCENARIO_TAG, InMemoryNodeSource
from feature_summarizer.summarizer_logging import observability_hooks, performance_monitor


class PlanBuilder:
    """Build node plans the way a host would report them."""

    @staticmethod
    def node_id(uid):
        return f"[engine:test]/[method:{uid}]"

    def container(self, uid, name, *tags, children=()):
        return {
            "id": self.node_id(uid),
            "name": name,
            "type": "container",
            "tags": list(tags),
            "children": list(children),
        }

    def test(self, uid, name, *tags):
        return {"id": self.node_id(uid), "name": name, "type": "leaf", "tags": list(tags)}

    def feature(self, uid, name, children=()):
        return self.container(uid, name, FEATURE_TAG, children=children)

    def scenario(self, uid, name):
        return self.test(uid, name, SCENARIO_TAG)

    def source(self, *roots, aborted=()):
        return InMemoryNodeSource.from_dict({"roots": list(roots), "aborted": list(aborted)})


@pytest.fixture
def plan():
    return PlanBuilder()


@pytest.fixture(autouse=True)
def clean_observability():
    """Reset global hooks and metrics between tests."""
    yield
    observability_hooks.hooks.clear()
    performance_monitor.reset()
    package_logger = logging.getLogger("feature_summarizer")
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
