"""pytest integration: write feature reports at the end of a test session.

Enable with ``-p feature_summarizer.pytest_plugin`` and choose an output
directory with ``--feature-reports=DIR`` (or the ``feature_report_dir`` ini
option). Containers and tests are classified with the ``feature`` and
``scenario`` markers::

    @pytest.mark.feature
    class TestCheckout:
        def test_pays_with_card(self): ...

Skipped tests are left out of the reports. Source links are relative to the
report directory unless FEATURE_SOURCE_PREFIX is set. Distributed runs
(pytest-xdist) do not produce reports.
"""

from __future__ import annotations

import inspect
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence, Set

import pytest

from .config import ReportConfig
from .models import CONTAINER, FEATURE_TAG, LEAF, SCENARIO_TAG, ClassificationNode
from .reports import FeatureReportGenerator, FileSystemSink

logger = logging.getLogger("feature_summarizer.pytest")

PLUGIN_NAME = "feature-summarizer"


def _dotted_module(path: str) -> str:
    return ".".join(PurePosixPath(path).with_suffix("").parts)


def source_link_prefix(rootpath: Path, report_dir: str) -> str:
    """Relative path from the report directory back to the rootdir, ending in a slash."""
    relative = os.path.relpath(rootpath, rootpath / report_dir)
    return Path(relative).as_posix() + "/"


def node_segment(node: pytest.Collector | pytest.Item) -> str:
    """The ``[kind:value]`` identifier segment for one collection node."""
    if isinstance(node, pytest.Item):
        return f"[function:{node.name}]"
    if isinstance(node, pytest.Class):
        module_path, _, classes = node.nodeid.partition("::")
        return f"[class:{_dotted_module(module_path)}::{classes}]"
    if isinstance(node, pytest.Package):
        return f"[package:{node.nodeid or node.name}]"
    if isinstance(node, pytest.Module):
        return f"[module:{_dotted_module(node.nodeid)}]"
    return f"[dir:{node.nodeid or node.name}]"


def node_display_name(node: pytest.Collector | pytest.Item) -> str:
    """First docstring line, else a readable form of the node name."""
    if isinstance(node, (pytest.Function, pytest.Class, pytest.Module)):
        doc = getattr(node.obj, "__doc__", None)
        if isinstance(doc, str) and doc.strip():
            return inspect.cleandoc(doc).splitlines()[0]
    if isinstance(node, pytest.Item):
        name = node.name[len("test_"):] if node.name.startswith("test_") else node.name
        return name.replace("_", " ")
    return node.name


def node_tags(node: pytest.Collector | pytest.Item) -> frozenset[str]:
    return frozenset(mark.name for mark in getattr(node, "own_markers", []))


class PytestNodeSource:
    """Node source built from the items of a pytest collection."""

    def __init__(self):
        self._roots: List[ClassificationNode] = []
        self._children: Dict[str, List[ClassificationNode]] = {}
        self._known: Set[str] = set()
        self._by_nodeid: Dict[str, str] = {}

    @classmethod
    def from_items(cls, items: Sequence[pytest.Item]) -> "PytestNodeSource":
        source = cls()
        for item in items:
            source.add_item(item)
        return source

    def add_item(self, item: pytest.Item) -> None:
        """Add an item and every collector above it (the session excluded)."""
        parent_id: Optional[str] = None
        for node in item.listchain()[1:]:
            node_id = node_segment(node) if parent_id is None else f"{parent_id}/{node_segment(node)}"
            if node_id not in self._known:
                classified = ClassificationNode(
                    node_id=node_id,
                    display_name=node_display_name(node),
                    node_type=LEAF if isinstance(node, pytest.Item) else CONTAINER,
                    tags=node_tags(node),
                )
                self._known.add(node_id)
                if parent_id is None:
                    self._roots.append(classified)
                else:
                    self._children.setdefault(parent_id, []).append(classified)
            self._by_nodeid[node.nodeid] = node_id
            parent_id = node_id

    def identifier_for(self, nodeid: str) -> Optional[str]:
        return self._by_nodeid.get(nodeid)

    def get_roots(self) -> List[ClassificationNode]:
        return list(self._roots)

    def get_children(self, node_id: str) -> List[ClassificationNode]:
        return list(self._children.get(node_id, ()))


class FeatureReportPlugin:
    """Collects the test tree and skip outcomes, then writes the reports."""

    def __init__(self, report_config: ReportConfig, rootpath: Path):
        self.report_config = report_config
        self.output_dir = rootpath / report_config.report_dir
        self.source: Optional[PytestNodeSource] = None
        self.aborted: Set[str] = set()
        self.written: List[Path] = []

    @pytest.hookimpl(trylast=True)
    def pytest_collection_modifyitems(self, session, config, items):
        self.source = PytestNodeSource.from_items(items)

    def pytest_runtest_logreport(self, report):
        if not report.skipped or hasattr(report, "wasxfail") or self.source is None:
            return
        node_id = self.source.identifier_for(report.nodeid)
        if node_id:
            self.aborted.add(node_id)

    def pytest_sessionfinish(self, session, exitstatus):
        if self.source is None or session.config.option.collectonly:
            return
        generator = FeatureReportGenerator(self.source, self.report_config, self.aborted)
        self.written = generator.write_reports(FileSystemSink(self.output_dir))

    def pytest_terminal_summary(self, terminalreporter):
        if self.written:
            terminalreporter.write_sep("-", f"feature reports: {len(self.written)} written to {self.output_dir}")


def pytest_addoption(parser):
    group = parser.getgroup("feature-reports", "feature report generation")
    group.addoption(
        "--feature-reports",
        action="store",
        dest="feature_report_dir",
        default=None,
        metavar="DIR",
        help="write feature reports to DIR (relative to rootdir)",
    )
    group.addoption(
        "--feature-issue-url",
        action="store",
        dest="feature_issue_url",
        default=None,
        metavar="URL",
        help="base URL prepended to issue keys found in report texts",
    )
    parser.addini("feature_report_dir", "directory for feature reports, relative to rootdir", default="")
    parser.addini("feature_issue_url", "base URL for issue key links in feature reports", default="")


def pytest_configure(config):
    config.addinivalue_line("markers", f"{FEATURE_TAG}: report this test container as a business feature")
    config.addinivalue_line("markers", f"{SCENARIO_TAG}: report this test or container as a single scenario")

    report_dir = config.getoption("feature_report_dir") or config.getini("feature_report_dir")
    if not report_dir or hasattr(config, "workerinput"):
        return
    # the xdist controller never collects, so it has no tree to report on
    if getattr(config.option, "dist", "no") != "no":
        config.issue_config_time_warning(
            pytest.PytestConfigWarning(
                "feature reports are not generated under pytest-xdist; run without -n to write them"
            ),
            stacklevel=2,
        )
        return

    report_config = ReportConfig.from_env(
        report_dir=report_dir,
        issue_base_url=config.getoption("feature_issue_url") or config.getini("feature_issue_url"),
    )
    if not os.getenv(ReportConfig.SOURCE_PREFIX_ENV):
        report_config.source_link_prefix = source_link_prefix(config.rootpath, report_config.report_dir)
    issues = report_config.validate()
    if issues:
        raise pytest.UsageError(f"Invalid feature report configuration: {'; '.join(issues)}")

    config.pluginmanager.register(FeatureReportPlugin(report_config, config.rootpath), PLUGIN_NAME)
    logger.debug(f"Feature reports enabled, writing to {report_dir}")
