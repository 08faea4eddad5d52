"""Report orchestration for the feature summarizer.

This module wires boundary search, descriptor building, the filter and merge
rewrites and the renderer together, and maps rendered features onto report
files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

from .config import ReportConfig
from .descriptors import build_descriptor, filter_aborted, merge_same_named
from .models import ClassificationNode, FeatureDescriptor, NodeSource
from .render import FeatureRenderer
from .search import find_features
from .summarizer_logging import (
    log_error_with_context,
    log_feature_found,
    log_operation,
    log_performance,
    log_report_written,
    log_reports_generated,
)

logger = logging.getLogger("feature_summarizer.reports")

_NON_SLUG = re.compile(r"[^a-z0-9]+")


class ReportWriteError(RuntimeError):
    """A rendered report could not be persisted."""


class ReportSink(Protocol):
    def write(self, relative_path: Path, text: str) -> Path:
        ...


class FileSystemSink:
    """Write reports as UTF-8 files below a base directory."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def write(self, relative_path: Path, text: str) -> Path:
        path = self.base_dir / relative_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write feature report {path}: {e}")
            raise ReportWriteError(f"Could not write feature report {path}: {e}") from e
        return path


@dataclass(frozen=True, slots=True)
class RenderedReport:
    """One rendered top-level feature and the file it belongs in."""

    feature_name: str
    path: Path
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "feature_name": self.feature_name,
            "path": self.path.as_posix(),
            "content": self.content,
        }


def slugify(name: str) -> str:
    return _NON_SLUG.sub("-", name.lower())


def assign_report_paths(reports: Iterable[Tuple[str, str]], extension: str = ".md") -> List[RenderedReport]:
    """Give every ``(name, text)`` pair a file name, numbering slug collisions.

    Reports are grouped by slug in order of first appearance; within a group
    the first keeps the bare slug and later ones get ``_2``, ``_3``, ...
    """
    groups: Dict[str, List[Tuple[str, str]]] = {}
    for name, text in reports:
        groups.setdefault(slugify(name), []).append((name, text))

    assigned = []
    for slug, members in groups.items():
        for index, (name, text) in enumerate(members):
            suffix = f"_{index + 1}" if index > 0 else ""
            assigned.append(RenderedReport(name, Path(f"{slug}{suffix}{extension}"), text))
    return assigned


class FeatureReportGenerator:
    """Turn a node hierarchy into feature reports."""

    def __init__(
        self,
        source: NodeSource,
        config: Optional[ReportConfig] = None,
        aborted: Iterable[str] = (),
    ):
        self.source = source
        self.config = config or ReportConfig()
        self.aborted: Set[str] = set(aborted)
        self.renderer = FeatureRenderer(self.config)

    def record_aborted(self, node_id: str) -> None:
        """Exclude a node (and any feature it originates) from the reports."""
        self.aborted.add(node_id)

    def find_top_level_features(self) -> List[ClassificationNode]:
        features: List[ClassificationNode] = []
        for root in self.source.get_roots():
            features.extend(find_features(self.source, root))
        for feature in features:
            log_feature_found(feature.node_id, feature.display_name)
        return features

    @log_performance("describe_features")
    def describe_features(self) -> List[FeatureDescriptor]:
        """Build, filter and merge the descriptors of all top-level features."""
        descriptors = [build_descriptor(self.source, node) for node in self.find_top_level_features()]
        root = FeatureDescriptor.synthetic_root(descriptors)
        processed = merge_same_named(filter_aborted(root, frozenset(self.aborted)))
        return list(processed.sub_features)

    @log_performance("create_reports")
    def create_reports(self) -> List[RenderedReport]:
        """Render every top-level feature and assign it a report path."""
        with log_operation("create_reports", aborted=len(self.aborted)):
            rendered = [(d.display_name, self.renderer.render(d)) for d in self.describe_features()]
            reports = assign_report_paths(rendered, self.config.report_extension)
        log_reports_generated(len(reports), len(self.aborted))
        return reports

    def write_reports(self, sink: Optional[ReportSink] = None) -> List[Path]:
        """Render and persist all reports; the first failed write aborts the rest."""
        sink = sink or FileSystemSink(self.config.report_dir)
        written: List[Path] = []
        for report in self.create_reports():
            try:
                path = sink.write(report.path, report.content)
            except Exception as e:
                log_error_with_context(e, {
                    "operation": "write_reports",
                    "path": report.path.as_posix(),
                    "written": len(written),
                })
                raise
            log_report_written(str(path), report.feature_name, len(report.content))
            written.append(path)
        logger.info(f"Wrote {len(written)} feature reports")
        return written
