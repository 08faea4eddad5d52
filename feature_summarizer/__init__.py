"""Feature Summarizer - business feature reports from classified test trees."""

from .config import ReportConfig
from .descriptors import build_descriptor, filter_aborted, merge_same_named
from .models import (
    FEATURE_TAG,
    SCENARIO_TAG,
    ClassificationNode,
    FeatureDescriptor,
    InMemoryNodeSource,
    NodeSource,
)
from .render import FeatureRenderer, MalformedIdentifierError
from .reports import FeatureReportGenerator, FileSystemSink, RenderedReport, ReportWriteError
from .search import find_features, is_feature, is_feature_boundary

__all__ = [
    "FEATURE_TAG",
    "SCENARIO_TAG",
    "ClassificationNode",
    "FeatureDescriptor",
    "FeatureRenderer",
    "FeatureReportGenerator",
    "FileSystemSink",
    "InMemoryNodeSource",
    "MalformedIdentifierError",
    "NodeSource",
    "RenderedReport",
    "ReportConfig",
    "ReportWriteError",
    "build_descriptor",
    "filter_aborted",
    "find_features",
    "is_feature",
    "is_feature_boundary",
    "merge_same_named",
]
