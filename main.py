"""MCP server exposing feature report generation tools."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from feature_summarizer import (
    FeatureReportGenerator,
    FileSystemSink,
    InMemoryNodeSource,
    ReportConfig,
)
from feature_summarizer.summarizer_logging import log_error_with_context

mcp = FastMCP("feature-summarizer")

logger = logging.getLogger("feature_summarizer.server")


def _resolve_plan(plan_path: str) -> Path:
    resolved = Path(plan_path).expanduser().resolve()
    if not resolved.is_file():
        raise ValueError(f"Node plan '{plan_path}' does not exist.")
    return resolved


def _config(issue_url: Optional[str] = None, output_dir: Optional[str] = None) -> ReportConfig:
    config = ReportConfig.from_env(issue_base_url=issue_url, report_dir=output_dir)
    issues = config.validate()
    if issues:
        raise ValueError(f"Invalid report configuration: {'; '.join(issues)}")
    return config


def _generator(
    plan_path: str,
    *,
    issue_url: Optional[str] = None,
    output_dir: Optional[str] = None,
    aborted: Optional[List[str]] = None,
) -> FeatureReportGenerator:
    source = InMemoryNodeSource.from_file(_resolve_plan(plan_path))
    generator = FeatureReportGenerator(source, _config(issue_url, output_dir), source.aborted)
    for node_id in aborted or []:
        generator.record_aborted(node_id)
    return generator


def _error(operation: str, error: Exception, **context: Any) -> Dict[str, Any]:
    log_error_with_context(error, {"operation": operation, **context})
    return {
        "error": f"{type(error).__name__}: {error}",
        "message": f"Error: {error}",
    }


@mcp.tool()
def list_feature_reports(plan_path: str) -> Dict[str, Any]:
    """List the top-level features of a JSON node plan and the report file each would be written to."""
    try:
        reports = _generator(plan_path).create_reports()
    except (ValueError, OSError) as e:
        return _error("list_feature_reports", e, plan_path=plan_path)

    return {
        "plan_path": plan_path,
        "features": [
            {"feature_name": report.feature_name, "path": report.path.as_posix()} for report in reports
        ],
        "count": len(reports),
    }


@mcp.tool()
def preview_feature_reports(plan_path: str, issue_url: Optional[str] = None) -> Dict[str, Any]:
    """Render the feature reports of a JSON node plan without writing them."""
    try:
        reports = _generator(plan_path, issue_url=issue_url).create_reports()
    except (ValueError, OSError) as e:
        return _error("preview_feature_reports", e, plan_path=plan_path)

    return {
        "plan_path": plan_path,
        "reports": [report.to_dict() for report in reports],
        "count": len(reports),
    }


@mcp.tool()
def generate_feature_reports(
    plan_path: str,
    output_dir: Optional[str] = None,
    issue_url: Optional[str] = None,
    aborted: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Render the feature reports of a JSON node plan and write them as markdown files.

    Node ids listed in ``aborted`` (in addition to the plan's own ``aborted`` list)
    are left out of the reports. ``output_dir`` defaults to FEATURE_REPORT_DIR or docs/features.
    """
    try:
        generator = _generator(plan_path, issue_url=issue_url, output_dir=output_dir, aborted=aborted)
        target = Path(generator.config.report_dir).expanduser().resolve()
        written = generator.write_reports(FileSystemSink(target))
    except (ValueError, OSError, RuntimeError) as e:
        return _error("generate_feature_reports", e, plan_path=plan_path, output_dir=output_dir)

    logger.info(f"Generated {len(written)} feature reports in {target}")
    return {
        "plan_path": plan_path,
        "output_dir": str(target),
        "written": [str(path) for path in written],
        "aborted": sorted(generator.aborted),
        "message": f"Wrote {len(written)} feature reports to {target}",
    }


@mcp.tool()
def get_report_config() -> Dict[str, Any]:
    """Show the effective report configuration (environment overrides applied)."""
    config = ReportConfig.from_env()
    return {"config": config.to_dict(), "issues": config.validate()}


@mcp.resource("feature-summarizer://config")
def resource_config() -> str:
    return json.dumps(ReportConfig.from_env().to_dict(), indent=2)


if __name__ == "__main__":
    mcp.run(transport="stdio")
