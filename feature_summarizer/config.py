"""Report configuration for the feature summarizer."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

DEFAULT_REPORT_DIR = "docs/features"
DEFAULT_ISSUE_URL = "http://jira/browse/"
DEFAULT_ISSUE_PATTERN = r"[A-Z]{3,}-\d{3,}"


@dataclass(slots=True)
class ReportConfig:
    """Where reports go and how their links are built."""

    report_dir: str = DEFAULT_REPORT_DIR
    issue_base_url: str = DEFAULT_ISSUE_URL
    issue_key_pattern: str = DEFAULT_ISSUE_PATTERN
    source_link_prefix: str = "../../"
    source_suffix: str = ".py"
    report_extension: str = ".md"

    REPORT_DIR_ENV = "FEATURE_REPORT_DIR"
    ISSUE_URL_ENV = "FEATURE_ISSUE_URL"
    ISSUE_PATTERN_ENV = "FEATURE_ISSUE_PATTERN"
    SOURCE_PREFIX_ENV = "FEATURE_SOURCE_PREFIX"

    @classmethod
    def from_env(cls, **overrides: Optional[str]) -> "ReportConfig":
        """Build a config from environment variables, then apply non-empty overrides."""
        config = cls()
        env_values = {
            "report_dir": os.getenv(cls.REPORT_DIR_ENV),
            "issue_base_url": os.getenv(cls.ISSUE_URL_ENV),
            "issue_key_pattern": os.getenv(cls.ISSUE_PATTERN_ENV),
            "source_link_prefix": os.getenv(cls.SOURCE_PREFIX_ENV),
        }
        changes = {key: value for key, value in env_values.items() if value}
        changes.update({key: value for key, value in overrides.items() if value})
        if changes:
            config = replace(config, **changes)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "report_dir": self.report_dir,
            "issue_base_url": self.issue_base_url,
            "issue_key_pattern": self.issue_key_pattern,
            "source_link_prefix": self.source_link_prefix,
            "source_suffix": self.source_suffix,
            "report_extension": self.report_extension,
        }

    def validate(self) -> List[str]:
        """Validate the configuration and return any issues."""
        issues = []

        if not self.report_dir:
            issues.append("Report directory is required")
        if not self.issue_key_pattern:
            issues.append("Issue key pattern is required")
        else:
            try:
                re.compile(self.issue_key_pattern)
            except re.error as e:
                issues.append(f"Invalid issue key pattern: {e}")
        if not self.report_extension.startswith("."):
            issues.append(f"Report extension must start with '.', got: {self.report_extension!r}")

        return issues
