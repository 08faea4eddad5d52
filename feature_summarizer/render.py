"""Markdown rendering of feature descriptors.

A descriptor is folded bottom-up: sub-features are rendered first, their
headings are pushed one level down, and the combined text is post-processed
to turn bare issue keys into links.
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern

from .config import ReportConfig
from .models import ClassificationNode, FeatureDescriptor

LOCATOR_KINDS = ("module", "class")

_SEGMENT = re.compile(r"^\[(?P<kind>[\w-]+):(?P<value>.*)\]$", re.DOTALL)
_LONE_HASH = re.compile(r"#(?!#)")
_MARKDOWN_LINK = r"\[[^\]]*\]\([^)]*\)"


class MalformedIdentifierError(ValueError):
    """A node identifier does not end in a ``[kind:value]`` segment."""


def beautify_name(display_name: str) -> str:
    """Turn ``shouldDoFooBar()`` into ``should do foo bar``; other names pass through."""
    if not display_name.endswith("()"):
        return display_name

    chars = []
    for c in display_name:
        if "A" <= c <= "Z":
            chars.append(" " + c.lower())
        elif c.isalnum():
            chars.append(c)
    return "".join(chars)


def escape_control_chars(text: str) -> str:
    return text.replace("\n", "\\n").replace("\t", "\\t")


def demote_headings(report: str) -> str:
    """Double every ``#`` not already followed by another ``#``."""
    return _LONE_HASH.sub("##", report)


def _last_segment(node_id: str) -> str:
    _, sep, tail = node_id.rpartition("/[")
    return "[" + tail if sep else node_id


def source_reference(node_id: str, config: ReportConfig) -> str:
    """Human-readable source reference for a node identifier.

    Module and class locators become links to the source file, any other
    segment is shown as ``kind:value``.
    """
    segment = _last_segment(node_id)
    match = _SEGMENT.match(segment)
    if not match:
        raise MalformedIdentifierError(f"Unexpected node identifier: {node_id!r}")

    kind, value = match.group("kind"), match.group("value")
    if kind not in LOCATOR_KINDS:
        return f"{kind}:{value}"

    module, _, members = value.partition("::")
    if not module:
        raise MalformedIdentifierError(f"Locator without module path: {node_id!r}")
    short_name = members.rsplit("::", 1)[-1] if members else module.rsplit(".", 1)[-1]
    path = module.replace(".", "/")
    return f"[{short_name}]({config.source_link_prefix}{path}{config.source_suffix})"


def issue_link_pattern(config: ReportConfig) -> Pattern[str]:
    # existing markdown links are matched first so their keys are left alone
    return re.compile(f"(?P<link>{_MARKDOWN_LINK})|(?P<key>{config.issue_key_pattern})(?![\\d\\]])")


def link_issue_keys(text: str, config: ReportConfig, pattern: Optional[Pattern[str]] = None) -> str:
    """Replace bare issue keys with links to the configured issue tracker."""
    pattern = pattern or issue_link_pattern(config)

    def replace(match: re.Match) -> str:
        if match.group("link"):
            return match.group("link")
        key = match.group("key")
        return f"[{key}]({config.issue_base_url}{key})"

    return pattern.sub(replace, text)


class FeatureRenderer:
    """Render descriptor trees into Markdown documents."""

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()
        self._issue_pattern = issue_link_pattern(self.config)

    def header(self, descriptor: FeatureDescriptor) -> str:
        sources = ", ".join(source_reference(origin.node_id, self.config) for origin in descriptor.origins)
        return f"# {descriptor.display_name}\n<small><small>{sources}</small></small>"

    def scenario_lines(self, scenarios: tuple[ClassificationNode, ...]) -> List[str]:
        return sorted(escape_control_chars(beautify_name(s.display_name)) for s in scenarios)

    def render(self, descriptor: FeatureDescriptor) -> str:
        """Render one feature and all of its sub-features."""
        sub_reports = sorted(demote_headings(self.render(sub)) for sub in descriptor.sub_features)
        lines = self.scenario_lines(descriptor.scenarios)

        sections = [self.header(descriptor)]
        if lines:
            sections.append("- " + "\n- ".join(lines))
        if sub_reports:
            sections.append("\n\n".join(sub_reports))

        return link_issue_keys("\n\n".join(sections), self.config, self._issue_pattern)
