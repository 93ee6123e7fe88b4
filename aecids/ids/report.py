"""SpecificationReport model and Markdown report generation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from aecids.ids.records import TestResult


class EntityResult(BaseModel):
    """Every requirement outcome for one applicable entity."""

    express_id: int
    global_id: str | None = None
    status: Literal["pass", "fail"] = "fail"
    """'pass' when every requirement complies with its cardinality."""

    results: list[TestResult] = Field(default_factory=list)
    """One result per requirement facet, in requirement order."""


class SpecificationReport(BaseModel):
    """Outcome of one specification against one model."""

    specification: str = ""
    model_id: str = ""
    status: Literal["pass", "fail", "not_applicable"] = "not_applicable"
    """Overall status: 'pass', 'fail', or 'not_applicable' (no entity applies)."""

    entities: list[EntityResult] = Field(default_factory=list)

    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    """Timestamp of the check."""

    @property
    def passed(self) -> list[EntityResult]:
        return [e for e in self.entities if e.status == "pass"]

    @property
    def failed(self) -> list[EntityResult]:
        return [e for e in self.entities if e.status == "fail"]

    def to_markdown(self) -> str:
        """Render the report as a Markdown document."""
        lines: list[str] = []

        lines.append(f"# Specification Report — {self.specification or 'Unnamed'}")
        lines.append("")
        lines.append(f"**Model:** `{self.model_id}`")
        lines.append(f"**Status:** {self.status.upper().replace('_', ' ')}")
        lines.append(f"**Checked:** {self.checked_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append("")
        lines.append(
            f"**Entities:** {len(self.passed)} passed, {len(self.failed)} failed"
        )
        lines.append("")

        if self.failed:
            lines.append("## Failures")
            lines.append("")
            lines.append("| Entity | GlobalId | Parameter | Current | Required |")
            lines.append("|--------|----------|-----------|---------|----------|")
            for entity in self.failed:
                for result in entity.results:
                    for check in result.checks:
                        if check.passed:
                            continue
                        lines.append(
                            f"| #{entity.express_id} | {entity.global_id or ''} "
                            f"| {check.parameter} | {_cell(check.current_value)} "
                            f"| {_cell(check.required_value)} |"
                        )
            lines.append("")

        return "\n".join(lines)


def _cell(value: object) -> str:
    """Format a value for a Markdown table cell."""
    if value is None:
        return "—"
    return str(value).replace("|", "\\|")
