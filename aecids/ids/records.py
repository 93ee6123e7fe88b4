"""Evidence produced by facet evaluation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Cardinality = Literal["required", "optional", "prohibited"]


class CheckRecord(BaseModel):
    """One evaluated constraint against one candidate value."""

    model_config = ConfigDict(frozen=True)

    parameter: str
    """Label of the constraint: 'PropertySet', 'BaseName', 'Value', 'DataType'..."""

    current_value: Any = None
    """Value observed on the entity (None when nothing was found)."""

    required_value: Any = None
    """The facet parameter the value was checked against."""

    passed: bool = False


class TestResult(BaseModel):
    """Outcome of one facet for one entity."""

    __test__ = False  # not a pytest test class

    express_id: int
    global_id: str | None = None
    passed: bool = False
    """AND of every check in :attr:`checks`."""

    cardinality: Cardinality = "required"
    checks: list[CheckRecord] = Field(default_factory=list)

    def conclude(self) -> TestResult:
        """Set :attr:`passed` from the accumulated checks and return self."""
        self.passed = all(check.passed for check in self.checks)
        return self
