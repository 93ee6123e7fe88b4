"""IDS checking — facet parameters, facets, specifications and reports."""

from aecids.ids.engine import IdsEngine
from aecids.ids.parameters import (
    Bounds,
    BoundsParameter,
    EnumerationParameter,
    FacetParameter,
    LengthBounds,
    LengthParameter,
    PatternParameter,
    SimpleParameter,
)
from aecids.ids.records import CheckRecord, TestResult
from aecids.ids.report import EntityResult, SpecificationReport
from aecids.ids.specification import Specification, complies

__all__ = [
    "Bounds",
    "BoundsParameter",
    "CheckRecord",
    "EntityResult",
    "EnumerationParameter",
    "FacetParameter",
    "IdsEngine",
    "LengthBounds",
    "LengthParameter",
    "PatternParameter",
    "SimpleParameter",
    "Specification",
    "SpecificationReport",
    "TestResult",
    "complies",
]
