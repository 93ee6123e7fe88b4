"""Facet parameters and the value matcher shared by every facet.

A facet parameter constrains one scalar: a property-set name, an
attribute value, a class name...  Five kinds exist, discriminated by
``type``::

    SimpleParameter(parameter="Pset_WallCommon")
    EnumerationParameter(parameter=["A", "B"])
    PatternParameter(parameter="Pset_.*")
    BoundsParameter(parameter=Bounds(min=0, max=10, max_inclusive=False))
    LengthParameter(parameter=LengthBounds(min=3))

Patterns follow XSD semantics: they must match the whole value
(``re.fullmatch``) and are case-sensitive unless the pattern says
otherwise (e.g. ``(?i)``).
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from aecids.ids.records import CheckRecord

logger = logging.getLogger(__name__)

Scalar = Union[bool, int, float, str]


class _Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)


class SimpleParameter(_Parameter):
    """Exact value."""

    type: Literal["simple"] = "simple"
    parameter: Scalar


class EnumerationParameter(_Parameter):
    """At least one of the options must equal the value."""

    type: Literal["enumeration"] = "enumeration"
    parameter: list[Scalar]


class PatternParameter(_Parameter):
    """Regular expression matched against the whole value."""

    type: Literal["pattern"] = "pattern"
    parameter: str


class Bounds(_Parameter):
    min: float | None = None
    min_inclusive: bool = True
    max: float | None = None
    max_inclusive: bool = True


class BoundsParameter(_Parameter):
    """Numeric range."""

    type: Literal["bounds"] = "bounds"
    parameter: Bounds


class LengthBounds(_Parameter):
    length: int | None = None
    min: int | None = None
    max: int | None = None


class LengthParameter(_Parameter):
    """Constraint on the length of the value's text."""

    type: Literal["length"] = "length"
    parameter: LengthBounds


FacetParameter = Annotated[
    Union[
        SimpleParameter,
        EnumerationParameter,
        PatternParameter,
        BoundsParameter,
        LengthParameter,
    ],
    Field(discriminator="type"),
]


def _equals(value: Any, expected: Any) -> bool:
    # True == 1 in Python; IDS keeps booleans and numbers apart
    if isinstance(value, bool) != isinstance(expected, bool):
        return False
    return value == expected


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _within(value: Any, bounds: Bounds) -> bool:
    if not _is_number(value):
        return False
    if bounds.min is not None:
        if bounds.min_inclusive and value < bounds.min:
            return False
        if not bounds.min_inclusive and value <= bounds.min:
            return False
    if bounds.max is not None:
        if bounds.max_inclusive and value > bounds.max:
            return False
        if not bounds.max_inclusive and value >= bounds.max:
            return False
    return True


def _length_ok(value: Any, bounds: LengthBounds) -> bool:
    size = len(str(value))
    if bounds.length is not None and size != bounds.length:
        return False
    if bounds.min is not None and size < bounds.min:
        return False
    if bounds.max is not None and size > bounds.max:
        return False
    return True


def matches(value: Any, parameter: FacetParameter | None) -> bool:
    """Return True if *value* satisfies *parameter*.

    A missing parameter places no constraint.  A None value never
    satisfies a concrete parameter.
    """
    if parameter is None:
        return True
    if value is None:
        return False

    if parameter.type == "simple":
        return _equals(value, parameter.parameter)

    if parameter.type == "enumeration":
        return any(_equals(value, option) for option in parameter.parameter)

    if parameter.type == "pattern":
        try:
            return re.fullmatch(parameter.parameter, str(value)) is not None
        except re.error:
            logger.warning("Invalid pattern %r", parameter.parameter, exc_info=True)
            return False

    if parameter.type == "bounds":
        return _within(value, parameter.parameter)

    if parameter.type == "length":
        return _length_ok(value, parameter.parameter)

    return False


def evaluate(
    value: Any,
    parameter: FacetParameter | None,
    label: str,
    checks: list[CheckRecord] | None = None,
) -> bool:
    """Like :func:`matches`, also appending a :class:`CheckRecord` to *checks*.

    Nothing is recorded when *parameter* is None.
    """
    result = matches(value, parameter)
    if parameter is not None and checks is not None:
        checks.append(
            CheckRecord(
                parameter=label,
                current_value=value,
                required_value=parameter.parameter,
                passed=result,
            )
        )
    return result


def required_value(parameter: FacetParameter | None) -> Any:
    """The value shown as ``required_value`` for *parameter*."""
    return None if parameter is None else parameter.parameter
