"""IDS XML fragments for facet parameters."""

from __future__ import annotations

from typing import Any
from xml.sax.saxutils import escape, quoteattr

from aecids.ids.parameters import FacetParameter


def format_value(value: Any) -> str:
    """Render a scalar the way XSD expects it (``true``/``false`` for booleans)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def xml_attributes(attributes: dict[str, Any]) -> str:
    """Render ``name="value"`` pairs, skipping None and empty values."""
    parts = [
        f"{name}={quoteattr(format_value(value))}"
        for name, value in attributes.items()
        if value not in (None, "")
    ]
    return " ".join(parts)


def _restriction(base: str, facets: list[tuple[str, Any]]) -> str:
    inner = "".join(
        f"<xs:{name} value={quoteattr(format_value(value))} />"
        for name, value in facets
    )
    return f'<xs:restriction base="{base}">{inner}</xs:restriction>'


def get_parameter_xml(name: str, parameter: FacetParameter | None) -> str:
    """Return ``<ids:{name}>...</ids:{name}>`` for *parameter*, or "" if absent."""
    if parameter is None:
        return ""

    if parameter.type == "simple":
        inner = f"<ids:simpleValue>{escape(format_value(parameter.parameter))}</ids:simpleValue>"
    elif parameter.type == "enumeration":
        inner = _restriction(
            "xs:string", [("enumeration", option) for option in parameter.parameter]
        )
    elif parameter.type == "pattern":
        inner = _restriction("xs:string", [("pattern", parameter.parameter)])
    elif parameter.type == "bounds":
        bounds = parameter.parameter
        facets: list[tuple[str, Any]] = []
        if bounds.min is not None:
            facets.append(
                ("minInclusive" if bounds.min_inclusive else "minExclusive", bounds.min)
            )
        if bounds.max is not None:
            facets.append(
                ("maxInclusive" if bounds.max_inclusive else "maxExclusive", bounds.max)
            )
        inner = _restriction("xs:double", facets)
    else:
        lengths = parameter.parameter
        facets = [
            (tag, value)
            for tag, value in (
                ("length", lengths.length),
                ("minLength", lengths.min),
                ("maxLength", lengths.max),
            )
            if value is not None
        ]
        inner = _restriction("xs:string", facets)

    return f"<ids:{name}>{inner}</ids:{name}>"
