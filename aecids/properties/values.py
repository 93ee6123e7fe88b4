"""Attribute-bag vocabulary.

An attribute bag is the plain ``dict`` describing one IFC entity::

    {"id": 12, "type": "IfcPropertySingleValue", "Name": "Width",
     "Description": None, "NominalValue": TypedValue("IfcLengthMeasure", 5.0),
     "Unit": None}

References to other entities are :class:`EntityRef`, typed select values
are :class:`TypedValue` and aggregates are lists.
"""

from __future__ import annotations

from typing import Any, NamedTuple

AttributeBag = dict[str, Any]


class EntityRef(NamedTuple):
    """Reference to another entity of the same model."""

    id: int


class TypedValue(NamedTuple):
    """A value carrying its declared IFC simple type, e.g. ``IfcLabel``."""

    type: str
    value: Any


def normalize_type(name: str | None) -> str | None:
    """Upper-case an IFC type name (``IfcLabel`` -> ``IFCLABEL``)."""
    if name is None:
        return None
    return str(name).upper()


def ref_id(value: Any) -> int | None:
    """Return the referenced id for an :class:`EntityRef` or a bare int."""
    if isinstance(value, EntityRef):
        return value.id
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def ref_ids(values: Any) -> list[int]:
    """Return the referenced ids of an aggregate, skipping non-references."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]
    ids: list[int] = []
    for value in values:
        id_ = ref_id(value)
        if id_ is not None:
            ids.append(id_)
    return ids


def unwrap(value: Any) -> Any:
    """Strip the type tag from a :class:`TypedValue`."""
    if isinstance(value, TypedValue):
        return value.value
    return value


def type_tag(value: Any) -> str | None:
    """Return the normalized declared type of *value*, or None if untyped."""
    if isinstance(value, TypedValue):
        return normalize_type(value.type)
    return None


def is_type(attrs: AttributeBag, *ifc_classes: str) -> bool:
    """True if the bag's ``type`` is one of *ifc_classes* (case-insensitive)."""
    current = normalize_type(attrs.get("type"))
    return current in {normalize_type(c) for c in ifc_classes}
