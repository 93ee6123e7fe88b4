"""Inverse attributes and the relation-kind table used by the indexer.

Both tables are fixed for the lifetime of the process.  The position of a
role in :class:`InverseAttribute` is its slot index in a relations map, so
members must never be reordered.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import NamedTuple


class InverseAttribute(str, Enum):
    """IFC inverse attributes tracked by the relations index, in slot order."""

    IS_DECOMPOSED_BY = "IsDecomposedBy"
    DECOMPOSES = "Decomposes"
    ASSOCIATED_TO = "AssociatedTo"
    HAS_ASSOCIATIONS = "HasAssociations"
    CLASSIFICATION_FOR_OBJECTS = "ClassificationForObjects"
    IS_GROUPED_BY = "IsGroupedBy"
    HAS_ASSIGNMENTS = "HasAssignments"
    IS_DEFINED_BY = "IsDefinedBy"
    DEFINES_OCURRENCE = "DefinesOcurrence"
    IS_TYPED_BY = "IsTypedBy"
    TYPES = "Types"
    DEFINES = "Defines"
    CONTAINED_IN_STRUCTURE = "ContainedInStructure"
    CONTAINS_ELEMENTS = "ContainsElements"

    @property
    def slot(self) -> int:
        """Stable slot index of this role."""
        return _INDEX[self]


INVERSE_ATTRIBUTES: tuple[InverseAttribute, ...] = tuple(InverseAttribute)

_INDEX = {attribute: i for i, attribute in enumerate(INVERSE_ATTRIBUTES)}


class RelationRoles(NamedTuple):
    """Roles recorded on each side of one relation kind."""

    for_relating: InverseAttribute
    for_related: InverseAttribute


RELATION_ROLES: MappingProxyType[str, RelationRoles] = MappingProxyType({
    "IfcRelAggregates": RelationRoles(
        InverseAttribute.IS_DECOMPOSED_BY, InverseAttribute.DECOMPOSES
    ),
    "IfcRelAssociatesMaterial": RelationRoles(
        InverseAttribute.ASSOCIATED_TO, InverseAttribute.HAS_ASSOCIATIONS
    ),
    "IfcRelAssociatesClassification": RelationRoles(
        InverseAttribute.CLASSIFICATION_FOR_OBJECTS, InverseAttribute.HAS_ASSOCIATIONS
    ),
    "IfcRelAssignsToGroup": RelationRoles(
        InverseAttribute.IS_GROUPED_BY, InverseAttribute.HAS_ASSIGNMENTS
    ),
    "IfcRelDefinesByProperties": RelationRoles(
        InverseAttribute.DEFINES_OCURRENCE, InverseAttribute.IS_DEFINED_BY
    ),
    "IfcRelDefinesByType": RelationRoles(
        InverseAttribute.TYPES, InverseAttribute.IS_TYPED_BY
    ),
    "IfcRelDefinesByTemplate": RelationRoles(
        InverseAttribute.DEFINES, InverseAttribute.IS_DEFINED_BY
    ),
    "IfcRelContainedInSpatialStructure": RelationRoles(
        InverseAttribute.CONTAINS_ELEMENTS, InverseAttribute.CONTAINED_IN_STRUCTURE
    ),
})

# Relation classes in indexing order
INDEXED_RELATIONS: tuple[str, ...] = tuple(RELATION_ROLES)


def role_index(role: InverseAttribute | str) -> int:
    """Return the slot index of *role*, or -1 if it is not a tracked role."""
    try:
        return InverseAttribute(role).slot
    except ValueError:
        return -1
