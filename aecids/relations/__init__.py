"""Relations index — bidirectional IFC relation lookup per model."""

from aecids.relations.attributes import (
    INVERSE_ATTRIBUTES,
    RELATION_ROLES,
    InverseAttribute,
)
from aecids.relations.indexer import RelationsIndexed, RelationsIndexer
from aecids.relations.serialization import RelationsMap

__all__ = [
    "INVERSE_ATTRIBUTES",
    "RELATION_ROLES",
    "InverseAttribute",
    "RelationsIndexed",
    "RelationsIndexer",
    "RelationsMap",
]
