"""IDS facets."""

from aecids.ids.facets.attribute import AttributeFacet
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.facets.classification import ClassificationFacet
from aecids.ids.facets.entity import EntityFacet
from aecids.ids.facets.material import MaterialFacet
from aecids.ids.facets.part_of import PartOfFacet
from aecids.ids.facets.property import PropertyFacet

__all__ = [
    "AttributeFacet",
    "ClassificationFacet",
    "EntityFacet",
    "Facet",
    "FacetUsage",
    "MaterialFacet",
    "PartOfFacet",
    "PropertyFacet",
]
