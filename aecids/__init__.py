"""aecids — IFC relation indexing and IDS specification checking."""

__version__ = "1.0.0"

from aecids.config import configure_logging, load_config
from aecids.events import Event
from aecids.ids.engine import IdsEngine
from aecids.ids.facets import (
    AttributeFacet,
    ClassificationFacet,
    EntityFacet,
    MaterialFacet,
    PartOfFacet,
    PropertyFacet,
)
from aecids.ids.report import SpecificationReport
from aecids.ids.specification import Specification
from aecids.properties.ifc import IfcPropertySource
from aecids.properties.model import Model, ModelPropertiesError, ModelRegistry
from aecids.properties.source import InMemoryPropertySource, PropertySource
from aecids.relations.attributes import InverseAttribute
from aecids.relations.indexer import RelationsIndexer

__all__ = [
    "__version__",
    # Facade
    "IdsEngine",
    # Models and accessors
    "IfcPropertySource",
    "InMemoryPropertySource",
    "Model",
    "ModelPropertiesError",
    "ModelRegistry",
    "PropertySource",
    # Relations
    "InverseAttribute",
    "RelationsIndexer",
    # Facets and specifications
    "AttributeFacet",
    "ClassificationFacet",
    "EntityFacet",
    "MaterialFacet",
    "PartOfFacet",
    "PropertyFacet",
    "Specification",
    "SpecificationReport",
    # Infrastructure
    "Event",
    "configure_logging",
    "load_config",
]
