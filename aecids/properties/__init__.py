"""Attribute access — models, accessors and the attribute-bag vocabulary."""

from aecids.properties.model import Model, ModelPropertiesError, ModelRegistry
from aecids.properties.source import InMemoryPropertySource, PropertySource
from aecids.properties.values import AttributeBag, EntityRef, TypedValue

__all__ = [
    "AttributeBag",
    "EntityRef",
    "InMemoryPropertySource",
    "Model",
    "ModelPropertiesError",
    "ModelRegistry",
    "PropertySource",
    "TypedValue",
]
