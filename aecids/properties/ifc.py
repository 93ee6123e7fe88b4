"""Attribute accessor backed by an ifcopenshell file."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import ifcopenshell

from aecids.config import SUPPORTED_SCHEMAS
from aecids.properties.source import PropertySource
from aecids.properties.values import AttributeBag, EntityRef, TypedValue, normalize_type

logger = logging.getLogger(__name__)

# Quantity value attributes are plain numbers in the schema; their declared
# measure type is restored here so data-type checks can see it.
QUANTITY_MEASURES: dict[str, tuple[str, str]] = {
    "IfcQuantityLength": ("LengthValue", "IfcLengthMeasure"),
    "IfcQuantityArea": ("AreaValue", "IfcAreaMeasure"),
    "IfcQuantityVolume": ("VolumeValue", "IfcVolumeMeasure"),
    "IfcQuantityCount": ("CountValue", "IfcCountMeasure"),
    "IfcQuantityWeight": ("WeightValue", "IfcMassMeasure"),
    "IfcQuantityTime": ("TimeValue", "IfcTimeMeasure"),
    "IfcQuantityNumber": ("NumberValue", "IfcNumericMeasure"),
}


def _convert(value: Any) -> Any:
    """Convert one ifcopenshell attribute value to bag vocabulary."""
    if isinstance(value, ifcopenshell.entity_instance):
        express_id = value.id()
        if express_id:
            return EntityRef(express_id)
        # Wrapped simple type (IfcLabel, IfcLengthMeasure, ...)
        return TypedValue(value.is_a(), value.wrappedValue)
    if isinstance(value, (list, tuple)):
        return [_convert(v) for v in value]
    return value


def entity_to_bag(entity: ifcopenshell.entity_instance) -> AttributeBag:
    """Return the attribute bag of *entity* without following references."""
    info = entity.get_info(include_identifier=True, recursive=False)
    bag: AttributeBag = {"id": info.pop("id"), "type": info.pop("type")}
    for name, value in info.items():
        bag[name] = _convert(value)

    measure = QUANTITY_MEASURES.get(bag["type"])
    if measure is not None:
        attr_name, measure_type = measure
        raw = bag.get(attr_name)
        if raw is not None and not isinstance(raw, TypedValue):
            bag[attr_name] = TypedValue(measure_type, raw)
    return bag


class IfcPropertySource(PropertySource):
    """Accessor reading attribute bags from an ``ifcopenshell.file``.

    Lookups run in a worker thread so that large files do not block the
    event loop.
    """

    def __init__(self, ifc_file: ifcopenshell.file) -> None:
        self.ifc_file = ifc_file
        if normalize_type(ifc_file.schema) not in SUPPORTED_SCHEMAS:
            logger.warning(
                "Schema %s is not supported (expected one of %s)",
                ifc_file.schema,
                ", ".join(SUPPORTED_SCHEMAS),
            )

    @classmethod
    def open(cls, path: str) -> IfcPropertySource:
        """Parse the IFC file at *path*."""
        logger.info("Opening %s", path)
        return cls(ifcopenshell.open(str(path)))

    async def get_properties(self, express_id: int) -> AttributeBag | None:
        return await asyncio.to_thread(self._get_properties_sync, express_id)

    async def get_all_properties_of_type(self, ifc_class: str) -> dict[int, AttributeBag]:
        return await asyncio.to_thread(self._get_all_of_type_sync, ifc_class)

    async def get_entity_types(self) -> set[str]:
        return await asyncio.to_thread(self._get_entity_types_sync)

    def _get_properties_sync(self, express_id: int) -> AttributeBag | None:
        try:
            entity = self.ifc_file.by_id(express_id)
        except RuntimeError:
            return None
        return entity_to_bag(entity)

    def _get_entity_types_sync(self) -> set[str]:
        return {entity.is_a() for entity in self.ifc_file}

    def _get_all_of_type_sync(self, ifc_class: str) -> dict[int, AttributeBag]:
        try:
            entities = self.ifc_file.by_type(ifc_class, include_subtypes=False)
        except RuntimeError:
            # Class not part of this file's schema
            logger.debug(
                "%s not in schema %s", ifc_class, self.ifc_file.schema
            )
            return {}
        return {entity.id(): entity_to_bag(entity) for entity in entities}
