"""Attribute accessors — where entity attribute bags come from."""

from __future__ import annotations

import abc
import logging
from typing import Any, Iterable

from aecids.properties.values import AttributeBag, normalize_type

logger = logging.getLogger(__name__)


class PropertySource(abc.ABC):
    """Abstract attribute accessor for one parsed model."""

    @abc.abstractmethod
    async def get_properties(self, express_id: int) -> AttributeBag | None:
        """Return the attribute bag of *express_id*, or None if absent."""

    @abc.abstractmethod
    async def get_all_properties_of_type(self, ifc_class: str) -> dict[int, AttributeBag]:
        """Return every entity of exactly *ifc_class*, keyed by express id."""

    @abc.abstractmethod
    async def get_entity_types(self) -> set[str]:
        """Return the IFC class names present in the model."""


class InMemoryPropertySource(PropertySource):
    """Accessor over attribute bags already held in memory.

    Parameters
    ----------
    properties:
        Either a mapping of express id -> bag, or an iterable of bags each
        carrying its own ``"id"``.
    """

    def __init__(self, properties: dict[int, AttributeBag] | Iterable[AttributeBag]) -> None:
        if isinstance(properties, dict):
            self._properties = {int(k): v for k, v in properties.items()}
        else:
            self._properties = {int(bag["id"]): bag for bag in properties}
        for express_id, bag in self._properties.items():
            bag.setdefault("id", express_id)

    async def get_properties(self, express_id: int) -> AttributeBag | None:
        return self._properties.get(express_id)

    async def get_all_properties_of_type(self, ifc_class: str) -> dict[int, AttributeBag]:
        wanted = normalize_type(ifc_class)
        return {
            express_id: bag
            for express_id, bag in self._properties.items()
            if normalize_type(bag.get("type")) == wanted
        }

    async def get_entity_types(self) -> set[str]:
        return {str(bag["type"]) for bag in self._properties.values() if bag.get("type")}

    def add(self, bag: dict[str, Any]) -> None:
        """Insert or replace one bag."""
        self._properties[int(bag["id"])] = bag

    def __len__(self) -> int:
        return len(self._properties)
