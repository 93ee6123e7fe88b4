"""RelationsIndexer — bidirectional index of IFC relations per model.

Usage::

    from aecids.properties import Model, ModelRegistry
    from aecids.relations import RelationsIndexer

    registry = ModelRegistry()
    indexer = RelationsIndexer(registry)
    relations_map = await indexer.process(model)
    psets = indexer.get_entity_relations(model, wall_id, "IsDefinedBy")

For every relation record of kind *k* relating *r* to entities *E*, the map
holds ``r -> forRelating(k) -> E`` and ``e -> forRelated(k) -> [..., r]``
for each ``e`` in *E*.  The forward slot is overwritten by a later record
of the same kind for the same relating entity while inverse slots
accumulate one entry per record.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import ifcopenshell

from aecids.events import Event
from aecids.properties.ifc import entity_to_bag
from aecids.properties.model import Model, ModelPropertiesError, ModelRegistry
from aecids.properties.utils import get_relation_map, read_relation
from aecids.relations.attributes import (
    INDEXED_RELATIONS,
    RELATION_ROLES,
    InverseAttribute,
    RelationRoles,
    role_index,
)
from aecids.relations.serialization import (
    ModelsRelationMap,
    RelationsMap,
    relations_map_from_json,
    serialize_all_relations,
    serialize_relations,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationsIndexed:
    """Payload of :attr:`RelationsIndexer.on_relations_indexed`."""

    model_id: str
    relations_map: RelationsMap


def index_relation(
    relations_map: RelationsMap,
    roles: RelationRoles,
    relating_id: int,
    related_ids: list[int],
) -> None:
    """Record one relation in *relations_map* in both directions."""
    # forRelating: set
    relating = relations_map.setdefault(relating_id, {})
    relating[roles.for_relating.slot] = list(related_ids)

    # forRelated: append
    slot = roles.for_related.slot
    for express_id in related_ids:
        relations = relations_map.setdefault(express_id, {})
        relations.setdefault(slot, []).append(relating_id)


def _read_ifc_relations(
    ifc_file: ifcopenshell.file,
    relation_type: str,
) -> list[tuple[int, list[int]]]:
    """Return ``(relating_id, related_ids)`` for every *relation_type* line."""
    try:
        rels = ifc_file.by_type(relation_type, include_subtypes=False)
    except RuntimeError:
        logger.debug("%s not in schema %s", relation_type, ifc_file.schema)
        return []

    records: list[tuple[int, list[int]]] = []
    for rel in rels:
        record = read_relation(entity_to_bag(rel))
        if record is None:
            logger.debug("Skipping malformed %s #%d", relation_type, rel.id())
            continue
        records.append(record)
    return records


def _model_id(model: Model | str) -> str:
    return model if isinstance(model, str) else model.uuid


class RelationsIndexer:
    """Index IFC entity relations per model and answer relation queries.

    Parameters
    ----------
    registry:
        Source of model-disposal notifications.  The indexer evicts a
        model's map as soon as the registry disposes it.
    """

    def __init__(self, registry: ModelRegistry) -> None:
        self.relation_maps: ModelsRelationMap = {}
        self.on_relations_indexed: Event[RelationsIndexed] = Event()
        self.on_disposed: Event[RelationsIndexer] = Event()

        self._registry = registry
        self._locks: dict[str, asyncio.Lock] = {}
        self._generations: dict[str, int] = {}

        registry.on_model_disposed.add(self._on_model_disposed)

    def _on_model_disposed(self, model_id: str) -> None:
        if self.evict(model_id):
            logger.debug("Evicted relations of disposed model %s", model_id)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def set_relation_map(self, model: Model | str, relations_map: RelationsMap) -> None:
        """Store *relations_map* for *model* and fire ``on_relations_indexed``."""
        model_id = _model_id(model)
        self.relation_maps[model_id] = relations_map
        self.on_relations_indexed.trigger(RelationsIndexed(model_id, relations_map))

    async def process(self, model: Model) -> RelationsMap:
        """Index the relations of *model*, or return its cached map.

        Concurrent calls for the same model wait for the first build and
        receive its result.

        Raises
        ------
        ModelPropertiesError
            If the model has no properties loaded, or was disposed while
            being indexed.
        """
        if not model.has_properties:
            raise ModelPropertiesError(f"Model '{model.uuid}' properties not found.")

        cached = self.relation_maps.get(model.uuid)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(model.uuid, asyncio.Lock())
        async with lock:
            cached = self.relation_maps.get(model.uuid)
            if cached is not None:
                return cached

            generation = self._generations.get(model.uuid, 0)
            relations_map: RelationsMap = {}

            for relation_type in INDEXED_RELATIONS:
                roles = RELATION_ROLES[relation_type]

                def on_relation(relating_id: int, related_ids: list[int], roles=roles) -> None:
                    index_relation(relations_map, roles, relating_id, related_ids)

                await get_relation_map(model, relation_type, on_relation)

            if self._generations.get(model.uuid, 0) != generation:
                if self._locks.get(model.uuid) is lock:
                    del self._locks[model.uuid]
                self._generations.pop(model.uuid, None)
                raise ModelPropertiesError(
                    f"Model '{model.uuid}' was disposed while being indexed."
                )

            self.set_relation_map(model, relations_map)

        logger.info(
            "Indexed relations of model %s: %d entities",
            model.uuid,
            len(relations_map),
        )
        return relations_map

    async def process_from_ifc(
        self,
        ifc_file: ifcopenshell.file,
        model_id: str | int,
    ) -> RelationsMap:
        """Index relations straight from an ``ifcopenshell.file``.

        Used before a :class:`Model` exists.  The resulting map is
        announced through ``on_relations_indexed`` but not cached; pass it
        to :meth:`set_relation_map` to keep it.
        """
        relations_map: RelationsMap = {}

        for relation_type in INDEXED_RELATIONS:
            roles = RELATION_ROLES[relation_type]
            records = await asyncio.to_thread(_read_ifc_relations, ifc_file, relation_type)
            for relating_id, related_ids in records:
                index_relation(relations_map, roles, relating_id, related_ids)

        self.on_relations_indexed.trigger(RelationsIndexed(str(model_id), relations_map))
        return relations_map

    def evict(self, model_id: str) -> bool:
        """Drop the cached map of *model_id*.  Returns False if none was cached.

        An in-flight build for *model_id* is invalidated as well.  Otherwise
        the lock and generation kept for the model are released.
        """
        lock = self._locks.get(model_id)
        if lock is not None and lock.locked():
            self._generations[model_id] = self._generations.get(model_id, 0) + 1
        else:
            self._locks.pop(model_id, None)
            self._generations.pop(model_id, None)
        return self.relation_maps.pop(model_id, None) is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entity_relations(
        self,
        model: Model | str,
        express_id: int,
        relation_name: InverseAttribute | str,
    ) -> list[int] | None:
        """Return the ids related to *express_id* through *relation_name*.

        Returns None when the model is not indexed, the entity has no
        relations, the role is unknown, or the slot was never filled.  An
        empty list is only returned for an indexed but empty slot.
        """
        index_map = self.relation_maps.get(_model_id(model))
        if index_map is None:
            return None
        entity_relations = index_map.get(express_id)
        attribute_index = role_index(relation_name)
        if entity_relations is None or attribute_index == -1:
            return None
        return entity_relations.get(attribute_index)

    def get_entities_with_relation(
        self,
        model: Model | str,
        relation_name: InverseAttribute | str,
        express_id: int,
    ) -> set[int]:
        """Return every entity whose *relation_name* slot contains *express_id*."""
        index_map = self.relation_maps.get(_model_id(model))
        attribute_index = role_index(relation_name)
        if index_map is None or attribute_index == -1:
            return set()
        return {
            entity_id
            for entity_id, relations in index_map.items()
            if express_id in relations.get(attribute_index, ())
        }

    def get_entities_with_role(
        self,
        model: Model | str,
        relation_name: InverseAttribute | str,
    ) -> list[int]:
        """Return every entity whose *relation_name* slot is filled."""
        index_map = self.relation_maps.get(_model_id(model))
        attribute_index = role_index(relation_name)
        if index_map is None or attribute_index == -1:
            return []
        return [
            entity_id
            for entity_id, relations in index_map.items()
            if relations.get(attribute_index)
        ]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize_relations(self, relations_map: RelationsMap) -> str:
        return serialize_relations(relations_map)

    def serialize_model_relations(self, model: Model | str) -> str | None:
        """Serialize the cached map of *model*, or None if it is not indexed."""
        relations_map = self.relation_maps.get(_model_id(model))
        if relations_map is None:
            return None
        return serialize_relations(relations_map)

    def serialize_all_relations(self) -> str:
        """Serialize every cached map, keyed by model id."""
        return serialize_all_relations(self.relation_maps)

    def get_relations_map_from_json(self, text: str) -> RelationsMap:
        return relations_map_from_json(text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Drop every map and detach from the registry."""
        for model_id in list(self.relation_maps):
            self.evict(model_id)
        self._locks.clear()
        self._generations.clear()
        self._registry.on_model_disposed.remove(self._on_model_disposed)
        self.on_disposed.trigger(self)
        self.on_disposed.reset()
        self.on_relations_indexed.reset()
