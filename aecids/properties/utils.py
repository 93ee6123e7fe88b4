"""Relation enumeration over a model's attribute bags."""

from __future__ import annotations

import logging
from typing import Callable

from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, ref_id, ref_ids

logger = logging.getLogger(__name__)

RelationCallback = Callable[[int, list[int]], None]


def relation_keys(attrs: AttributeBag) -> tuple[str | None, str | None]:
    """Return the names of the ``Relating*`` and ``Related*`` attributes."""
    relating_key = next((k for k in attrs if k.startswith("Relating")), None)
    related_key = next((k for k in attrs if k.startswith("Related")), None)
    return relating_key, related_key


def read_relation(attrs: AttributeBag) -> tuple[int, list[int]] | None:
    """Extract ``(relating_id, related_ids)`` from one relation bag.

    Returns None for malformed records (missing either side).
    """
    relating_key, related_key = relation_keys(attrs)
    if not (relating_key and related_key):
        return None
    relating_id = ref_id(attrs[relating_key])
    if relating_id is None:
        return None
    return relating_id, ref_ids(attrs[related_key])


async def get_relation_map(
    model: Model,
    relation_type: str,
    on_relation: RelationCallback | None = None,
) -> dict[int, list[int]]:
    """Enumerate every relation of *relation_type* in *model*.

    Parameters
    ----------
    model:
        Model whose property source is queried.
    relation_type:
        IFC relation class, e.g. ``"IfcRelAggregates"``.
    on_relation:
        Called once per well-formed record with ``(relating_id, related_ids)``.

    Returns
    -------
    dict[int, list[int]]
        Relating id -> related ids (the last record wins for a repeated
        relating id).
    """
    relations: dict[int, list[int]] = {}
    rels = await model.get_all_properties_of_type(relation_type)
    for rel_id, attrs in rels.items():
        record = read_relation(attrs)
        if record is None:
            logger.debug("Skipping malformed %s #%d", relation_type, rel_id)
            continue
        relating_id, related_ids = record
        relations[relating_id] = related_ids
        if on_relation is not None:
            on_relation(relating_id, related_ids)
    return relations
