"""JSON persistence for relations maps.

Single model::

    {"<expressID>": {"<roleIndex>": [relatedID, ...]}}

Several models nest one level deeper, keyed by model id.  Python's ``json``
keeps integers exact, and dict/list order is preserved both ways.
"""

from __future__ import annotations

import json
from typing import Any

RelationsMap = dict[int, dict[int, list[int]]]
ModelsRelationMap = dict[str, RelationsMap]


def relations_to_dict(relations_map: RelationsMap) -> dict[str, dict[str, list[int]]]:
    """Convert a relations map to a JSON-ready dict with string keys."""
    return {
        str(express_id): {
            str(role): list(related) for role, related in relations.items()
        }
        for express_id, relations in relations_map.items()
    }


def relations_from_dict(data: dict[str, Any]) -> RelationsMap:
    """Inverse of :func:`relations_to_dict`."""
    return {
        int(express_id): {
            int(role): [int(i) for i in related]
            for role, related in relations.items()
        }
        for express_id, relations in data.items()
    }


def serialize_relations(relations_map: RelationsMap) -> str:
    """Serialize one relations map to a JSON string."""
    return json.dumps(relations_to_dict(relations_map))


def relations_map_from_json(text: str) -> RelationsMap:
    """Rebuild a relations map from :func:`serialize_relations` output."""
    return relations_from_dict(json.loads(text))


def serialize_all_relations(relation_maps: ModelsRelationMap) -> str:
    """Serialize the maps of several models under one envelope."""
    return json.dumps(
        {model_id: relations_to_dict(m) for model_id, m in relation_maps.items()}
    )


def relations_maps_from_json(text: str) -> ModelsRelationMap:
    """Rebuild per-model maps from :func:`serialize_all_relations` output."""
    return {
        model_id: relations_from_dict(data)
        for model_id, data in json.loads(text).items()
    }
