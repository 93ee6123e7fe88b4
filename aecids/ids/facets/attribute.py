"""Attribute facet — direct IFC attributes such as Name or Description."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from aecids.ids.exporters import get_parameter_xml
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.parameters import FacetParameter, evaluate, matches
from aecids.ids.records import CheckRecord
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, EntityRef, unwrap

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

# Bag keys that are not IFC attributes
_RESERVED = frozenset({"id", "type"})


def _is_empty(value: Any) -> bool:
    """Null, blank text and empty aggregates count as missing."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, list) and not value:
        return True
    return False


class AttributeFacet(Facet):
    """Requires attributes whose name matches, optionally with a value."""

    facet_name: ClassVar[str] = "attribute"
    discoverable: ClassVar[bool] = False

    name: FacetParameter
    value: FacetParameter | None = None

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        return self._element_xml(
            kind,
            [
                get_parameter_xml("name", self.name),
                get_parameter_xml("value", self.value),
            ],
        )

    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        names = [
            name
            for name in attrs
            if name not in _RESERVED and matches(name, self.name)
        ]
        if not names:
            checks.append(self._failed("Name", None, self.name))
            return

        for name in names:
            raw = attrs[name]
            if _is_empty(unwrap(raw)):
                checks.append(self._failed("Name", name, self.name))
                continue
            checks.append(self._passed("Name", name, self.name))

            if self.value is None:
                continue
            if isinstance(raw, (EntityRef, list)):
                # References and aggregates have no comparable value
                checks.append(self._failed("Value", None, self.value))
                continue
            evaluate(unwrap(raw), self.value, "Value", checks)
