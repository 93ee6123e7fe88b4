"""Classification facet — classification references associated to an entity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from aecids.ids.exporters import get_parameter_xml
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.parameters import FacetParameter, matches
from aecids.ids.records import CheckRecord
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, is_type, ref_id, unwrap
from aecids.relations.attributes import InverseAttribute

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

logger = logging.getLogger(__name__)

# Guard against cyclic ReferencedSource chains
MAX_REFERENCE_DEPTH = 16


class ClassificationFacet(Facet):
    """Requires a classification reference, optionally of a system and code."""

    facet_name: ClassVar[str] = "classification"

    system: FacetParameter | None = None
    value: FacetParameter | None = None
    uri: str | None = None

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        return self._element_xml(
            kind,
            [
                get_parameter_xml("value", self.value),
                get_parameter_xml("system", self.system),
            ],
            requirement_attributes={"uri": self.uri},
        )

    async def _references(
        self,
        model: Model,
        indexer: RelationsIndexer,
        express_id: int,
    ) -> list[tuple[str | None, str | None]]:
        """``(system_name, identification)`` of every associated reference."""
        associations = indexer.get_entity_relations(
            model, express_id, InverseAttribute.HAS_ASSOCIATIONS
        )
        references: list[tuple[str | None, str | None]] = []
        for association_id in associations or []:
            attrs = await model.get_properties(association_id)
            if attrs is None:
                continue
            if is_type(attrs, "IfcClassificationReference"):
                code = unwrap(attrs.get("Identification", attrs.get("ItemReference")))
                system = await self._system_name(model, attrs)
                references.append((system, code))
            elif is_type(attrs, "IfcClassification"):
                references.append((unwrap(attrs.get("Name")), None))
        return references

    @staticmethod
    async def _system_name(model: Model, attrs: AttributeBag) -> str | None:
        """Follow ``ReferencedSource`` up to the owning IfcClassification."""
        current = attrs
        for _ in range(MAX_REFERENCE_DEPTH):
            source_id = ref_id(current.get("ReferencedSource"))
            if source_id is None:
                return None
            source = await model.get_properties(source_id)
            if source is None:
                return None
            if is_type(source, "IfcClassification"):
                return unwrap(source.get("Name"))
            current = source
        logger.debug("ReferencedSource chain too deep for #%s", attrs.get("id"))
        return None

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        express_ids: list[int] = []
        for ifc_class in ("IfcClassificationReference", "IfcClassification"):
            candidates = await model.get_all_properties_of_type(ifc_class)
            for candidate_id, attrs in candidates.items():
                if is_type(attrs, "IfcClassification"):
                    system, code = unwrap(attrs.get("Name")), None
                else:
                    system = await self._system_name(model, attrs)
                    code = unwrap(attrs.get("Identification", attrs.get("ItemReference")))
                if not (matches(system, self.system) and matches(code, self.value)):
                    continue
                related = indexer.get_entity_relations(
                    model, candidate_id, InverseAttribute.CLASSIFICATION_FOR_OBJECTS
                )
                express_ids.extend(related or [])
        return await self._collect(model, express_ids, collector)

    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        references = await self._references(model, indexer, express_id)
        if not references:
            checks.append(self._failed("Classification", None, self.system or self.value))
            return

        in_system = [(s, c) for s, c in references if matches(s, self.system)]
        if self.system is not None:
            if not in_system:
                systems = [s for s, _ in references]
                checks.append(self._failed("System", systems, self.system))
                return
            checks.append(self._passed("System", in_system[0][0], self.system))

        if self.value is not None:
            codes = [c for _, c in in_system]
            hit = next((c for c in codes if matches(c, self.value)), None)
            if hit is None:
                checks.append(self._failed("Value", codes, self.value))
            else:
                checks.append(self._passed("Value", hit, self.value))

        if self.system is None and self.value is None:
            checks.append(self._passed("Classification", references[0][0], None))
