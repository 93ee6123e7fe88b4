"""PartOf facet — aggregation, containment and group membership."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Literal

from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.facets.entity import EntityFacet
from aecids.ids.records import CheckRecord
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, normalize_type
from aecids.relations.attributes import InverseAttribute

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

PartOfRelation = Literal[
    "IfcRelAggregates",
    "IfcRelContainedInSpatialStructure",
    "IfcRelAssignsToGroup",
]

# Relation -> (role leading to the parent, role leading to the children)
PART_OF_ROLES: dict[str, tuple[InverseAttribute, InverseAttribute]] = {
    "IfcRelAggregates": (
        InverseAttribute.DECOMPOSES,
        InverseAttribute.IS_DECOMPOSED_BY,
    ),
    "IfcRelContainedInSpatialStructure": (
        InverseAttribute.CONTAINED_IN_STRUCTURE,
        InverseAttribute.CONTAINS_ELEMENTS,
    ),
    "IfcRelAssignsToGroup": (
        InverseAttribute.HAS_ASSIGNMENTS,
        InverseAttribute.IS_GROUPED_BY,
    ),
}


class PartOfFacet(Facet):
    """Requires an ancestor matching ``entity`` through ``relation``.

    Without a relation every supported relation is followed.  Ancestors
    are searched transitively, so an element contained in a storey is
    also part of the building aggregating that storey.
    """

    facet_name: ClassVar[str] = "partOf"

    entity: EntityFacet
    relation: PartOfRelation | None = None

    def _roles(self) -> list[tuple[InverseAttribute, InverseAttribute]]:
        if self.relation is None:
            return list(PART_OF_ROLES.values())
        return [PART_OF_ROLES[self.relation]]

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        entity_xml = self.entity.serialize("applicability")
        return self._element_xml(
            kind,
            [entity_xml],
            attributes={"relation": normalize_type(self.relation)},
        )

    async def _ancestors(
        self,
        model: Model,
        indexer: RelationsIndexer,
        express_id: int,
    ) -> list[tuple[int, AttributeBag]]:
        ancestors: list[tuple[int, AttributeBag]] = []
        seen = {express_id}
        pending = [express_id]
        while pending:
            current = pending.pop(0)
            for parent_role, _ in self._roles():
                for parent_id in indexer.get_entity_relations(model, current, parent_role) or []:
                    if parent_id in seen:
                        continue
                    seen.add(parent_id)
                    attrs = await model.get_properties(parent_id)
                    if attrs is None:
                        continue
                    ancestors.append((parent_id, attrs))
                    pending.append(parent_id)
        return ancestors

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        parents: dict[int, AttributeBag] = {}
        await self.entity.get_entities(model, indexer, parents)

        express_ids: list[int] = []
        seen: set[int] = set()
        pending = list(parents)
        while pending:
            current = pending.pop(0)
            for _, child_role in self._roles():
                for child_id in indexer.get_entity_relations(model, current, child_role) or []:
                    if child_id in seen:
                        continue
                    seen.add(child_id)
                    express_ids.append(child_id)
                    pending.append(child_id)
        return await self._collect(model, express_ids, collector)

    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        ancestors = await self._ancestors(model, indexer, express_id)
        if not ancestors:
            checks.append(self._failed("Entity", None, self.entity.name))
            return

        for _, parent_attrs in ancestors:
            if self.entity.matches_entity(parent_attrs):
                checks.append(
                    self._passed("Entity", normalize_type(parent_attrs.get("type")), self.entity.name)
                )
                return

        types = [normalize_type(a.get("type")) for _, a in ancestors]
        checks.append(self._failed("Entity", types, self.entity.name))
