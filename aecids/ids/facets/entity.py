"""Entity facet — IFC class and predefined type."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from aecids.ids.exporters import get_parameter_xml
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.parameters import FacetParameter, evaluate, matches
from aecids.ids.records import CheckRecord
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, normalize_type, unwrap

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer


def predefined_type(attrs: AttributeBag) -> str | None:
    """Return the effective predefined type of an entity.

    ``USERDEFINED`` resolves to ``ObjectType`` (occurrences) or
    ``ElementType`` (types), as IDS prescribes.
    """
    value = unwrap(attrs.get("PredefinedType"))
    if value == "USERDEFINED":
        return unwrap(attrs.get("ObjectType")) or unwrap(attrs.get("ElementType"))
    return value


class EntityFacet(Facet):
    """Requires the entity to be of a class, optionally with a predefined type.

    Class names are compared in upper case (``IFCWALL``).
    """

    facet_name: ClassVar[str] = "entity"

    name: FacetParameter
    predefined_type: FacetParameter | None = None

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        # The entity facet carries no cardinality
        return self._element_xml(
            "applicability",
            [
                get_parameter_xml("name", self.name),
                get_parameter_xml("predefinedType", self.predefined_type),
            ],
        )

    async def _class_names(self, model: Model) -> list[str]:
        if self.name.type == "simple":
            return [str(self.name.parameter)]
        if self.name.type == "enumeration":
            return [str(option) for option in self.name.parameter]
        # Patterns and ranges are matched against the classes present
        name = self._upper(self.name)
        return sorted(
            ifc_class
            for ifc_class in await model.get_entity_types()
            if matches(normalize_type(ifc_class), name)
        )

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        if collector is None:
            collector = {}
        found: list[int] = []
        for class_name in await self._class_names(model):
            entities = await model.get_all_properties_of_type(class_name)
            for express_id, attrs in entities.items():
                if express_id in collector:
                    continue
                if not self.matches_entity(attrs):
                    continue
                collector[express_id] = attrs
                found.append(express_id)
        return found

    def matches_entity(self, attrs: AttributeBag) -> bool:
        checks: list[CheckRecord] = []
        self._check(attrs, checks)
        return all(check.passed for check in checks)

    def _check(self, attrs: AttributeBag, checks: list[CheckRecord]) -> None:
        evaluate(normalize_type(attrs.get("type")), self._upper(self.name), "Name", checks)
        if self.predefined_type is not None:
            evaluate(predefined_type(attrs), self.predefined_type, "PredefinedType", checks)

    @staticmethod
    def _upper(parameter: FacetParameter) -> FacetParameter:
        """Class names are matched in upper case."""
        if parameter.type == "simple":
            return parameter.model_copy(update={"parameter": str(parameter.parameter).upper()})
        if parameter.type == "enumeration":
            return parameter.model_copy(
                update={"parameter": [str(o).upper() for o in parameter.parameter]}
            )
        return parameter

    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        self._check(attrs, checks)
