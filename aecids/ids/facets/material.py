"""Material facet — materials associated to an entity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from aecids.ids.exporters import get_parameter_xml
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.parameters import FacetParameter, matches
from aecids.ids.records import CheckRecord
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, ref_id, ref_ids, unwrap
from aecids.relations.attributes import InverseAttribute

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

logger = logging.getLogger(__name__)

# Material definition -> (name attributes, attributes referencing nested definitions)
MATERIAL_SHAPES: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "IFCMATERIAL": (("Name", "Category"), ()),
    "IFCMATERIALLIST": ((), ("Materials",)),
    "IFCMATERIALLAYERSET": (("LayerSetName",), ("MaterialLayers",)),
    "IFCMATERIALLAYERSETUSAGE": ((), ("ForLayerSet",)),
    "IFCMATERIALLAYER": (("Name", "Category"), ("Material",)),
    "IFCMATERIALCONSTITUENTSET": (("Name",), ("MaterialConstituents",)),
    "IFCMATERIALCONSTITUENT": (("Name", "Category"), ("Material",)),
    "IFCMATERIALPROFILESET": (("Name",), ("MaterialProfiles",)),
    "IFCMATERIALPROFILESETUSAGE": ((), ("ForProfileSet",)),
    "IFCMATERIALPROFILE": (("Name", "Category"), ("Material",)),
}


async def material_names(model: Model, material_id: int) -> list[str]:
    """Every name and category reachable from one material definition."""
    names: list[str] = []
    pending = [material_id]
    seen: set[int] = set()
    while pending:
        current_id = pending.pop(0)
        if current_id in seen:
            continue
        seen.add(current_id)

        attrs = await model.get_properties(current_id)
        if attrs is None:
            continue
        shape = MATERIAL_SHAPES.get(str(attrs.get("type", "")).upper())
        if shape is None:
            logger.debug("Ignoring material definition %s", attrs.get("type"))
            continue

        name_attrs, nested_attrs = shape
        for name_attr in name_attrs:
            name = unwrap(attrs.get(name_attr))
            if name and name not in names:
                names.append(name)
        for nested_attr in nested_attrs:
            nested = attrs.get(nested_attr)
            single = ref_id(nested)
            pending.extend([single] if single is not None else ref_ids(nested))
    return names


class MaterialFacet(Facet):
    """Requires an associated material, optionally with a matching name."""

    facet_name: ClassVar[str] = "material"

    value: FacetParameter | None = None
    uri: str | None = None

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        return self._element_xml(
            kind,
            [get_parameter_xml("value", self.value)],
            requirement_attributes={"uri": self.uri},
        )

    async def _materials(
        self,
        model: Model,
        indexer: RelationsIndexer,
        express_id: int,
    ) -> list[str]:
        associations = indexer.get_entity_relations(
            model, express_id, InverseAttribute.HAS_ASSOCIATIONS
        )
        names: list[str] = []
        for association_id in associations or []:
            for name in await material_names(model, association_id):
                if name not in names:
                    names.append(name)
        return names

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        express_ids: list[int] = []
        for ifc_class in (
            "IfcMaterial",
            "IfcMaterialList",
            "IfcMaterialLayerSet",
            "IfcMaterialLayerSetUsage",
            "IfcMaterialConstituentSet",
            "IfcMaterialProfileSet",
            "IfcMaterialProfileSetUsage",
        ):
            for material_id in await model.get_all_properties_of_type(ifc_class):
                names = await material_names(model, material_id)
                if self.value is not None and not any(matches(n, self.value) for n in names):
                    continue
                related = indexer.get_entity_relations(
                    model, material_id, InverseAttribute.ASSOCIATED_TO
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
        names = await self._materials(model, indexer, express_id)
        if not names:
            checks.append(self._failed("Material", None, self.value))
            return

        if self.value is None:
            checks.append(self._passed("Material", names, None))
            return

        hit = next((name for name in names if matches(name, self.value)), None)
        if hit is None:
            checks.append(self._failed("Value", names, self.value))
        else:
            checks.append(self._passed("Value", hit, self.value))
