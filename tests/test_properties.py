"""Tests for attribute bags, accessors and relation enumeration."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import ifcopenshell
import ifcopenshell.api
import pytest

from aecids.properties import (
    EntityRef,
    InMemoryPropertySource,
    Model,
    TypedValue,
)
from aecids.properties.ifc import IfcPropertySource, entity_to_bag
from aecids.properties.utils import get_relation_map, read_relation, relation_keys
from aecids.properties.values import is_type, normalize_type, ref_id, ref_ids, type_tag, unwrap


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _build_ifc() -> ifcopenshell.file:
    """A wall with a fire rating and a length quantity."""
    f = ifcopenshell.file(schema="IFC4")
    ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcProject", name="Bags")
    wall = ifcopenshell.api.run("root.create_entity", f, ifc_class="IfcWall", name="Wall")
    pset = ifcopenshell.api.run("pset.add_pset", f, product=wall, name="Pset_WallCommon")
    ifcopenshell.api.run("pset.edit_pset", f, pset=pset, properties={"FireRating": "2HR"})
    f.createIfcQuantityLength("Length", None, None, 4.2)
    return f


@pytest.fixture()
def ifc_file() -> ifcopenshell.file:
    return _build_ifc()


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class TestValues:
    def test_references(self):
        assert ref_id(EntityRef(4)) == 4
        assert ref_id(4) == 4
        assert ref_id(True) is None
        assert ref_id("4") is None
        assert ref_ids([EntityRef(1), None, EntityRef(2)]) == [1, 2]
        assert ref_ids(None) == []

    def test_typed_values(self):
        value = TypedValue("IfcLabel", "2HR")
        assert unwrap(value) == "2HR"
        assert unwrap("plain") == "plain"
        assert type_tag(value) == "IFCLABEL"
        assert type_tag("plain") is None

    def test_type_names(self):
        assert normalize_type("IfcWall") == "IFCWALL"
        assert normalize_type(None) is None
        assert is_type({"type": "IfcWall"}, "IFCWALL", "IfcDoor")
        assert not is_type({"type": "IfcSlab"}, "IfcWall")


class TestInMemorySource:
    @pytest.mark.asyncio
    async def test_lookup(self):
        source = InMemoryPropertySource({1: {"type": "IfcWall"}, 2: {"type": "IfcDoor"}})

        assert (await source.get_properties(1))["id"] == 1
        assert await source.get_properties(3) is None
        assert list(await source.get_all_properties_of_type("IFCWALL")) == [1]
        assert await source.get_entity_types() == {"IfcWall", "IfcDoor"}

    def test_add(self):
        source = InMemoryPropertySource([{"id": 1, "type": "IfcWall"}])
        source.add({"id": 2, "type": "IfcWall"})
        assert len(source) == 2

    @pytest.mark.asyncio
    async def test_model_without_source(self):
        model = Model(None)

        assert model.has_properties is False
        assert await model.get_properties(1) is None
        assert await model.get_all_properties_of_type("IfcWall") == {}
        assert await model.get_entity_types() == set()


class TestIfcSource:
    def test_entity_to_bag(self, ifc_file: ifcopenshell.file):
        prop = ifc_file.by_type("IfcPropertySingleValue")[0]
        bag = entity_to_bag(prop)

        assert bag["id"] == prop.id()
        assert bag["type"] == "IfcPropertySingleValue"
        assert bag["Name"] == "FireRating"
        assert bag["NominalValue"] == TypedValue("IfcLabel", "2HR")

    def test_references_become_entity_refs(self, ifc_file: ifcopenshell.file):
        pset = ifc_file.by_type("IfcPropertySet")[0]
        prop = ifc_file.by_type("IfcPropertySingleValue")[0]

        assert entity_to_bag(pset)["HasProperties"] == [EntityRef(prop.id())]

    def test_quantity_measure_restored(self, ifc_file: ifcopenshell.file):
        quantity = ifc_file.by_type("IfcQuantityLength")[0]
        assert entity_to_bag(quantity)["LengthValue"] == TypedValue("IfcLengthMeasure", 4.2)

    @pytest.mark.asyncio
    async def test_async_lookups(self, ifc_file: ifcopenshell.file):
        source = IfcPropertySource(ifc_file)
        wall = ifc_file.by_type("IfcWall")[0]

        assert (await source.get_properties(wall.id()))["GlobalId"] == wall.GlobalId
        assert list(await source.get_all_properties_of_type("IfcWall")) == [wall.id()]
        assert await source.get_properties(999999) is None

    @pytest.mark.asyncio
    async def test_entity_types(self, ifc_file: ifcopenshell.file):
        types = await IfcPropertySource(ifc_file).get_entity_types()
        assert {"IfcProject", "IfcWall", "IfcPropertySet"} <= types

    def test_supported_schema_accepted(self, ifc_file: ifcopenshell.file, caplog):
        with caplog.at_level(logging.WARNING, logger="aecids.properties.ifc"):
            IfcPropertySource(ifc_file)
        assert "not supported" not in caplog.text

    def test_unsupported_schema_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="aecids.properties.ifc"):
            IfcPropertySource(SimpleNamespace(schema="IFC2X2"))
        assert "Schema IFC2X2 is not supported" in caplog.text

    @pytest.mark.asyncio
    async def test_class_outside_schema(self, ifc_file: ifcopenshell.file):
        source = IfcPropertySource(ifc_file)
        assert await source.get_all_properties_of_type("IfcNotAClass") == {}


# ---------------------------------------------------------------------------
# Relation enumeration
# ---------------------------------------------------------------------------


class TestRelationEnumeration:
    def test_relation_keys(self):
        attrs = {
            "id": 1,
            "type": "IfcRelAssignsToGroup",
            "RelatedObjects": [EntityRef(2)],
            "RelatedObjectsType": None,
            "RelatingGroup": EntityRef(3),
        }
        assert relation_keys(attrs) == ("RelatingGroup", "RelatedObjects")
        assert read_relation(attrs) == (3, [2])

    def test_malformed(self):
        assert read_relation({"RelatedObjects": [EntityRef(2)]}) is None
        assert read_relation({"RelatingObject": None, "RelatedObjects": []}) is None

    @pytest.mark.asyncio
    async def test_get_relation_map(self):
        bags = [
            {"id": 1, "type": "IfcRelAggregates", "RelatingObject": EntityRef(5), "RelatedObjects": [EntityRef(6)]},
            {"id": 2, "type": "IfcRelAggregates", "RelatingObject": EntityRef(5), "RelatedObjects": [EntityRef(7)]},
            {"id": 3, "type": "IfcRelAggregates", "RelatedObjects": [EntityRef(8)]},
        ]
        model = Model(InMemoryPropertySource(bags))
        seen: list[tuple[int, list[int]]] = []

        relations = await get_relation_map(
            model, "IfcRelAggregates", lambda r, e: seen.append((r, e))
        )

        assert relations == {5: [7]}
        assert seen == [(5, [6]), (5, [7])]
