"""Tests for the entity, attribute, classification, material and partOf facets."""

from __future__ import annotations

import pytest
import pytest_asyncio

from aecids.ids.facets import (
    AttributeFacet,
    ClassificationFacet,
    EntityFacet,
    MaterialFacet,
    PartOfFacet,
)
from aecids.ids.facets.entity import predefined_type
from aecids.ids.facets.material import material_names
from aecids.ids.parameters import (
    EnumerationParameter,
    PatternParameter,
    SimpleParameter,
)
from aecids.properties import EntityRef, InMemoryPropertySource, Model, ModelRegistry
from aecids.relations import RelationsIndexer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _element(express_id: int, ifc_class: str, global_id: str, name: str, **attrs) -> dict:
    bag = {
        "id": express_id,
        "type": ifc_class,
        "GlobalId": global_id,
        "OwnerHistory": None,
        "Name": name,
        "Description": None,
        "ObjectType": None,
    }
    bag.update(attrs)
    return bag


def _bags() -> list[dict]:
    """Building 5 > storey 4 > walls 1, 2 and door 3; walls grouped in 7.

    Wall 1 carries a Uniclass reference and a layered material; the door
    carries a nested reference and a plain material.
    """
    return [
        _element(
            1, "IfcWall", "w1", "Wall A",
            Description="",
            ObjectPlacement=EntityRef(90),
            PredefinedType="SOLIDWALL",
        ),
        _element(
            2, "IfcWall", "w2", "Wall B",
            ObjectType="Curtain",
            PredefinedType="USERDEFINED",
        ),
        _element(3, "IfcDoor", "d1", "Door", PredefinedType="DOOR"),
        _element(4, "IfcBuildingStorey", "s1", "Level 1"),
        _element(5, "IfcBuilding", "b1", "Building"),
        _element(7, "IfcGroup", "g1", "Fire walls"),
        {"id": 90, "type": "IfcLocalPlacement"},
        # Classification
        {"id": 50, "type": "IfcClassification", "Name": "Uniclass"},
        {
            "id": 51,
            "type": "IfcClassificationReference",
            "Location": None,
            "Identification": "EF_25_10",
            "Name": "Walls",
            "ReferencedSource": EntityRef(50),
        },
        {
            "id": 52,
            "type": "IfcClassificationReference",
            "Location": None,
            "Identification": "Ss_25_10",
            "Name": "Door systems",
            "ReferencedSource": EntityRef(53),
        },
        {
            "id": 53,
            "type": "IfcClassificationReference",
            "Location": None,
            "Identification": "Ss_25",
            "Name": "Systems",
            "ReferencedSource": EntityRef(50),
        },
        {
            "id": 60,
            "type": "IfcRelAssociatesClassification",
            "RelatedObjects": [EntityRef(1)],
            "RelatingClassification": EntityRef(51),
        },
        {
            "id": 61,
            "type": "IfcRelAssociatesClassification",
            "RelatedObjects": [EntityRef(3)],
            "RelatingClassification": EntityRef(52),
        },
        # Materials
        {"id": 70, "type": "IfcMaterial", "Name": "Concrete", "Description": None, "Category": "Structural"},
        {"id": 71, "type": "IfcMaterial", "Name": "Insulation", "Description": None, "Category": None},
        {"id": 72, "type": "IfcMaterialLayer", "Material": EntityRef(70), "LayerThickness": 200.0, "Name": None, "Category": None},
        {"id": 73, "type": "IfcMaterialLayer", "Material": EntityRef(71), "LayerThickness": 50.0, "Name": None, "Category": None},
        {
            "id": 74,
            "type": "IfcMaterialLayerSet",
            "MaterialLayers": [EntityRef(72), EntityRef(73)],
            "LayerSetName": "WallLayers",
        },
        {"id": 75, "type": "IfcMaterialLayerSetUsage", "ForLayerSet": EntityRef(74)},
        {
            "id": 80,
            "type": "IfcRelAssociatesMaterial",
            "RelatedObjects": [EntityRef(1)],
            "RelatingMaterial": EntityRef(75),
        },
        {
            "id": 81,
            "type": "IfcRelAssociatesMaterial",
            "RelatedObjects": [EntityRef(3)],
            "RelatingMaterial": EntityRef(71),
        },
        # Spatial structure and groups
        {
            "id": 100,
            "type": "IfcRelAggregates",
            "RelatingObject": EntityRef(5),
            "RelatedObjects": [EntityRef(4)],
        },
        {
            "id": 101,
            "type": "IfcRelContainedInSpatialStructure",
            "RelatedElements": [EntityRef(1), EntityRef(2), EntityRef(3)],
            "RelatingStructure": EntityRef(4),
        },
        {
            "id": 102,
            "type": "IfcRelAssignsToGroup",
            "RelatedObjects": [EntityRef(1), EntityRef(2)],
            "RelatedObjectsType": None,
            "RelatingGroup": EntityRef(7),
        },
    ]


@pytest_asyncio.fixture()
async def indexed() -> tuple[Model, RelationsIndexer]:
    registry = ModelRegistry()
    indexer = RelationsIndexer(registry)
    model = registry.add(Model(InMemoryPropertySource(_bags()), model_id="facets"))
    await indexer.process(model)
    return model, indexer


async def _test_one(facet, express_id: int, indexed):
    model, indexer = indexed
    attrs = await model.get_properties(express_id)
    (result,) = await facet.test({express_id: attrs}, model, indexer)
    return result


def _simple(value) -> SimpleParameter:
    return SimpleParameter(parameter=value)


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------


class TestEntityFacet:
    @pytest.mark.asyncio
    async def test_discover_by_class(self, indexed):
        model, indexer = indexed
        collector: dict = {}
        found = await EntityFacet(name=_simple("IfcWall")).get_entities(model, indexer, collector)

        assert found == [1, 2]
        assert set(collector) == {1, 2}

    @pytest.mark.asyncio
    async def test_discover_enumeration(self, indexed):
        model, indexer = indexed
        facet = EntityFacet(name=EnumerationParameter(parameter=["IFCWALL", "IFCDOOR"]))
        assert await facet.get_entities(model, indexer) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_discover_skips_collected(self, indexed):
        model, indexer = indexed
        collector = {1: await model.get_properties(1)}
        found = await EntityFacet(name=_simple("IFCWALL")).get_entities(model, indexer, collector)
        assert found == [2]

    @pytest.mark.asyncio
    async def test_user_defined_predefined_type(self, indexed):
        model, indexer = indexed
        facet = EntityFacet(name=_simple("IFCWALL"), predefined_type=_simple("Curtain"))
        assert await facet.get_entities(model, indexer) == [2]

    @pytest.mark.asyncio
    async def test_discover_by_pattern(self, indexed):
        model, indexer = indexed
        facet = EntityFacet(name=PatternParameter(parameter="IFCWALL.*"))
        assert await facet.get_entities(model, indexer) == [1, 2]

    @pytest.mark.asyncio
    async def test_discover_by_pattern_over_classes(self, indexed):
        model, indexer = indexed
        facet = EntityFacet(name=PatternParameter(parameter="IFC(WALL|DOOR)"))
        assert sorted(await facet.get_entities(model, indexer)) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_discover_by_pattern_without_match(self, indexed):
        model, indexer = indexed
        facet = EntityFacet(name=PatternParameter(parameter="IFCSLAB.*"))
        assert await facet.get_entities(model, indexer) == []

    @pytest.mark.asyncio
    async def test_pattern_name_evaluates(self, indexed):
        facet = EntityFacet(name=PatternParameter(parameter="IFC(WALL|DOOR)"))
        assert (await _test_one(facet, 3, indexed)).passed is True

    @pytest.mark.asyncio
    async def test_wrong_class(self, indexed):
        result = await _test_one(EntityFacet(name=_simple("IfcWall")), 3, indexed)

        assert result.passed is False
        assert result.checks[0].parameter == "Name"
        assert result.checks[0].current_value == "IFCDOOR"
        assert result.checks[0].required_value == "IFCWALL"

    @pytest.mark.asyncio
    async def test_predefined_type_check(self, indexed):
        facet = EntityFacet(name=_simple("IFCWALL"), predefined_type=_simple("SOLIDWALL"))
        result = await _test_one(facet, 1, indexed)

        assert result.passed is True
        assert [c.parameter for c in result.checks] == ["Name", "PredefinedType"]

    def test_predefined_type_resolution(self):
        assert predefined_type({"PredefinedType": "SOLIDWALL"}) == "SOLIDWALL"
        assert predefined_type(
            {"PredefinedType": "USERDEFINED", "ElementType": "Custom"}
        ) == "Custom"

    def test_serialize_without_cardinality(self):
        xml = EntityFacet(name=_simple("IFCWALL"), cardinality="optional").serialize()

        assert xml == (
            "<ids:entity>\n"
            "  <ids:name><ids:simpleValue>IFCWALL</ids:simpleValue></ids:name>\n"
            "</ids:entity>"
        )


# ---------------------------------------------------------------------------
# Attribute
# ---------------------------------------------------------------------------


class TestAttributeFacet:
    @pytest.mark.asyncio
    async def test_name_and_value(self, indexed):
        facet = AttributeFacet(name=_simple("Name"), value=_simple("Wall A"))
        result = await _test_one(facet, 1, indexed)

        assert result.passed is True
        assert [c.parameter for c in result.checks] == ["Name", "Value"]

    @pytest.mark.asyncio
    async def test_value_mismatch(self, indexed):
        facet = AttributeFacet(name=_simple("Name"), value=_simple("Wall A"))
        result = await _test_one(facet, 2, indexed)

        assert result.passed is False
        assert result.checks[-1].current_value == "Wall B"

    @pytest.mark.asyncio
    async def test_empty_attribute_fails(self, indexed):
        result = await _test_one(AttributeFacet(name=_simple("Description")), 1, indexed)

        assert result.passed is False
        assert len(result.checks) == 1
        assert result.checks[0].parameter == "Name"

    @pytest.mark.asyncio
    async def test_null_attribute_fails(self, indexed):
        result = await _test_one(AttributeFacet(name=_simple("Description")), 2, indexed)
        assert result.passed is False

    @pytest.mark.asyncio
    async def test_unknown_attribute(self, indexed):
        result = await _test_one(AttributeFacet(name=_simple("Height")), 1, indexed)

        assert result.passed is False
        assert result.checks[0].current_value is None

    @pytest.mark.asyncio
    async def test_reference_has_no_value(self, indexed):
        facet = AttributeFacet(name=_simple("ObjectPlacement"), value=_simple("90"))
        result = await _test_one(facet, 1, indexed)

        assert result.passed is False
        assert result.checks[-1].parameter == "Value"

    @pytest.mark.asyncio
    async def test_pattern_name(self, indexed):
        facet = AttributeFacet(name=PatternParameter(parameter="GlobalId|Name"))
        result = await _test_one(facet, 1, indexed)

        assert [c.current_value for c in result.checks] == ["GlobalId", "Name"]
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_not_discoverable(self, indexed):
        model, indexer = indexed
        facet = AttributeFacet(name=_simple("Name"))

        assert facet.discoverable is False
        with pytest.raises(NotImplementedError):
            await facet.get_entities(model, indexer)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassificationFacet:
    @pytest.mark.asyncio
    async def test_system_and_value(self, indexed):
        facet = ClassificationFacet(system=_simple("Uniclass"), value=_simple("EF_25_10"))
        result = await _test_one(facet, 1, indexed)

        assert result.passed is True
        assert [c.parameter for c in result.checks] == ["System", "Value"]

    @pytest.mark.asyncio
    async def test_nested_reference_resolves_system(self, indexed):
        facet = ClassificationFacet(system=_simple("Uniclass"), value=_simple("Ss_25_10"))
        assert (await _test_one(facet, 3, indexed)).passed is True

    @pytest.mark.asyncio
    async def test_wrong_system(self, indexed):
        result = await _test_one(ClassificationFacet(system=_simple("OmniClass")), 1, indexed)

        assert result.passed is False
        assert result.checks[0].parameter == "System"
        assert result.checks[0].current_value == ["Uniclass"]

    @pytest.mark.asyncio
    async def test_unclassified(self, indexed):
        result = await _test_one(ClassificationFacet(), 2, indexed)

        assert result.passed is False
        assert result.checks[0].parameter == "Classification"
        assert result.checks[0].current_value is None

    @pytest.mark.asyncio
    async def test_any_classification(self, indexed):
        result = await _test_one(ClassificationFacet(), 1, indexed)

        assert result.passed is True
        assert result.checks[0].current_value == "Uniclass"

    @pytest.mark.asyncio
    async def test_discover(self, indexed):
        model, indexer = indexed
        facet = ClassificationFacet(value=PatternParameter(parameter="EF_.*"))
        assert await facet.get_entities(model, indexer) == [1]

        everything = await ClassificationFacet(system=_simple("Uniclass")).get_entities(model, indexer)
        assert sorted(everything) == [1, 3]


# ---------------------------------------------------------------------------
# Material
# ---------------------------------------------------------------------------


class TestMaterialFacet:
    @pytest.mark.asyncio
    async def test_layer_set_names(self, indexed):
        model, _ = indexed
        assert await material_names(model, 75) == [
            "WallLayers",
            "Concrete",
            "Structural",
            "Insulation",
        ]

    @pytest.mark.asyncio
    async def test_value(self, indexed):
        result = await _test_one(MaterialFacet(value=_simple("Concrete")), 1, indexed)

        assert result.passed is True
        assert result.checks[0].parameter == "Value"
        assert result.checks[0].current_value == "Concrete"

    @pytest.mark.asyncio
    async def test_any_material(self, indexed):
        result = await _test_one(MaterialFacet(), 3, indexed)

        assert result.passed is True
        assert result.checks[0].current_value == ["Insulation"]

    @pytest.mark.asyncio
    async def test_no_material(self, indexed):
        result = await _test_one(MaterialFacet(value=_simple("Concrete")), 2, indexed)

        assert result.passed is False
        assert result.checks[0].parameter == "Material"

    @pytest.mark.asyncio
    async def test_value_mismatch(self, indexed):
        result = await _test_one(MaterialFacet(value=_simple("Steel")), 1, indexed)

        assert result.passed is False
        assert "Concrete" in result.checks[0].current_value

    @pytest.mark.asyncio
    async def test_discover(self, indexed):
        model, indexer = indexed
        found = await MaterialFacet(value=_simple("Insulation")).get_entities(model, indexer)
        assert sorted(found) == [1, 3]

    def test_serialize(self):
        xml = MaterialFacet(value=_simple("Concrete"), uri="https://example.org/c").serialize()

        assert xml.startswith('<ids:material cardinality="required" uri="https://example.org/c">')
        assert "<ids:value><ids:simpleValue>Concrete</ids:simpleValue></ids:value>" in xml


# ---------------------------------------------------------------------------
# PartOf
# ---------------------------------------------------------------------------


class TestPartOfFacet:
    @pytest.mark.asyncio
    async def test_contained_in_storey(self, indexed):
        facet = PartOfFacet(
            entity=EntityFacet(name=_simple("IFCBUILDINGSTOREY")),
            relation="IfcRelContainedInSpatialStructure",
        )
        result = await _test_one(facet, 1, indexed)

        assert result.passed is True
        assert result.checks[0].parameter == "Entity"
        assert result.checks[0].current_value == "IFCBUILDINGSTOREY"

    @pytest.mark.asyncio
    async def test_transitive_without_relation(self, indexed):
        facet = PartOfFacet(entity=EntityFacet(name=_simple("IFCBUILDING")))
        assert (await _test_one(facet, 1, indexed)).passed is True

    @pytest.mark.asyncio
    async def test_relation_restricts_walk(self, indexed):
        facet = PartOfFacet(
            entity=EntityFacet(name=_simple("IFCBUILDING")),
            relation="IfcRelContainedInSpatialStructure",
        )
        result = await _test_one(facet, 1, indexed)

        assert result.passed is False
        assert result.checks[0].current_value == ["IFCBUILDINGSTOREY"]

    @pytest.mark.asyncio
    async def test_group_membership(self, indexed):
        facet = PartOfFacet(
            entity=EntityFacet(name=_simple("IFCGROUP")),
            relation="IfcRelAssignsToGroup",
        )
        assert (await _test_one(facet, 2, indexed)).passed is True

        result = await _test_one(facet, 3, indexed)
        assert result.passed is False
        assert result.checks[0].current_value is None

    @pytest.mark.asyncio
    async def test_discover_descendants(self, indexed):
        model, indexer = indexed
        facet = PartOfFacet(entity=EntityFacet(name=_simple("IFCBUILDING")))
        assert await facet.get_entities(model, indexer) == [4, 1, 2, 3]

    def test_serialize(self):
        facet = PartOfFacet(
            entity=EntityFacet(name=_simple("IFCBUILDINGSTOREY")),
            relation="IfcRelContainedInSpatialStructure",
        )
        xml = facet.serialize("requirement")

        assert xml.startswith(
            '<ids:partOf relation="IFCRELCONTAINEDINSPATIALSTRUCTURE" cardinality="required">'
        )
        assert "<ids:entity>" in xml
        assert xml.endswith("</ids:partOf>")
