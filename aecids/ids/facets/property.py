"""Property facet — property and quantity values attached to an entity.

https://github.com/buildingSMART/IDS/blob/development/Documentation/UserManual/property-facet.md

Evaluation of one entity, in check order:

1. property/quantity sets reached through ``IsDefinedBy`` (plus the sets of
   its type object) whose name matches ``property_set``;
2. items of each matching set whose name matches ``base_name``;
3. for each matching item: value, then data type, then URI.

Bounded and table property values are not supported yet, and no unit
conversion is applied to measures.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from aecids.ids.exporters import format_value, get_parameter_xml
from aecids.ids.facets.base import Facet, FacetUsage
from aecids.ids.parameters import (
    FacetParameter,
    SimpleParameter,
    evaluate,
    matches,
)
from aecids.ids.records import CheckRecord, TestResult
from aecids.properties.model import Model
from aecids.properties.values import (
    AttributeBag,
    normalize_type,
    ref_ids,
    type_tag,
    unwrap,
)
from aecids.relations.attributes import InverseAttribute

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

logger = logging.getLogger(__name__)

# Items never considered as candidates
UNSUPPORTED_TYPES = frozenset({"IFCCOMPLEXPROPERTY", "IFCPHYSICALCOMPLEXQUANTITY"})

# Failing records that only mean the set or the property is missing
ABSENCE_CHECKS = frozenset({"PropertySet", "BaseName"})


class SetKind(str, Enum):
    """Containers a property facet looks into."""

    PROPERTY_SET = "IfcPropertySet"
    ELEMENT_QUANTITY = "IfcElementQuantity"

    @property
    def items_attribute(self) -> str:
        """Attribute listing the set's items."""
        if self is SetKind.PROPERTY_SET:
            return "HasProperties"
        return "Quantities"

    @classmethod
    def of(cls, attrs: AttributeBag | None) -> SetKind | None:
        """Return the kind of *attrs*, or None for any other entity."""
        if attrs is None:
            return None
        current = normalize_type(attrs.get("type"))
        for kind in cls:
            if normalize_type(kind.value) == current:
                return kind
        return None


class ValueShape(str, Enum):
    """How a property item stores its value."""

    SINGLE = "single"
    LIST = "list"

    @classmethod
    def of(cls, attrs: AttributeBag, value_attr: Any) -> ValueShape:
        if (
            normalize_type(attrs.get("type"))
            in ("IFCPROPERTYLISTVALUE", "IFCPROPERTYENUMERATEDVALUE")
            and isinstance(value_attr, list)
        ):
            return cls.LIST
        return cls.SINGLE


def get_value_key(attrs: AttributeBag) -> str | None:
    """Name of the first attribute holding the item's value(s)."""
    return next(
        (name for name in attrs if name.endswith("Value") or name.endswith("Values")),
        None,
    )


class PropertyFacet(Facet):
    """Requires a named property, optionally with a value and data type."""

    facet_name: ClassVar[str] = "property"

    property_set: FacetParameter
    base_name: FacetParameter
    value: FacetParameter | None = None
    data_type: str | None = None
    """Declared IFC type of the value, e.g. 'IFCLABEL'."""

    uri: str | None = None

    def serialize(self, kind: FacetUsage = "requirement") -> str:
        return self._element_xml(
            kind,
            [
                get_parameter_xml("propertySet", self.property_set),
                get_parameter_xml("baseName", self.base_name),
                get_parameter_xml("value", self.value),
            ],
            attributes={"dataType": self.data_type},
            requirement_attributes={"uri": self.uri},
        )

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        sets: dict[int, AttributeBag] = {}
        for kind in SetKind:
            sets.update(await model.get_all_properties_of_type(kind.value))
        if not sets:
            return []

        matching_sets: list[int] = []
        for set_id, attrs in sets.items():
            if not matches(unwrap(attrs.get("Name")), self.property_set):
                continue
            kind = SetKind.of(attrs)
            for item_id in ref_ids(attrs.get(kind.items_attribute)):
                item = await model.get_properties(item_id)
                if item is None or normalize_type(item.get("type")) in UNSUPPORTED_TYPES:
                    continue
                if not matches(unwrap(item.get("Name")), self.base_name):
                    continue
                if self.value is not None and not self._eval_value(item, []):
                    continue
                matching_sets.append(set_id)
                break

        express_ids: list[int] = []
        for set_id in matching_sets:
            defined = indexer.get_entity_relations(
                model, set_id, InverseAttribute.DEFINES_OCURRENCE
            )
            express_ids.extend(defined or [])

        # Occurrences inheriting a matching set from their type object
        for type_id in indexer.get_entities_with_role(model, InverseAttribute.TYPES):
            type_attrs = await model.get_properties(type_id)
            if type_attrs is None:
                continue
            shared = set(matching_sets).intersection(ref_ids(type_attrs.get("HasPropertySets")))
            if not shared:
                continue
            shared_names = {unwrap(sets[set_id].get("Name")) for set_id in shared}
            typed = indexer.get_entity_relations(model, type_id, InverseAttribute.TYPES)
            for occurrence_id in typed or []:
                own_names = await self._own_set_names(model, indexer, occurrence_id)
                if shared_names <= own_names:
                    continue
                express_ids.append(occurrence_id)

        return await self._collect(model, express_ids, collector)

    @staticmethod
    async def _own_set_names(
        model: Model,
        indexer: RelationsIndexer,
        express_id: int,
    ) -> set[Any]:
        """Names of the sets defined on the occurrence itself."""
        names: set[Any] = set()
        definitions = indexer.get_entity_relations(
            model, express_id, InverseAttribute.IS_DEFINED_BY
        )
        for set_id in definitions or []:
            attrs = await model.get_properties(set_id)
            if SetKind.of(attrs) is not None:
                names.add(unwrap(attrs.get("Name")))
        return names

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def is_absent(self, result: TestResult) -> bool:
        """The set or the property is missing, with no value or type failure."""
        failed = [check for check in result.checks if not check.passed]
        return bool(failed) and all(
            check.parameter in ABSENCE_CHECKS and check.current_value is None
            for check in failed
        )

    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        sets = await self._get_psets(model, indexer, express_id)

        matching_sets: list[AttributeBag] = []
        for set_attrs in sets:
            set_name = unwrap(set_attrs.get("Name"))
            if set_name is None:
                logger.debug("Skipping unnamed set #%s", set_attrs.get("id"))
                continue
            if not matches(set_name, self.property_set):
                continue
            checks.append(self._passed("PropertySet", set_name, self.property_set))
            matching_sets.append(set_attrs)

        if not matching_sets:
            checks.append(self._failed("PropertySet", None, self.property_set))
            return

        for set_attrs in matching_sets:
            kind = SetKind.of(set_attrs)
            matching_items: list[AttributeBag] = []
            for item in set_attrs[kind.items_attribute]:
                if normalize_type(item.get("type")) in UNSUPPORTED_TYPES:
                    continue
                item_name = unwrap(item.get("Name"))
                if item_name is None or not matches(item_name, self.base_name):
                    continue
                checks.append(self._passed("BaseName", item_name, self.base_name))
                matching_items.append(item)

            if not matching_items:
                checks.append(self._failed("BaseName", None, self.base_name))
                continue

            for item in matching_items:
                self._eval_value(item, checks)
                self._eval_data_type(item, checks)
                self._eval_uri()

    async def _get_psets(
        self,
        model: Model,
        indexer: RelationsIndexer,
        express_id: int,
    ) -> list[AttributeBag]:
        """Sets of the entity with their items resolved to bags.

        Sets of the entity's type object are included unless the
        occurrence defines a set with the same name.
        """
        definitions = indexer.get_entity_relations(
            model, express_id, InverseAttribute.IS_DEFINED_BY
        )
        sets = await self._resolve_sets(model, definitions or [])

        type_ids = indexer.get_entity_relations(
            model, express_id, InverseAttribute.IS_TYPED_BY
        )
        occurrence_names = {unwrap(s.get("Name")) for s in sets}
        for type_id in type_ids or []:
            type_attrs = await model.get_properties(type_id)
            if type_attrs is None:
                continue
            type_sets = await self._resolve_sets(
                model, ref_ids(type_attrs.get("HasPropertySets"))
            )
            sets.extend(
                s for s in type_sets if unwrap(s.get("Name")) not in occurrence_names
            )

        return sets

    @staticmethod
    async def _resolve_sets(model: Model, set_ids: list[int]) -> list[AttributeBag]:
        sets: list[AttributeBag] = []
        for set_id in set_ids:
            attrs = await model.get_properties(set_id)
            kind = SetKind.of(attrs)
            if kind is None:
                continue

            items: list[AttributeBag] = []
            for item_id in ref_ids(attrs.get(kind.items_attribute)):
                item = await model.get_properties(item_id)
                if item is not None:
                    items.append(item)

            resolved = dict(attrs)
            resolved[kind.items_attribute] = items
            sets.append(resolved)
        return sets

    def _facet_value_for(self, value_attr: Any) -> FacetParameter | None:
        """Compare labels as text when the facet value is a simple one."""
        if (
            self.value is not None
            and self.value.type == "simple"
            and type_tag(value_attr) == "IFCLABEL"
        ):
            return SimpleParameter(parameter=format_value(self.value.parameter))
        return self.value

    def _eval_value(self, attrs: AttributeBag, checks: list[CheckRecord]) -> bool:
        value_key = get_value_key(attrs)

        if self.value is not None:
            if value_key is None:
                checks.append(self._failed("Value", None, self.value))
                return False

            value_attr = attrs[value_key]
            if ValueShape.of(attrs, value_attr) is ValueShape.LIST:
                values = [unwrap(v) for v in value_attr]
                passed = any(
                    matches(unwrap(v), self._facet_value_for(v)) for v in value_attr
                )
                checks.append(
                    CheckRecord(
                        parameter="Value",
                        current_value=values,
                        required_value=self.value.parameter,
                        passed=passed,
                    )
                )
                return passed

            return evaluate(
                unwrap(value_attr), self._facet_value_for(value_attr), "Value", checks
            )

        if value_key is None:
            return True
        value_attr = attrs[value_key]
        if ValueShape.of(attrs, value_attr) is ValueShape.LIST:
            return True

        value = unwrap(value_attr)

        # A property without a value counts as missing
        if value is None:
            checks.append(self._failed("Value", None, None))
            return False

        # Logical unknown always fails
        if type_tag(value_attr) == "IFCLOGICAL" and value == "UNKNOWN":
            checks.append(self._failed("Value", None, None))
            return False

        # An empty string is considered false
        if isinstance(value, str) and value.strip() == "":
            checks.append(self._failed("Value", "", None))
            return False

        return True

    def _eval_data_type(self, attrs: AttributeBag, checks: list[CheckRecord]) -> bool:
        if not self.data_type:
            return True
        value_key = get_value_key(attrs)
        value_attr = attrs.get(value_key) if value_key else None

        if ValueShape.of(attrs, value_attr) is ValueShape.LIST and value_attr:
            value_attr = value_attr[0]

        return evaluate(
            type_tag(value_attr),
            SimpleParameter(parameter=self.data_type.upper()),
            "DataType",
            checks,
        )

    def _eval_uri(self) -> bool:
        # URI resolution is not implemented; every URI is accepted
        return True

