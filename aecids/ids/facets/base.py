"""Abstract Facet interface shared by every IDS facet."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Literal

from pydantic import BaseModel, ConfigDict

from aecids.ids.exporters import xml_attributes
from aecids.ids.parameters import FacetParameter, required_value
from aecids.ids.records import Cardinality, CheckRecord, TestResult
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, unwrap

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

FacetUsage = Literal["applicability", "requirement"]


class Facet(BaseModel, abc.ABC):
    """Base class for all facets.

    Facets are immutable once built.  :meth:`test` keeps its evidence in
    locals and returns it, so one facet can be evaluated concurrently
    against several models.
    """

    model_config = ConfigDict(frozen=True)

    facet_name: ClassVar[str]
    """XML element name, e.g. 'property'."""

    discoverable: ClassVar[bool] = True
    """Whether :meth:`get_entities` can enumerate candidates from a model."""

    cardinality: Cardinality = "required"
    instructions: str | None = None

    # ------------------------------------------------------------------
    # Interface
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def serialize(self, kind: FacetUsage = "requirement") -> str:
        """Return the IDS XML fragment of this facet."""

    async def get_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
        collector: dict[int, AttributeBag] | None = None,
    ) -> list[int]:
        """Find entities of *model* satisfying this facet.

        Bags of newly found entities are added to *collector*; entities
        already in it are not returned again.
        """
        raise NotImplementedError(
            f"{type(self).__name__} cannot enumerate entities"
        )

    async def test(
        self,
        entities: dict[int, AttributeBag],
        model: Model,
        indexer: RelationsIndexer,
    ) -> list[TestResult]:
        """Evaluate every entity, returning one result each in input order."""
        results: list[TestResult] = []
        for express_id, attrs in entities.items():
            result = TestResult(
                express_id=int(express_id),
                global_id=unwrap(attrs.get("GlobalId")),
                cardinality=self.cardinality,
            )
            await self._evaluate(int(express_id), attrs, model, indexer, result.checks)
            results.append(result.conclude())
        return results

    def is_absent(self, result: TestResult) -> bool:
        """True when *result* shows the constrained item does not exist.

        Used by the ``optional`` cardinality.  By default an item is
        absent when no check record passed.
        """
        return not any(check.passed for check in result.checks)

    @abc.abstractmethod
    async def _evaluate(
        self,
        express_id: int,
        attrs: AttributeBag,
        model: Model,
        indexer: RelationsIndexer,
        checks: list[CheckRecord],
    ) -> None:
        """Append the check records of one entity to *checks*."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _element_xml(
        self,
        kind: FacetUsage,
        children: Iterable[str],
        attributes: dict[str, Any] | None = None,
        requirement_attributes: dict[str, Any] | None = None,
    ) -> str:
        """Render ``<ids:{facet_name} ...>children</ids:{facet_name}>``.

        Cardinality, instructions and *requirement_attributes* are only
        written for requirements.
        """
        attrs = dict(attributes or {})
        if kind == "requirement":
            attrs["cardinality"] = self.cardinality
            attrs.update(requirement_attributes or {})
            attrs["instructions"] = self.instructions
        rendered = xml_attributes(attrs)
        opening = f"<ids:{self.facet_name} {rendered}>" if rendered else f"<ids:{self.facet_name}>"
        body = "".join(f"\n  {child}" for child in children if child)
        return f"{opening}{body}\n</ids:{self.facet_name}>"

    @staticmethod
    def _passed(label: str, value: Any, parameter: FacetParameter | None) -> CheckRecord:
        return CheckRecord(
            parameter=label,
            current_value=value,
            required_value=required_value(parameter),
            passed=True,
        )

    @staticmethod
    def _failed(label: str, value: Any, parameter: FacetParameter | None) -> CheckRecord:
        return CheckRecord(
            parameter=label,
            current_value=value,
            required_value=required_value(parameter),
            passed=False,
        )

    @staticmethod
    async def _collect(
        model: Model,
        express_ids: Iterable[int],
        collector: dict[int, AttributeBag] | None,
    ) -> list[int]:
        """Fetch bags for *express_ids* into *collector*; return the new ids."""
        if collector is None:
            collector = {}
        found: list[int] = []
        for express_id in express_ids:
            if express_id in collector:
                continue
            attrs = await model.get_properties(express_id)
            if attrs is None:
                continue
            collector[express_id] = attrs
            found.append(express_id)
        return found
