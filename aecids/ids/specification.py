"""Specification — applicability facets plus requirement facets."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from aecids.ids.exporters import xml_attributes
from aecids.ids.facets.base import Facet
from aecids.ids.records import TestResult
from aecids.ids.report import EntityResult, SpecificationReport
from aecids.properties.model import Model
from aecids.properties.values import AttributeBag, unwrap

if TYPE_CHECKING:
    from aecids.relations.indexer import RelationsIndexer

logger = logging.getLogger(__name__)


def complies(result: TestResult, facet: Facet | None = None) -> bool:
    """Apply the requirement's cardinality to a facet result.

    * ``required`` — the facet must pass.
    * ``prohibited`` — the facet must not pass.
    * ``optional`` — the facet passes, or the item it constrains is
      absent.  Absence is decided by :meth:`Facet.is_absent` when *facet*
      is given, otherwise it means no check record passed.
    """
    if result.cardinality == "required":
        return result.passed
    if result.cardinality == "prohibited":
        return not result.passed
    if result.passed:
        return True
    if facet is not None:
        return facet.is_absent(result)
    return not any(check.passed for check in result.checks)


class Specification(BaseModel):
    """One IDS specification.

    Applicability facets select the entities a specification talks
    about; every requirement facet is then tested on that selection.
    """

    name: str
    description: str | None = None
    instructions: str | None = None
    identifier: str | None = None
    ifc_versions: list[str] = Field(default_factory=lambda: ["IFC4"])

    applicability: list[Facet] = Field(default_factory=list)
    requirements: list[Facet] = Field(default_factory=list)

    async def get_applicable_entities(
        self,
        model: Model,
        indexer: RelationsIndexer,
    ) -> dict[int, AttributeBag]:
        """Entities matching every applicability facet, keyed by express id.

        The first facet able to enumerate entities seeds the candidates;
        the others narrow them down.
        """
        if not self.applicability:
            return {}

        seed = next((f for f in self.applicability if f.discoverable), None)
        if seed is None:
            raise ValueError(
                f"Specification {self.name!r} has no applicability facet "
                "able to enumerate entities"
            )

        candidates: dict[int, AttributeBag] = {}
        await seed.get_entities(model, indexer, candidates)

        for facet in self.applicability:
            if facet is seed or not candidates:
                continue
            results = await facet.test(candidates, model, indexer)
            keep = {r.express_id for r in results if r.passed}
            candidates = {k: v for k, v in candidates.items() if k in keep}

        return candidates

    async def test(self, model: Model, indexer: RelationsIndexer) -> SpecificationReport:
        """Check *model* against this specification."""
        entities = await self.get_applicable_entities(model, indexer)
        logger.debug("Specification %r applies to %d entities", self.name, len(entities))

        per_entity: dict[int, list[TestResult]] = {express_id: [] for express_id in entities}
        compliant: dict[int, bool] = {express_id: True for express_id in entities}
        for facet in self.requirements:
            for result in await facet.test(entities, model, indexer):
                per_entity[result.express_id].append(result)
                if not complies(result, facet):
                    compliant[result.express_id] = False

        entity_results = [
            EntityResult(
                express_id=express_id,
                global_id=unwrap(entities[express_id].get("GlobalId")),
                status="pass" if compliant[express_id] else "fail",
                results=results,
            )
            for express_id, results in per_entity.items()
        ]

        if not entity_results:
            status = "not_applicable"
        elif all(e.status == "pass" for e in entity_results):
            status = "pass"
        else:
            status = "fail"

        return SpecificationReport(
            specification=self.name,
            model_id=model.uuid,
            status=status,
            entities=entity_results,
        )

    def serialize(self) -> str:
        """Return the ``<ids:specification>`` element."""
        attrs = xml_attributes(
            {
                "name": self.name,
                "ifcVersion": " ".join(self.ifc_versions),
                "identifier": self.identifier,
                "description": self.description,
                "instructions": self.instructions,
            }
        )
        applicability = "".join(
            f"\n    {f.serialize('applicability')}" for f in self.applicability
        )
        requirements = "".join(
            f"\n    {f.serialize('requirement')}" for f in self.requirements
        )
        return (
            f"<ids:specification {attrs}>\n"
            f'  <ids:applicability minOccurs="0" maxOccurs="unbounded">{applicability}\n'
            f"  </ids:applicability>\n"
            f"  <ids:requirements>{requirements}\n"
            f"  </ids:requirements>\n"
            f"</ids:specification>"
        )
