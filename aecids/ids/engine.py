"""IdsEngine — main entry point for checking models against IDS specifications.

Usage::

    from aecids.ids import IdsEngine

    engine = IdsEngine()
    model = engine.open("building.ifc")
    reports = await engine.check(model, specifications)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from aecids.ids.report import SpecificationReport
from aecids.ids.specification import Specification
from aecids.properties.ifc import IfcPropertySource
from aecids.properties.model import Model, ModelRegistry
from aecids.properties.source import PropertySource
from aecids.relations.indexer import RelationsIndexer

logger = logging.getLogger(__name__)


class IdsEngine:
    """Index models and check them against specifications.

    Parameters
    ----------
    registry:
        Registry owning the checked models.  A private one is created
        when omitted.
    """

    def __init__(self, registry: ModelRegistry | None = None) -> None:
        self.registry = registry if registry is not None else ModelRegistry()
        self.indexer = RelationsIndexer(self.registry)

    def load(self, source: PropertySource, model_id: str | None = None) -> Model:
        """Register a model reading its attributes from *source*."""
        return self.registry.add(Model(source, model_id))

    def open(self, path: str | Path, model_id: str | None = None) -> Model:
        """Parse the IFC file at *path* and register it."""
        return self.load(IfcPropertySource.open(str(path)), model_id)

    async def check(
        self,
        model: Model,
        specifications: Iterable[Specification],
    ) -> list[SpecificationReport]:
        """Check *model* against every specification, in order.

        The model's relations are indexed on first use and reused by
        later checks.

        Raises
        ------
        ModelPropertiesError
            If the model has no properties loaded.
        """
        await self.indexer.process(model)

        reports: list[SpecificationReport] = []
        for specification in specifications:
            report = await specification.test(model, self.indexer)
            logger.info(
                "Specification %r on %s: %s (%d entities)",
                specification.name,
                model.uuid,
                report.status,
                len(report.entities),
            )
            reports.append(report)
        return reports

    def dispose_model(self, model_id: str) -> bool:
        """Forget a model and its cached relations."""
        return self.registry.dispose(model_id)

    def dispose(self) -> None:
        """Release the indexer."""
        self.indexer.dispose()
