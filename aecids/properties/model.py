"""Model handles and their registry."""

from __future__ import annotations

import logging
import uuid

from aecids.events import Event
from aecids.properties.source import PropertySource
from aecids.properties.values import AttributeBag

logger = logging.getLogger(__name__)


class ModelPropertiesError(Exception):
    """Raised when an operation needs property data the model does not expose."""


class Model:
    """Opaque handle on one loaded model.

    Parameters
    ----------
    source:
        Attribute accessor for the model, or None when properties were
        not loaded.
    model_id:
        Stable identifier.  A random one is generated when omitted.
    """

    def __init__(
        self,
        source: PropertySource | None = None,
        model_id: str | None = None,
    ) -> None:
        self.uuid = model_id or uuid.uuid4().hex
        self.source = source

    @property
    def has_properties(self) -> bool:
        return self.source is not None

    async def get_properties(self, express_id: int) -> AttributeBag | None:
        if self.source is None:
            return None
        return await self.source.get_properties(express_id)

    async def get_all_properties_of_type(self, ifc_class: str) -> dict[int, AttributeBag]:
        if self.source is None:
            return {}
        return await self.source.get_all_properties_of_type(ifc_class)

    async def get_entity_types(self) -> set[str]:
        if self.source is None:
            return set()
        return await self.source.get_entity_types()

    def __repr__(self) -> str:
        return f"Model(uuid={self.uuid!r}, has_properties={self.has_properties})"


class ModelRegistry:
    """Owns loaded models and announces their disposal.

    ``on_model_disposed`` fires synchronously with the model id, so any
    cache keyed by that id is gone before :meth:`dispose` returns.
    """

    def __init__(self) -> None:
        self.models: dict[str, Model] = {}
        self.on_model_disposed: Event[str] = Event()

    def add(self, model: Model) -> Model:
        if model.uuid in self.models:
            raise ValueError(f"Model '{model.uuid}' is already registered.")
        self.models[model.uuid] = model
        logger.debug("Registered model %s", model.uuid)
        return model

    def get(self, model_id: str) -> Model | None:
        return self.models.get(model_id)

    def dispose(self, model_id: str) -> bool:
        """Forget *model_id* and notify subscribers.

        Subscribers are notified even for ids that were never registered,
        since caches may be keyed by ids of unregistered models.  Returns
        False if the id was unknown.
        """
        model = self.models.pop(model_id, None)
        self.on_model_disposed.trigger(model_id)
        logger.info("Disposed model %s", model_id)
        return model is not None
