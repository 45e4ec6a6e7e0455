"""The DocForge API: every collection route plus the API-scope listeners."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any

from fastapi import APIRouter

from docforge.api.router import create_collection_router
from docforge.core.config import DEFAULT_LISTENER_TIMEOUT
from docforge.core.errors import DocForgeError
from docforge.hooks.registry import ListenerRegistry
from docforge.hooks.types import Action, Listener
from docforge.persistence.adapter import DocumentStore, ModelHandle
from docforge.routes.registry import CollectionRegistry
from docforge.routes.route import Route
from docforge.schemas.loader import Schema

logger = logging.getLogger(__name__)


class DocForgeApi:
    """Builds one Route per schema and the HTTP router serving them.

    Listeners registered here (API scope) run around every route's own
    listeners: before the local ones for ``before.*`` events and after
    them for ``after.*`` events.

    Custom endpoints go on a collection's extension router, mounted under
    ``/<name>`` ahead of the generated ones:

        stats = api.collection_router("contact")

        @stats.get("/stats")
        async def contact_stats(request: Request):
            ...

    Args:
        schemas: Schemas keyed by collection name
        store: Connected document store supplying model handles
        registry: Collection registry to fill (a new one if omitted)
        listener_timeout: Seconds one emission step may take (None = unbounded)
        allow_clear: Whether routes expose the destructive clear operation
        error_status_codes: Answer HTTP failures with real status codes
    """

    def __init__(
        self,
        schemas: Mapping[str, Schema],
        store: DocumentStore,
        registry: CollectionRegistry | None = None,
        *,
        listener_timeout: float | None = DEFAULT_LISTENER_TIMEOUT,
        allow_clear: bool = True,
        error_status_codes: bool = False,
    ):
        self.schemas = dict(schemas)
        self.store = store
        self.registry = registry if registry is not None else CollectionRegistry()
        self.listeners = ListenerRegistry("api")
        self.listener_timeout = listener_timeout
        self.allow_clear = allow_clear
        self._error_status_codes = error_status_codes
        self._generated: dict[str, APIRouter] = {}
        self._extensions: dict[str, APIRouter] = {}

        for name, schema in self.schemas.items():
            self.add_collection(name, schema)

    def add_collection(self, name: str, schema: Schema) -> Route | None:
        """Create and register the route for one schema.

        Returns:
            The new Route, or None if the name was already registered
        """
        if schema.name != name:
            schema = replace(schema, name=name)
        model = self.store.model(schema)
        route = Route(
            name,
            model,
            global_listeners=self.listeners,
            listener_timeout=self.listener_timeout,
            allow_clear=self.allow_clear,
        )
        if not self.registry.register(name, model, route):
            return None

        self._generated[name] = create_collection_router(
            route, error_status_codes=self._error_status_codes
        )
        logger.info("Built routes for %s", name)
        return route

    def collection_router(self, name: str) -> APIRouter:
        """Router for custom endpoints of a collection, prefixed ``/<name>``.

        Endpoints added here take precedence over the generated ones and
        must be registered before ``router`` is read (use ``create_app``'s
        ``setup`` hook).

        Raises:
            NotFound: If the collection is not registered
        """
        self.registry.get(name)
        if name not in self._extensions:
            self._extensions[name] = APIRouter(prefix=f"/{name}", tags=[name])
        return self._extensions[name]

    @property
    def router(self) -> APIRouter:
        """HTTP router of every collection: custom endpoints, then generated ones."""
        router = APIRouter()
        for name in self.registry.names():
            if name in self._extensions:
                router.include_router(self._extensions[name])
            if name in self._generated:
                router.include_router(self._generated[name])
        return router

    @property
    def routes(self) -> dict[str, Route]:
        return {entry.name: entry.route for entry in self.registry}

    @property
    def models(self) -> dict[str, ModelHandle]:
        return {entry.name: entry.model for entry in self.registry}

    def route(self, name: str) -> Route:
        """The Route of a collection. Raises NotFound if unknown."""
        return self.registry.get(name).route

    def before(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register an API-scope ``before.<action>`` listener."""
        return self.listeners.before(action, listener)

    def after(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register an API-scope ``after.<action>`` listener."""
        return self.listeners.after(action, listener)

    def on(self, event_name: str, listener: Listener) -> Listener:
        return self.listeners.on(event_name, listener)

    async def get_all_collections(self, user: Any) -> dict[str, Any]:
        """Every document of every collection, keyed by collection name.

        Development helper. Collections whose getAll fails are logged and
        left out of the result.
        """
        names = self.registry.names()
        results = await asyncio.gather(
            *(self.route(name).get_all(user) for name in names),
            return_exceptions=True,
        )

        collections: dict[str, Any] = {}
        for name, result in zip(names, results):
            if isinstance(result, DocForgeError):
                logger.error("getAll failed for %s: %s", name, result.message)
                continue
            if isinstance(result, BaseException):
                raise result
            collections[name] = result
        return collections
