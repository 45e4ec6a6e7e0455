"""Programmatic interface to one collection.

A Route bundles a collection's model handle, its route-scope listeners
and its pipeline. Every operation runs through the pipeline:

    contacts = Route("contact", store.model(schema))

    @contacts.before("create")
    async def lowercase_email(event):
        event.data["email"] = event.data["email"].lower()

    created = await contacts.create({"email": "A@B.C"}, user=current_user)

Operations return the final ``event.data`` and raise DocForgeError on
failure. Passing ``on_failure`` delivers the failure to that callback
instead; ``on_success`` receives the result.
"""

import logging
from collections.abc import Callable
from typing import Any

from docforge.core.config import DEFAULT_LISTENER_TIMEOUT
from docforge.core.errors import ActionDisabled, DocForgeError, MissingParameter
from docforge.hooks.pipeline import EventPipeline, FailureCallback, SuccessCallback, invoke
from docforge.hooks.registry import ListenerRegistry
from docforge.hooks.types import Action, FilterOptions, Listener, PageRequest
from docforge.persistence.adapter import ModelHandle
from docforge.routes.actions import ActionExecutor

logger = logging.getLogger(__name__)


class Route:
    """CRUD operations of one collection, wrapped in the hook pipeline.

    Args:
        name: Collection name
        model: Model handle bound to the collection's schema
        global_listeners: API-scope listeners wrapping this route's own
        listener_timeout: Seconds one emission step may take (None = unbounded)
        allow_clear: Whether the destructive clear operation is available
    """

    def __init__(
        self,
        name: str,
        model: ModelHandle,
        *,
        global_listeners: ListenerRegistry | None = None,
        listener_timeout: float | None = DEFAULT_LISTENER_TIMEOUT,
        allow_clear: bool = True,
    ):
        self.name = name
        self.model = model
        self.listeners = ListenerRegistry(name)
        self.pipeline = EventPipeline(
            name,
            self.listeners,
            global_listeners,
            model=model,
            listener_timeout=listener_timeout,
        )
        self.actions = ActionExecutor(name, model)
        self.allow_clear = allow_clear

    def __repr__(self) -> str:
        return f"Route({self.name!r})"

    @property
    def schema(self):
        return self.model.schema

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def before(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register a route-scope ``before.<action>`` listener."""
        return self.listeners.before(action, listener)

    def after(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register a route-scope ``after.<action>`` listener."""
        return self.listeners.after(action, listener)

    def on(self, event_name: str, listener: Listener) -> Listener:
        return self.listeners.on(event_name, listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run(
        self,
        action: Action,
        data: Any,
        user: Any,
        on_success: SuccessCallback | None,
        on_failure: FailureCallback | None,
    ) -> Any:
        return await self.pipeline.run(
            action,
            data,
            self.actions.for_action(action),
            user,
            on_success=on_success,
            on_failure=on_failure,
        )

    async def _reject(self, error: DocForgeError, on_failure: FailureCallback | None) -> None:
        """Report a failure detected before the pipeline started."""
        logger.warning("%s: %s", self.name, error.message)
        if on_failure is None:
            raise error
        await invoke(on_failure, error)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(
        self,
        item: dict[str, Any] | None = None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Insert a new document."""
        return await self._run(Action.CREATE, item if item else {}, user, on_success, on_failure)

    async def get(
        self,
        id: str | None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Fetch one document by id."""
        if not id:
            return await self._reject(
                MissingParameter("id parameter is missing for route.get"), on_failure
            )
        return await self._run(Action.GET, id, user, on_success, on_failure)

    async def update(
        self,
        item: dict[str, Any] | None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Merge ``item`` onto the stored document ``item["_id"]``."""
        if not item:
            return await self._reject(
                MissingParameter("item is missing for route.update"), on_failure
            )
        if not item.get("_id"):
            return await self._reject(
                MissingParameter("item._id is missing for route.update"), on_failure
            )
        return await self._run(Action.UPDATE, item, user, on_success, on_failure)

    async def delete(
        self,
        id: str | None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Remove one document. Acknowledges even when nothing matched."""
        if not id:
            return await self._reject(
                MissingParameter("item._id is missing for route.delete"), on_failure
            )
        return await self._run(Action.DELETE, id, user, on_success, on_failure)

    async def clear(
        self,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Remove every document of the collection. Disabled in production."""
        if not self.allow_clear:
            return await self._reject(
                ActionDisabled(f"clear is disabled for {self.name} in this environment"),
                on_failure,
            )
        return await self._run(Action.CLEAR, self.name, user, on_success, on_failure)

    async def get_all(
        self,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Every document of the collection, in store order."""
        return await self._run(Action.GET_ALL, self.name, user, on_success, on_failure)

    async def find(
        self,
        query: dict[str, Any] | None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Documents whose fields equal the query's values."""
        return await self._run(Action.FIND, query, user, on_success, on_failure)

    async def filter(
        self,
        options: FilterOptions | dict[str, Any],
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Substring (or strict) search returning ``{"count", "items"}``."""
        return await self._run(Action.FILTER, options, user, on_success, on_failure)

    async def pager(
        self,
        page: int,
        length: int,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """One 1-based page of all documents plus page metadata."""
        return await self._run(
            Action.PAGER, PageRequest(page=page, length=length), user, on_success, on_failure
        )

    async def find_one(
        self,
        query: dict[str, Any] | None,
        user: Any = None,
        *,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """First matching document, or None."""
        return await self._run(Action.FIND_ONE, query, user, on_success, on_failure)
