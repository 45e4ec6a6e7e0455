"""Event pipeline for DocForge.

Runs one action through its lifecycle phases:

    before.<action> (global) -> before.<action> (local) -> action
        -> after.<action> (local) -> after.<action> (global)

Global listeners wrap local ones. Phases run strictly in sequence; the
listeners of one phase are started together in registration order and
joined before the pipeline moves on. A phase with no listeners is skipped
without yielding to the event loop. The first failure aborts the run and
is reported exactly once.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from docforge.core.config import DEFAULT_LISTENER_TIMEOUT
from docforge.core.errors import (
    DocForgeError,
    IdentityMissing,
    ListenerAbort,
    ListenerTimeout,
    StoreError,
)
from docforge.hooks.registry import ListenerRegistry
from docforge.hooks.types import (
    Action,
    ActionFn,
    Event,
    Listener,
    attach_correlation,
    extract_correlation,
)

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], Awaitable[None] | None]
FailureCallback = Callable[[DocForgeError], Awaitable[None] | None]


async def invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a plain or async callable and await its result if needed."""
    result = fn(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class EventPipeline:
    """Runs route actions through the before/action/after phases.

    Args:
        name: Collection name the pipeline belongs to
        local: Route-scope listeners
        global_: API-scope listeners (None for a standalone route)
        model: Model handle exposed to listeners as ``event.model``
        listener_timeout: Seconds one emission step may take (None = unbounded)
    """

    def __init__(
        self,
        name: str,
        local: ListenerRegistry,
        global_: ListenerRegistry | None = None,
        model: Any = None,
        listener_timeout: float | None = DEFAULT_LISTENER_TIMEOUT,
    ):
        self.name = name
        self.local = local
        self.global_ = global_
        self.model = model
        self.listener_timeout = listener_timeout

    async def run(
        self,
        action: Action,
        data: Any,
        action_fn: ActionFn,
        user: Any,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> Any:
        """Run an action through the pipeline.

        Args:
            action: The operation being run
            data: Input payload (becomes ``event.data``)
            action_fn: Coroutine performing the storage operation
            user: Caller identity; required
            on_success: Optional callback receiving the final ``event.data``
            on_failure: Optional callback receiving the failure. When given,
                failures are delivered to it instead of being raised.

        Returns:
            The final ``event.data``, or None if the failure went to on_failure.

        Raises:
            DocForgeError: On failure, unless on_failure is supplied
        """
        try:
            result = await self._run(action, data, action_fn, user)
        except DocForgeError as e:
            logger.warning("%s.%s failed: %s", self.name, action.value, e.message)
            if on_failure is None:
                raise
            await invoke(on_failure, e)
            return None

        if on_success is not None:
            await invoke(on_success, result)
        return result

    async def _run(self, action: Action, data: Any, action_fn: ActionFn, user: Any) -> Any:
        if not user:
            raise IdentityMissing(f"cannot find user in {self.name}.{action.value}")

        event = Event(
            name=self.name,
            action=action,
            data=data,
            user=user,
            model=self.model,
            correlation=extract_correlation(data),
        )

        await self.emit(self.global_, action.before, event)
        await self.emit(self.local, action.before, event)

        try:
            await action_fn(event)
        except DocForgeError:
            raise
        except Exception as e:
            logger.exception("%s.%s action raised", self.name, action.value)
            raise StoreError(str(e)) from e

        attach_correlation(event.data, event.correlation)

        await self.emit(self.local, action.after, event)
        await self.emit(self.global_, action.after, event)

        # After-listeners may have replaced the payload
        attach_correlation(event.data, event.correlation)
        return event.data

    async def emit(
        self, registry: ListenerRegistry | None, event_name: str, event: Event
    ) -> None:
        """Run every listener of ``event_name`` and wait for all of them.

        Raises:
            ListenerAbort: If a listener fails (remaining ones are cancelled)
            ListenerTimeout: If the listeners do not finish in time
        """
        if registry is None:
            return
        listeners = registry.listeners(event_name)
        if not listeners:
            return

        tasks = [asyncio.ensure_future(invoke(listener, event)) for listener in listeners]
        try:
            done, pending = await asyncio.wait(
                tasks,
                timeout=self.listener_timeout,
                return_when=asyncio.FIRST_EXCEPTION,
            )
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for listener, task in zip(listeners, tasks):
            if task not in done:
                continue
            if task.cancelled():
                raise ListenerAbort(f"{event_name} listener was cancelled on {self.name}")
            error = task.exception()
            if isinstance(error, DocForgeError):
                raise error
            if error is not None:
                raise self._as_abort(error, event_name, listener) from error

        if pending:
            raise ListenerTimeout(
                f"{event_name} listeners on {self.name} did not finish "
                f"within {self.listener_timeout}s"
            )

    def _as_abort(
        self, error: BaseException, event_name: str, listener: Listener
    ) -> ListenerAbort:
        logger.warning(
            "%s listener %s on %s raised: %s",
            event_name,
            getattr(listener, "__name__", repr(listener)),
            self.name,
            error,
        )
        return ListenerAbort(str(error) or f"{event_name} listener failed on {self.name}")
