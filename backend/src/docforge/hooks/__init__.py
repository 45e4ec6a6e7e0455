"""DocForge lifecycle hook pipeline.

Every route operation runs through ordered ``before.<action>`` and
``after.<action>`` events, at API (global) and route (local) scope:

- before listeners can rewrite the input payload or abort the operation
- after listeners see the stored result and can rewrite what the caller gets

Usage:
    from docforge.hooks import Event, ListenerAbort

    @api.routes["contact"].before("create")
    async def require_email(event: Event) -> None:
        if not event.data.get("email"):
            raise ListenerAbort("email is required")
"""

from docforge.core.errors import ListenerAbort, ListenerTimeout
from docforge.hooks.pipeline import EventPipeline
from docforge.hooks.registry import ListenerRegistry
from docforge.hooks.types import (
    CORRELATION_KEY,
    Action,
    ActionFn,
    Event,
    FilterOptions,
    Listener,
    PageRequest,
)

__all__ = [
    "CORRELATION_KEY",
    "Action",
    "ActionFn",
    "Event",
    "EventPipeline",
    "FilterOptions",
    "Listener",
    "ListenerAbort",
    "ListenerRegistry",
    "ListenerTimeout",
    "PageRequest",
]
