"""Hook pipeline types for DocForge.

Defines the core data structures threaded through the lifecycle pipeline:
- Action: the operation being run (its value is the event-name suffix)
- Event: the mutable per-operation record every listener receives
- FilterOptions / PageRequest: typed input payloads for filter and pager
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Input key preserved across the pipeline for client-side reconciliation
CORRELATION_KEY = "uuid"


class Action(Enum):
    """Operations a route can run through the pipeline."""

    CREATE = "create"
    GET = "get"
    UPDATE = "update"
    DELETE = "delete"
    CLEAR = "clear"
    GET_ALL = "getAll"
    FIND = "find"
    FILTER = "filter"
    PAGER = "pager"
    FIND_ONE = "findOne"

    @property
    def before(self) -> str:
        return f"before.{self.value}"

    @property
    def after(self) -> str:
        return f"after.{self.value}"


@dataclass
class FilterOptions:
    """Input payload of the filter action.

    Attributes:
        query: Field query; string values match by substring unless strict
        strict: Match every value exactly
        page: 1-based page number (slice applied only with length)
        length: Page length
    """

    query: dict[str, Any] | None = None
    strict: bool = False
    page: int | None = None
    length: int | None = None


@dataclass
class PageRequest:
    """Input payload of the pager action."""

    page: int
    length: int


@dataclass
class Event:
    """Runtime record passed to every listener and to the action.

    Listeners receive the live object; replacing ``data`` changes what
    every later phase (and the caller) sees.

    Attributes:
        name: Collection (schema) name
        action: The operation being run
        data: Operation payload; holds the result once the action ran
        user: Caller identity, injected by the HTTP layer
        model: Model handle of the collection
        correlation: Client correlation token copied from the input
        state: Scratch space shared by the listeners of one operation
            (e.g. a before listener stashing a value for an after listener)
    """

    name: str
    action: Action
    data: Any
    user: Any
    model: Any = None
    correlation: Any = None
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def event_name(self) -> str:
        return self.action.value


# Listener signature: (Event) -> Awaitable[None] | None
Listener = Callable[[Event], Awaitable[None] | None]

# Action signature: async (Event) -> None, sets event.data to the result
ActionFn = Callable[[Event], Awaitable[None]]


def extract_correlation(data: Any) -> Any:
    """Return the correlation token carried by an input payload, if any."""
    if isinstance(data, dict):
        return data.get(CORRELATION_KEY)
    return None


def attach_correlation(data: Any, token: Any) -> None:
    """Write the correlation token onto a mapping payload."""
    if token is not None and isinstance(data, dict):
        data[CORRELATION_KEY] = token
