"""Collection registry for DocForge.

Maps collection names to their model handle and route. Written at
startup, read afterwards. There is no deregistration.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docforge.core.errors import DuplicateRegistration, NotFound
from docforge.persistence.adapter import ModelHandle

if TYPE_CHECKING:
    from docforge.routes.route import Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionEntry:
    name: str
    model: ModelHandle
    route: "Route"


class CollectionRegistry:
    """Registry of collections, passed explicitly to whoever needs it.

    Example:
        registry = CollectionRegistry()
        registry.register("contact", model, route)
        registry.get("contact").route
    """

    def __init__(self) -> None:
        self._entries: dict[str, CollectionEntry] = {}

    def register(self, name: str, model: ModelHandle, route: "Route") -> bool:
        """Register a collection.

        A second registration under the same name is rejected: the error is
        logged and the original entry stays in place.

        Returns:
            True if registered, False if the name was already taken
        """
        if name in self._entries:
            error = DuplicateRegistration(f"{name} route already exists")
            logger.error(error.message)
            return False
        self._entries[name] = CollectionEntry(name=name, model=model, route=route)
        logger.debug("Registered collection %s", name)
        return True

    def lookup(self, name: str) -> CollectionEntry | None:
        return self._entries.get(name)

    def get(self, name: str) -> CollectionEntry:
        """Get a registered collection.

        Raises:
            NotFound: If no collection is registered under the name
        """
        entry = self._entries.get(name)
        if entry is None:
            raise NotFound(f"collection '{name}' is not registered")
        return entry

    def names(self) -> list[str]:
        """Registered names, in registration order."""
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CollectionEntry]:
        return iter(list(self._entries.values()))
