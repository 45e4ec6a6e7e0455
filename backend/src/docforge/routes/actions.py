"""Storage actions run in the pipeline's action phase.

Each action reads its input from ``event.data`` and replaces it with the
result. Failures are raised as DocForgeError subclasses.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from docforge.core.errors import InvalidParameter, MissingParameter, NotFound
from docforge.hooks.types import Action, ActionFn, Event, FilterOptions, PageRequest
from docforge.persistence.adapter import Contains, ModelHandle

logger = logging.getLogger(__name__)


def _as_filter_options(data: Any) -> FilterOptions:
    if isinstance(data, FilterOptions):
        return data
    if isinstance(data, dict):
        return FilterOptions(
            query=data.get("query"),
            strict=bool(data.get("strict", False)),
            page=data.get("page"),
            length=data.get("length"),
        )
    raise InvalidParameter(f"filter options must be an object, got {type(data).__name__}")


class ActionExecutor:
    """The storage operations of one collection.

    Args:
        name: Collection name (used in messages)
        model: Model handle performing the storage calls
    """

    def __init__(self, name: str, model: ModelHandle):
        self.name = name
        self.model = model

    def for_action(self, action: Action) -> ActionFn:
        """Return the action function for an Action."""
        return {
            Action.CREATE: self.create,
            Action.GET: self.get,
            Action.UPDATE: self.update,
            Action.DELETE: self.delete,
            Action.CLEAR: self.clear,
            Action.GET_ALL: self.get_all,
            Action.FIND: self.find,
            Action.FILTER: self.filter,
            Action.PAGER: self.pager,
            Action.FIND_ONE: self.find_one,
        }[action]

    async def create(self, event: Event) -> None:
        item = dict(event.data or {})
        item["createDate"] = datetime.now(UTC).isoformat()
        event.data = await self.model.insert(item)

    async def get(self, event: Event) -> None:
        id = event.data
        if not id:
            raise MissingParameter("id parameter is missing for route.get")
        item = await self.model.find_by_id(id)
        if item is None:
            raise NotFound(f"cannot find {self.name} with id {id}")
        event.data = item

    async def update(self, event: Event) -> None:
        item = event.data
        if not item:
            raise MissingParameter("item is missing for route.update")
        id = item.get("_id")
        if not id:
            raise MissingParameter("item._id is missing for route.update")

        existing = await self.model.find_by_id(id)
        if existing is None:
            raise NotFound(f"cannot find {self.name} with id {id}")

        # Shallow merge: every input field overwrites the stored one
        for key, value in item.items():
            existing[key] = value
        event.data = await self.model.update(id, existing)

    async def delete(self, event: Event) -> None:
        id = event.data
        if not id:
            raise MissingParameter("item._id is missing for route.delete")
        removed = await self.model.remove(id)
        if not removed:
            logger.debug("delete on %s: no document with id %s", self.name, id)
        event.data = {"_id": id, "ok": True}

    async def clear(self, event: Event) -> None:
        deleted = await self.model.remove_all()
        event.data = {"ok": True, "deleted": deleted}

    async def get_all(self, event: Event) -> None:
        event.data = await self.model.find()

    async def find(self, event: Event) -> None:
        event.data = await self.model.find(event.data or {})

    async def find_one(self, event: Event) -> None:
        event.data = await self.model.find_one(event.data or {})

    async def filter(self, event: Event) -> None:
        options = _as_filter_options(event.data)
        if options.query is None:
            raise MissingParameter("filter on route requires a query object")
        if not isinstance(options.query, dict):
            raise InvalidParameter("filter query must be an object")

        query: dict[str, Any] = dict(options.query)
        if not options.strict:
            for key, value in query.items():
                if isinstance(value, str) and self.model.schema.is_substring_field(key):
                    query[key] = Contains(value)

        count = await self.model.count(query)
        if options.page and options.length:
            page, length = int(options.page), int(options.length)
            if page < 1 or length < 1:
                raise InvalidParameter("page and length must be positive integers")
            items = await self.model.find(query, skip=(page - 1) * length, limit=length)
        else:
            items = await self.model.find(query)

        event.data = {"count": count, "items": items}

    async def pager(self, event: Event) -> None:
        request = event.data
        if isinstance(request, dict):
            request = PageRequest(**request)
        if not isinstance(request, PageRequest):
            raise InvalidParameter("pager requires a page and a length")
        event.data = await self.model.paginate(request.page, request.length)
