"""DocumentStore / ModelHandle Protocols: shared interface for document stores."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from docforge.schemas.loader import Schema

Document = dict[str, Any]
Query = dict[str, Any]


@dataclass(frozen=True)
class Contains:
    """Query matcher: the field's value contains ``value`` as a substring."""

    value: str


@runtime_checkable
class ModelHandle(Protocol):
    """Storage capabilities bound to one schema.

    All operations are coroutines; failures are raised as StoreError.
    """

    schema: Schema

    @property
    def name(self) -> str: ...

    async def insert(self, document: Document) -> Document: ...

    async def find_by_id(self, id: str) -> Document | None: ...

    async def find(
        self,
        query: Query | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]: ...

    async def find_one(self, query: Query | None = None) -> Document | None: ...

    async def update(self, id: str, document: Document) -> Document: ...

    async def remove(self, id: str) -> bool: ...

    async def remove_all(self) -> int: ...

    async def count(self, query: Query | None = None) -> int: ...

    async def paginate(
        self, page: int, length: int, query: Query | None = None
    ) -> dict[str, Any]: ...


@runtime_checkable
class DocumentStore(Protocol):
    """Interface all document stores must implement."""

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def model(self, schema: Schema) -> ModelHandle: ...
