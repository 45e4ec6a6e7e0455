"""SQL-backed document store.

Documents of every collection live in one system table (``_documents``)
as JSON text. Field predicates are evaluated with SQLite's JSON1
functions, so queries run in the database rather than in Python.

The store accepts a SQLAlchemy database URL and creates its own engine.
"""

import json
import logging
import math
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from docforge.core.errors import StoreError
from docforge.core.types import CastError, cast_value, get_field_type
from docforge.persistence.adapter import Contains, Document, Query
from docforge.schemas.loader import Schema

logger = logging.getLogger(__name__)


def _json_path(key: str) -> str:
    """Convert a (possibly dotted) field name to a JSON path."""
    parts = key.split(".")
    for part in parts:
        if not part or '"' in part:
            raise StoreError(f"invalid field name in query: {key!r}")
    return "$" + "".join(f'."{part}"' for part in parts)


def _build_where(collection: str, query: Query | None) -> tuple[str, dict[str, Any]]:
    """Build a WHERE clause for an exact-field query.

    Values may be plain JSON values (equality), None (missing or null),
    or Contains matchers (substring).
    """
    clauses = ["collection = :collection"]
    params: dict[str, Any] = {"collection": collection}

    for i, (key, value) in enumerate((query or {}).items()):
        value_param = f"v{i}"
        if key == "_id" and not isinstance(value, Contains):
            if value is None:
                clauses.append("0")
            else:
                clauses.append(f"id = :{value_param}")
                params[value_param] = str(value)
            continue

        path_param = f"p{i}"
        params[path_param] = _json_path(key)
        field_expr = f"json_extract(body, :{path_param})"

        if isinstance(value, Contains):
            clauses.append(f"instr(CAST({field_expr} AS TEXT), :{value_param}) > 0")
            params[value_param] = value.value
        elif value is None:
            clauses.append(f"{field_expr} IS NULL")
        elif isinstance(value, (dict, list)):
            clauses.append(f"{field_expr} = json(:{value_param})")
            params[value_param] = json.dumps(value, separators=(",", ":"))
        else:
            clauses.append(f"{field_expr} = :{value_param}")
            params[value_param] = value

    return " AND ".join(clauses), params


def _row_to_document(row: Any) -> Document:
    return json.loads(row.body)


class SQLModelHandle:
    """Model handle for one collection in a SQLDocumentStore."""

    def __init__(self, store: "SQLDocumentStore", schema: Schema):
        self._store = store
        self.schema = schema

    def __repr__(self) -> str:
        return f"SQLModelHandle({self.name!r})"

    @property
    def name(self) -> str:
        return self.schema.name

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cast(self, document: Document, *, apply_defaults: bool = False) -> Document:
        try:
            return self.schema.cast_document(document, apply_defaults=apply_defaults)
        except CastError as e:
            raise StoreError(f"validation failed: {e}") from None

    def _cast_query(self, query: Query | None) -> Query:
        """Cast query values of declared fields to their field types."""
        cast: Query = {}
        for key, value in (query or {}).items():
            f = self.schema.get_field(key)
            if (
                f is None
                or get_field_type(f.type).name in ("array", "mixed")
                or value is None
                or isinstance(value, (Contains, dict, list))
            ):
                cast[key] = value
                continue
            try:
                cast[key] = cast_value(f.type, value)
            except CastError as e:
                raise StoreError(f"cast failed for {self.name}.{key}: {e}") from None
        return cast

    def _select(
        self, query: Query | None, skip: int = 0, limit: int | None = None
    ) -> list[Document]:
        where, params = _build_where(self.name, self._cast_query(query))
        sql = f"SELECT body FROM _documents WHERE {where} ORDER BY seq"
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            params["limit"] = limit
            params["offset"] = skip
        elif skip:
            sql += " LIMIT -1 OFFSET :offset"
            params["offset"] = skip

        with self._store.engine.connect() as conn:
            rows = conn.execute(text(sql), params).fetchall()
        return [_row_to_document(row) for row in rows]

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def insert(self, document: Document) -> Document:
        """Insert a new document, generating ``_id`` when absent."""
        stored = self._cast(document, apply_defaults=True)
        if not stored.get("_id"):
            stored["_id"] = uuid.uuid4().hex
        stored["_id"] = str(stored["_id"])
        now = datetime.now(UTC).isoformat()

        try:
            with self._store.engine.begin() as conn:
                conn.execute(
                    text("""
                        INSERT INTO _documents (collection, id, body, created_at, updated_at)
                        VALUES (:collection, :id, :body, :now, :now)
                    """),
                    {
                        "collection": self.name,
                        "id": stored["_id"],
                        "body": json.dumps(stored, default=str),
                        "now": now,
                    },
                )
        except IntegrityError:
            raise StoreError(
                f"duplicate key: {self.name} with id {stored['_id']} already exists"
            ) from None
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        return stored

    async def find_by_id(self, id: str) -> Document | None:
        try:
            with self._store.engine.connect() as conn:
                row = conn.execute(
                    text("SELECT body FROM _documents WHERE collection = :collection AND id = :id"),
                    {"collection": self.name, "id": str(id)},
                ).fetchone()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return _row_to_document(row) if row else None

    async def find(
        self,
        query: Query | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        try:
            return self._select(query, skip, limit)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def find_one(self, query: Query | None = None) -> Document | None:
        items = await self.find(query, limit=1)
        return items[0] if items else None

    async def update(self, id: str, document: Document) -> Document:
        """Replace the stored body of document ``id``."""
        stored = self._cast(document)
        stored["_id"] = str(id)
        try:
            with self._store.engine.begin() as conn:
                result = conn.execute(
                    text("""
                        UPDATE _documents SET body = :body, updated_at = :now
                        WHERE collection = :collection AND id = :id
                    """),
                    {
                        "collection": self.name,
                        "id": str(id),
                        "body": json.dumps(stored, default=str),
                        "now": datetime.now(UTC).isoformat(),
                    },
                )
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        if result.rowcount == 0:
            raise StoreError(f"cannot update {self.name} with id {id}: no such document")
        return stored

    async def remove(self, id: str) -> bool:
        try:
            with self._store.engine.begin() as conn:
                result = conn.execute(
                    text("DELETE FROM _documents WHERE collection = :collection AND id = :id"),
                    {"collection": self.name, "id": str(id)},
                )
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return result.rowcount > 0

    async def remove_all(self) -> int:
        try:
            with self._store.engine.begin() as conn:
                result = conn.execute(
                    text("DELETE FROM _documents WHERE collection = :collection"),
                    {"collection": self.name},
                )
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        logger.info("Removed %d document(s) from %s", result.rowcount, self.name)
        return result.rowcount

    async def count(self, query: Query | None = None) -> int:
        where, params = _build_where(self.name, self._cast_query(query))
        try:
            with self._store.engine.connect() as conn:
                return conn.execute(
                    text(f"SELECT COUNT(*) FROM _documents WHERE {where}"), params
                ).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def paginate(
        self, page: int, length: int, query: Query | None = None
    ) -> dict[str, Any]:
        """Return one 1-based page of matching documents plus page metadata."""
        if page < 1 or length < 1:
            raise StoreError("page and length must be positive integers")
        total = await self.count(query)
        items = await self.find(query, skip=(page - 1) * length, limit=length)
        return {
            "items": items,
            "count": total,
            "page": page,
            "length": length,
            "pages": math.ceil(total / length),
        }


class SQLDocumentStore:
    """Document store over a SQLAlchemy engine (SQLite JSON1)."""

    def __init__(self, database_url: str = "sqlite:///:memory:"):
        """Initialize the store.

        Args:
            database_url: SQLAlchemy-compatible database URL.
                          Examples:
                            "sqlite:///data/docforge.db"
                            "sqlite:///:memory:"
        """
        self.database_url = database_url
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreError("Document store not connected")
        return self._engine

    def connect(self) -> None:
        """Create the engine and the documents table."""
        if self._engine is not None:
            return
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if self.database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.database_url, **kwargs)
        self._ensure_table()
        logger.info("Document store connected: %s", self.database_url)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Document store closed")

    def _ensure_table(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS _documents (
                    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection  TEXT NOT NULL,
                    id          TEXT NOT NULL,
                    body        TEXT NOT NULL,
                    created_at  TEXT,
                    updated_at  TEXT,
                    UNIQUE (collection, id)
                )
            """))
            conn.execute(text("""
                CREATE INDEX IF NOT EXISTS idx_documents_collection
                ON _documents(collection, seq)
            """))

    def model(self, schema: Schema) -> SQLModelHandle:
        """Return a model handle bound to a schema."""
        return SQLModelHandle(self, schema)
