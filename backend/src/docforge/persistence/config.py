"""Document store factory."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docforge.persistence.adapter import DocumentStore


def create_store(database_url: str) -> DocumentStore:
    """Create a document store based on the database URL scheme.

    Args:
        database_url: SQLAlchemy URL of the database.

    Returns:
        A DocumentStore instance (not yet connected).

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if database_url.startswith("sqlite"):
        from docforge.persistence.documents import SQLDocumentStore

        if database_url in ("sqlite://", "sqlite:///"):
            database_url = "sqlite:///:memory:"

        # Ensure parent directory exists for file databases
        db_path = database_url.replace("sqlite:///", "", 1)
        if db_path and db_path != ":memory:" and database_url.startswith("sqlite:///"):
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        return SQLDocumentStore(database_url)

    raise ValueError(f"Unsupported database URL scheme: {database_url}")
