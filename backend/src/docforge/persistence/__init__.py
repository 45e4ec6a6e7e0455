"""Persistence layer - document store and model handles."""

from docforge.persistence.adapter import Contains, DocumentStore, ModelHandle
from docforge.persistence.config import create_store
from docforge.persistence.documents import SQLDocumentStore, SQLModelHandle

__all__ = [
    "Contains",
    "DocumentStore",
    "ModelHandle",
    "SQLDocumentStore",
    "SQLModelHandle",
    "create_store",
]
