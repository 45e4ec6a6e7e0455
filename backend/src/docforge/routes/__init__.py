"""Collection routes - actions, programmatic interface and registry."""

from docforge.routes.actions import ActionExecutor
from docforge.routes.registry import CollectionEntry, CollectionRegistry
from docforge.routes.route import Route

__all__ = ["ActionExecutor", "CollectionEntry", "CollectionRegistry", "Route"]
