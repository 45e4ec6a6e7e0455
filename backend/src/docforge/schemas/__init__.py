"""Document schemas - declarations, YAML loading and validation."""

from docforge.schemas.loader import FieldDefinition, Schema, SchemaLoader

__all__ = ["FieldDefinition", "Schema", "SchemaLoader"]
