"""Load and resolve document schemas from YAML files or mappings."""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from docforge.core.types import CastError, cast_value, get_field_type

logger = logging.getLogger(__name__)

# Fields every stored document may carry regardless of its schema
RESERVED_FIELDS = ("_id", "createDate")


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    type: str = "mixed"
    required: bool = False
    default: Any = None


@dataclass(frozen=True)
class Schema:
    """A named, immutable field-type declaration for one collection."""

    name: str
    fields: tuple[FieldDefinition, ...] = ()
    description: str = ""
    strict: bool = True

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "Schema":
        """Build a Schema from a mapping.

        Accepts both the short form ``{"title": "string"}`` and the long
        form ``{"title": {"type": "string", "required": true}}``.
        """
        fields = []
        for field_name, spec in data.items():
            fields.append(_resolve_field(field_name, spec))
        return cls(name=name, fields=tuple(fields))

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def cast_document(self, data: Mapping[str, Any], *, apply_defaults: bool = False) -> dict[str, Any]:
        """Cast a document to this schema.

        Undeclared fields are dropped when the schema is strict. Reserved
        fields are always kept.

        Raises:
            CastError: If a value cannot be cast or a required field is missing
        """
        document: dict[str, Any] = {}
        for key in RESERVED_FIELDS:
            if key in data:
                document[key] = data[key]

        for f in self.fields:
            if f.name in data:
                try:
                    document[f.name] = cast_value(f.type, data[f.name])
                except CastError as e:
                    raise CastError(f"{self.name}.{f.name}: {e}") from None
            elif apply_defaults and f.default is not None:
                document[f.name] = copy.deepcopy(f.default)

            if f.required and document.get(f.name) is None:
                raise CastError(f"{self.name}.{f.name} is required")

        if not self.strict:
            for key, value in data.items():
                document.setdefault(key, value)

        return document

    def is_substring_field(self, name: str) -> bool:
        """Whether non-strict filters may match this field by substring."""
        f = self.get_field(name)
        if f is None:
            return True
        field_type = get_field_type(f.type)
        return field_type.substring_match or field_type.name == "mixed"


def _resolve_field(name: str, spec: Any) -> FieldDefinition:
    if isinstance(spec, str):
        get_field_type(spec)
        return FieldDefinition(name=name, type=spec)

    if isinstance(spec, list):
        # [string] style declares an array
        return FieldDefinition(name=name, type="array")

    if isinstance(spec, Mapping):
        type_name = spec.get("type", "mixed")
        get_field_type(type_name)
        return FieldDefinition(
            name=name,
            type=type_name,
            required=bool(spec.get("required", False)),
            default=spec.get("default"),
        )

    if spec is None:
        return FieldDefinition(name=name)

    raise ValueError(f"Invalid declaration for field '{name}': {spec!r}")


class SchemaLoader:
    """Loads schema definitions from a directory of YAML files.

    Each file declares one schema::

        schema: contact
        description: People we talk to
        fields:
          name: {type: string, required: true}
          email: string
          tags: [string]
    """

    def __init__(self, schema_path: Path):
        self.schema_path = schema_path
        self.schemas: dict[str, Schema] = {}

    def load_all(self) -> dict[str, Schema]:
        """Load every ``*.yaml`` / ``*.yml`` file in the schema directory."""
        if not self.schema_path.exists():
            logger.warning("Schema directory not found: %s", self.schema_path)
            return self.schemas

        files = sorted(self.schema_path.glob("*.yaml")) + sorted(self.schema_path.glob("*.yml"))
        for yaml_file in files:
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if not data or "schema" not in data:
                logger.warning("Skipping %s: no 'schema' key", yaml_file.name)
                continue
            schema = self.resolve(data)
            if schema.name in self.schemas:
                raise ValueError(
                    f"Schema '{schema.name}' declared more than once ({yaml_file.name})"
                )
            self.schemas[schema.name] = schema

        return self.schemas

    def resolve(self, data: Mapping[str, Any]) -> Schema:
        """Resolve one parsed YAML document into a Schema."""
        name = data["schema"]
        raw_fields = data.get("fields") or {}

        if isinstance(raw_fields, list):
            # List form: [{name: title, type: string}, ...]
            fields = tuple(
                _resolve_field(item["name"], {k: v for k, v in item.items() if k != "name"})
                for item in raw_fields
            )
        else:
            fields = tuple(_resolve_field(k, v) for k, v in raw_fields.items())

        return Schema(
            name=name,
            fields=fields,
            description=data.get("description", ""),
            strict=data.get("strict", True),
        )

    def get_schema(self, name: str) -> Schema | None:
        return self.schemas.get(name)

    def list_schemas(self) -> list[str]:
        return sorted(self.schemas.keys())
