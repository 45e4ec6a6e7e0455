"""
schemas/validator.py: JSON Schema validation for DocForge schema YAML files.

Usage:
    from docforge.schemas.validator import validate_schema_dir

    issues = validate_schema_dir(Path("schemas"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from docforge.core.types import FIELD_TYPES, TYPE_ALIASES

logger = logging.getLogger(__name__)

_TYPE_NAMES = sorted(set(FIELD_TYPES) | set(TYPE_ALIASES))

_FIELD_SPEC: dict[str, Any] = {
    "oneOf": [
        {"type": "string", "enum": _TYPE_NAMES},
        {"type": "array", "maxItems": 1},
        {"type": "null"},
        {
            "type": "object",
            "properties": {
                "type": {"type": "string", "enum": _TYPE_NAMES},
                "required": {"type": "boolean"},
                "default": {},
            },
            "additionalProperties": False,
        },
    ]
}

SCHEMA_FILE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["schema"],
    "properties": {
        "schema": {"type": "string", "pattern": "^[A-Za-z][A-Za-z0-9_-]*$"},
        "description": {"type": "string"},
        "strict": {"type": "boolean"},
        "fields": {
            "oneOf": [
                {"type": "object", "additionalProperties": _FIELD_SPEC},
                {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["name"],
                        "properties": {
                            "name": {"type": "string"},
                            "type": {"type": "string", "enum": _TYPE_NAMES},
                            "required": {"type": "boolean"},
                            "default": {},
                        },
                        "additionalProperties": False,
                    },
                },
            ]
        },
    },
    "additionalProperties": False,
}


@dataclass
class ValidationIssue:
    """A single validation finding for a schema YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields/title"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


def _json_path(error: ValidationError) -> str:
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def validate_yaml_file(yaml_path: Path) -> list[ValidationIssue]:
    """Validate a single schema YAML file.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    validator = Draft202012Validator(SCHEMA_FILE_SCHEMA)
    return [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(raw), key=lambda e: list(e.path))
    ]


def validate_schema_dir(schema_dir: Path) -> list[ValidationIssue]:
    """Validate every YAML file in *schema_dir*.

    Also reports schema names declared by more than one file.
    """
    if not schema_dir.is_dir():
        return [
            ValidationIssue(
                file=schema_dir,
                message=f"Schema directory does not exist: {schema_dir}",
            )
        ]

    all_issues: list[ValidationIssue] = []
    seen: dict[str, Path] = {}

    files = sorted(schema_dir.glob("*.yaml")) + sorted(schema_dir.glob("*.yml"))
    if not files:
        all_issues.append(
            ValidationIssue(
                file=schema_dir, message="No schema files found", severity="warning"
            )
        )

    for yaml_file in files:
        file_issues = validate_yaml_file(yaml_file)
        all_issues.extend(file_issues)
        if file_issues:
            continue

        with yaml_file.open() as fh:
            name = yaml.safe_load(fh)["schema"]
        if name in seen:
            all_issues.append(
                ValidationIssue(
                    file=yaml_file,
                    message=f"Schema '{name}' already declared in {seen[name].name}",
                    path="schema",
                )
            )
        else:
            seen[name] = yaml_file

    logger.debug("Validated %d schema file(s) in %s", len(files), schema_dir)
    return all_issues
