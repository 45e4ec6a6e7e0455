"""Field type registry with casting rules for stored documents."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


class CastError(ValueError):
    """A value could not be converted to its declared field type."""


@dataclass(frozen=True)
class FieldType:
    name: str
    cast: Callable[[Any], Any]
    json_type: str
    substring_match: bool = False


def _cast_string(value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise CastError(f"cannot cast {type(value).__name__} to string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _cast_number(value: Any) -> float | int:
    if isinstance(value, bool):
        raise CastError("cannot cast boolean to number")
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise CastError(f"cannot cast {value!r} to number") from None
    return int(number) if number.is_integer() and "." not in str(value) else number


def _cast_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise CastError("cannot cast boolean to integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value))
    except (TypeError, ValueError):
        raise CastError(f"cannot cast {value!r} to integer") from None


_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _cast_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise CastError(f"cannot cast {value!r} to boolean")


def _cast_date(value: Any) -> str:
    """Dates are stored as ISO 8601 strings."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
        except ValueError:
            raise CastError(f"cannot cast {value!r} to date") from None
    raise CastError(f"cannot cast {type(value).__name__} to date")


def _cast_object(value: Any) -> dict:
    if not isinstance(value, dict):
        raise CastError(f"cannot cast {type(value).__name__} to object")
    return value


def _cast_array(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    # Single values are wrapped, like a document store casting to an array path
    return [value]


def _passthrough(value: Any) -> Any:
    return value


FIELD_TYPES: dict[str, FieldType] = {
    "string": FieldType(
        name="string", cast=_cast_string, json_type="string", substring_match=True
    ),
    "number": FieldType(name="number", cast=_cast_number, json_type="number"),
    "integer": FieldType(name="integer", cast=_cast_integer, json_type="integer"),
    "boolean": FieldType(name="boolean", cast=_cast_boolean, json_type="boolean"),
    "date": FieldType(name="date", cast=_cast_date, json_type="string"),
    "object": FieldType(name="object", cast=_cast_object, json_type="object"),
    "array": FieldType(name="array", cast=_cast_array, json_type="array"),
    "mixed": FieldType(name="mixed", cast=_passthrough, json_type="any"),
}

# Aliases accepted in schema declarations
TYPE_ALIASES: dict[str, str] = {
    "str": "string",
    "text": "string",
    "float": "number",
    "int": "integer",
    "bool": "boolean",
    "datetime": "date",
    "dict": "object",
    "list": "array",
    "any": "mixed",
}


def get_field_type(type_name: str) -> FieldType:
    """Resolve a declared type name (or alias) to its FieldType.

    Raises:
        ValueError: If the type is unknown
    """
    key = TYPE_ALIASES.get(type_name, type_name)
    if key not in FIELD_TYPES:
        raise ValueError(
            f"Unknown field type '{type_name}'. "
            f"Expected one of: {', '.join(sorted(FIELD_TYPES))}"
        )
    return FIELD_TYPES[key]


def cast_value(type_name: str, value: Any) -> Any:
    """Cast a value to the declared type. None passes through unchanged."""
    if value is None:
        return None
    return get_field_type(type_name).cast(value)
