"""Minimal JSON schema validator for breed profile documents."""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Mapping

from .errors import ProfileValidationError

SCHEMA_DIR = Path(__file__).with_name("schemas")
BREED_PROFILE_SCHEMA = SCHEMA_DIR / "breed_profile.schema.json"


def _type_matches(value: Any, expected: str) -> bool:
    mapping = {
        "object": Mapping,
        "array": (list, tuple),
        "string": str,
        "number": (int, float),
        "integer": int,
        "boolean": bool,
        "null": type(None),
    }
    python_type = mapping.get(expected)
    if python_type is None:
        raise ValueError(f"Unsupported schema type: {expected}")
    if expected in {"number", "integer"} and isinstance(value, bool):
        return False
    return isinstance(value, python_type)


def _validate_type(value: Any, schema: Mapping[str, Any], path: list[str]):
    expected_type = schema.get("type")
    if not expected_type:
        return
    candidates = expected_type if isinstance(expected_type, list) else [expected_type]
    if not any(_type_matches(value, t) for t in candidates):
        raise ProfileValidationError(f"expected type {expected_type}, got {type(value).__name__}", path=path)


def _validate_enum(value: Any, schema: Mapping[str, Any], path: list[str]):
    if "enum" in schema and value not in schema["enum"]:
        raise ProfileValidationError(f"expected one of {schema['enum']}, got {value}", path=path)


def _validate_bounds(value: Any, schema: Mapping[str, Any], path: list[str]):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return
    if "minimum" in schema and value < schema["minimum"]:
        raise ProfileValidationError(f"value {value} is below minimum {schema['minimum']}", path=path)
    if "maximum" in schema and value > schema["maximum"]:
        raise ProfileValidationError(f"value {value} is above maximum {schema['maximum']}", path=path)


def _validate_properties(value: Mapping[str, Any], schema: Mapping[str, Any], path: list[str]):
    properties = schema.get("properties", {})
    for key in schema.get("required", []):
        if key not in value:
            raise ProfileValidationError(f"missing required property '{key}'", path=path + [key])
    if "minProperties" in schema and len(value) < schema["minProperties"]:
        raise ProfileValidationError(
            f"expected at least {schema['minProperties']} properties, got {len(value)}", path=path
        )
    for key, sub_schema in properties.items():
        if key in value:
            _validate(value[key], sub_schema, path + [key])
    extra = [key for key in value.keys() if key not in properties]
    additional = schema.get("additionalProperties", True)
    if additional is False and extra:
        raise ProfileValidationError(f"unexpected properties: {sorted(map(str, extra))}", path=path)
    if isinstance(additional, Mapping):
        for key in extra:
            _validate(value[key], additional, path + [str(key)])


def _validate_array(value: Iterable[Any], schema: Mapping[str, Any], path: list[str]):
    if "minItems" in schema and len(value) < schema["minItems"]:
        raise ProfileValidationError(
            f"expected at least {schema['minItems']} items, got {len(value)}", path=path
        )
    if "maxItems" in schema and len(value) > schema["maxItems"]:
        raise ProfileValidationError(
            f"expected at most {schema['maxItems']} items, got {len(value)}", path=path
        )
    items_schema = schema.get("items")
    if isinstance(items_schema, Mapping):
        for idx, item in enumerate(value):
            _validate(item, items_schema, path + [str(idx)])


def _validate(value: Any, schema: Mapping[str, Any], path: list[str]):
    _validate_type(value, schema, path)
    _validate_enum(value, schema, path)
    _validate_bounds(value, schema, path)
    if isinstance(value, Mapping):
        _validate_properties(value, schema, path)
    if isinstance(value, (list, tuple)):
        _validate_array(value, schema, path)


def validate(value: Any, schema: Mapping[str, Any], *, source: str | None = None) -> None:
    """Validate *value* against the supplied JSON *schema*."""

    try:
        _validate(value, schema, [])
    except ProfileValidationError as exc:
        if source is None or exc.source is not None:
            raise
        error = ProfileValidationError(str(exc), source=source)
        error.path = exc.path
        raise error from exc


@lru_cache(maxsize=None)
def load_schema(path: Path = BREED_PROFILE_SCHEMA) -> Mapping[str, Any]:
    with Path(path).open("r", encoding="utf-8") as fh:
        return json.load(fh)


def validate_breed_profile(document: Any, *, source: str | None = None) -> None:
    validate(document, load_schema(), source=source)


__all__ = ["BREED_PROFILE_SCHEMA", "load_schema", "validate", "validate_breed_profile"]
