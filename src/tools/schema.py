"""Parameter schema helpers and argument validation for tools.

Tool parameters are JSON Schema (draft 7) objects. Arguments are checked
against them before any handler runs.
"""

from __future__ import annotations

from dataclasses import dataclass

import jsonschema
from jsonschema import Draft7Validator


@dataclass(frozen=True)
class ArgumentProblem:
    field: str | None
    message: str


def string_param(
    description: str, *, enum: list[str] | None = None, min_length: int | None = None
) -> dict:
    schema: dict = {"type": "string", "description": description}
    if enum is not None:
        schema["enum"] = list(enum)
    if min_length is not None:
        schema["minLength"] = min_length
    return schema


def object_schema(
    properties: dict[str, dict],
    required: list[str] | None = None,
    *,
    additional_properties: bool = False,
) -> dict:
    return {
        "type": "object",
        "properties": properties,
        "required": list(required or []),
        "additionalProperties": additional_properties,
    }


def normalize_parameters(schema: dict) -> dict:
    """Return the schema in the shape the function-calling contract expects.

    Always carries type "object", a properties map and a required list.
    """
    normalized = dict(schema)
    normalized["type"] = "object"
    normalized.setdefault("properties", {})
    normalized.setdefault("required", [])
    return normalized


def check_parameters_schema(schema: object) -> str | None:
    """Return a problem description if schema is not a usable object schema."""
    if not isinstance(schema, dict):
        return "parameters must be a JSON Schema object"
    if schema.get("type", "object") != "object":
        return f"parameters type must be 'object' (got {schema.get('type')!r})"
    try:
        Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        return f"invalid parameters schema: {e.message}"
    required = schema.get("required", [])
    missing = [r for r in required if r not in schema.get("properties", {})]
    if missing:
        return f"required parameters not declared in properties: {missing}"
    return None


def validate_arguments(schema: dict, arguments: object) -> list[ArgumentProblem]:
    """Check arguments against a tool's parameter schema.

    Problems are ordered by field path so the first one is stable across runs.
    """
    if not isinstance(arguments, dict):
        return [ArgumentProblem(None, f"arguments must be an object (got {type(arguments).__name__})")]

    problems: list[ArgumentProblem] = []
    reported_missing: set[str] = set()
    validator = Draft7Validator(normalize_parameters(schema))
    for error in sorted(validator.iter_errors(arguments), key=lambda e: list(map(str, e.path))):
        if error.validator == "required":
            # jsonschema yields one error per missing name, each carrying the whole list.
            prefix = ".".join(str(p) for p in error.path)
            for field_name in error.validator_value:
                qualified = f"{prefix}.{field_name}" if prefix else field_name
                if field_name in error.instance or qualified in reported_missing:
                    continue
                reported_missing.add(qualified)
                problems.append(
                    ArgumentProblem(qualified, f"Required parameter '{qualified}' is missing")
                )
            continue

        path = ".".join(str(p) for p in error.path) or None
        if error.validator == "type":
            actual = type(error.instance).__name__
            message = f"Parameter '{path}' has wrong type: expected {error.validator_value}, got {actual}"
        elif error.validator == "enum":
            message = f"Parameter '{path}' must be one of: {error.validator_value}"
        elif error.validator == "additionalProperties":
            extras = sorted(set(error.instance) - set(error.schema.get("properties", {})))
            path = ".".join([*(str(p) for p in error.path), *extras[:1]]) or path
            message = f"Unknown parameter: {error.message}"
        else:
            message = f"Parameter '{path or 'arguments'}' is invalid: {error.message}"
        problems.append(ArgumentProblem(path, message))
    return problems
