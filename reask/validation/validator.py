"""
JSON Schema decoder with detailed error reporting.

Validates a parsed response against a JSON Schema dict and converts every
jsonschema error into a DecodeError (expected / found / path), so that the
retry loop can tell the model exactly which fields to fix.

Usage:
    ```python
    from reask.validation import JsonSchemaDecoder

    schema = {
        "type": "object",
        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        "required": ["name", "age"],
    }
    result = JsonSchemaDecoder(schema).decode({"name": "Ada"})
    result.errors  # [DecodeError(expected="field", found="nothing", path=("age",))]
    ```
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from jsonschema import Draft7Validator

from reask.validation.decoder import DecodeError, DecodeResult, Decoder, json_type_name
from reask.validation.parsing import parse_response

logger = logging.getLogger(__name__)

# Keyword -> description of what the schema wanted
_EXPECTATIONS = {
    "minimum": "a number >= {}",
    "maximum": "a number <= {}",
    "exclusiveMinimum": "a number > {}",
    "exclusiveMaximum": "a number < {}",
    "multipleOf": "a multiple of {}",
    "minLength": "a string of at least {} characters",
    "maxLength": "a string of at most {} characters",
    "pattern": "a string matching {!r}",
    "format": "a string in {} format",
    "minItems": "an array of at least {} items",
    "maxItems": "an array of at most {} items",
    "uniqueItems": "unique array items",
    "minProperties": "an object with at least {} properties",
    "maxProperties": "an object with at most {} properties",
}


class JsonSchemaDecoder(Decoder[Any]):
    """
    Decoder backed by a JSON Schema (Draft 7).

    All errors are collected, not just the first one. The decoded value is
    the input itself when it validates.
    """

    def __init__(self, schema: Dict[str, Any]):
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self._validator = Draft7Validator(schema)

    def decode(self, value: Any, context: Optional[Mapping[str, Any]] = None) -> DecodeResult[Any]:
        errors: List[DecodeError] = []
        seen_required: Set[Tuple[Tuple[str, ...], Tuple[str, ...]]] = set()

        for error in self._validator.iter_errors(value):
            path = tuple(str(p) for p in error.absolute_path)

            if error.validator == "required":
                # one error per `required` keyword; allOf branches may repeat it at the same path
                key = (path, tuple(str(name) for name in error.validator_value))
                if key in seen_required:
                    continue
                seen_required.add(key)
                for missing in _missing_fields(error, path):
                    if missing not in errors:
                        errors.append(missing)
            else:
                errors.append(_convert_jsonschema_error(error, path))

        if errors:
            logger.debug(f"Schema validation produced {len(errors)} error(s)")
            return DecodeResult.fail(errors)

        return DecodeResult.ok(value)

    def __repr__(self) -> str:
        return f"JsonSchemaDecoder(title={self.schema.get('title')!r})"


def _missing_fields(error: Any, path: Tuple[str, ...]) -> List[DecodeError]:
    instance = error.instance if isinstance(error.instance, dict) else {}
    return [
        DecodeError(expected="field", found="nothing", path=path + (str(name),))
        for name in error.validator_value
        if name not in instance
    ]


def _convert_jsonschema_error(error: Any, path: Tuple[str, ...]) -> DecodeError:
    """
    Convert a jsonschema ValidationError into a DecodeError.

    Args:
        error: jsonschema ValidationError
        path: Absolute path of the failing instance

    Returns:
        DecodeError: Our error representation
    """
    validator = error.validator
    expected_value = error.validator_value

    if validator == "type":
        if isinstance(expected_value, list):
            expected = " or ".join(expected_value)
        else:
            expected = str(expected_value)
        return DecodeError(expected=expected, found=json_type_name(error.instance), path=path)

    if validator == "enum":
        return DecodeError(
            expected="one of " + ", ".join(_dump(v) for v in expected_value),
            found=_dump(error.instance),
            path=path,
        )

    if validator == "const":
        return DecodeError(expected=_dump(expected_value), found=_dump(error.instance), path=path)

    if validator == "additionalProperties":
        allowed = set(error.schema.get("properties", {}))
        extras = sorted(k for k in error.instance if k not in allowed)
        return DecodeError(
            expected="no additional properties",
            found="unexpected " + ", ".join(extras),
            path=path,
        )

    template = _EXPECTATIONS.get(validator)
    if template is not None:
        expected = template.format(expected_value)
    else:
        expected = error.message

    return DecodeError(expected=expected, found=_dump(error.instance), path=path)


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(value)


def validate(output: str, schema: Dict[str, Any]) -> DecodeResult[Any]:
    """
    Parse raw response text and decode it against a schema.

    Args:
        output: Raw text (bare JSON or a fenced ```json block)
        schema: JSON Schema dictionary

    Returns:
        DecodeResult: Parsed value or decode errors (including JSON syntax errors)

    Example:
        ```python
        result = validate('{"age": "ten"}', {"properties": {"age": {"type": "integer"}}})
        assert not result.is_valid
        ```
    """
    parsed = parse_response(output)
    if not parsed.is_valid:
        return parsed
    return JsonSchemaDecoder(schema).decode(parsed.value)


def quick_validate(output: str, schema: Dict[str, Any]) -> bool:
    """Just True/False."""
    return validate(output, schema).is_valid
