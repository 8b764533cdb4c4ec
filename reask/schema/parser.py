"""
Target schema construction.

Adapters need a JSON Schema describing the desired output (tool parameters,
response_format, prompt instructions). This module derives one from either
a pydantic model / type or a JSON Schema dict.

Usage:
    ```python
    from pydantic import BaseModel
    from reask.schema import schema_for, schema_name_for

    class Person(BaseModel):
        name: str
        age: int

    schema_for(Person)       # {"properties": {...}, "required": ["name", "age"], ...}
    schema_name_for(Person)  # "Person"
    ```
"""

import copy
import re
from typing import Any, Dict

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from pydantic import TypeAdapter

ITEMS_KEY = "items"


def schema_for(target: Any) -> Dict[str, Any]:
    """
    JSON Schema for a pydantic model / type or a schema dict.

    Args:
        target: Pydantic model class, any type pydantic supports, or a JSON Schema dict

    Returns:
        Dict: JSON Schema (a copy when a dict was given)

    Raises:
        ValueError: If the dict is not a valid schema or the target is unsupported
    """
    if isinstance(target, dict):
        validate_schema(target)
        return copy.deepcopy(target)

    try:
        return TypeAdapter(target).json_schema()
    except Exception as e:  # noqa: BLE001
        raise ValueError(f"Cannot build a JSON Schema for {target!r}: {e}") from e


def validate_schema(schema: Dict[str, Any]) -> None:
    """
    Check that ``schema`` is a well-formed Draft 7 schema.

    Raises:
        ValueError: With the jsonschema message if it is not
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise ValueError(f"Invalid JSON Schema: {e.message}") from e


def schema_name_for(target: Any, default: str = "response") -> str:
    """
    Tool / format name for a target.

    Model classes use their class name, dicts their ``title``. Names are reduced
    to the characters providers accept in function names.
    """
    if isinstance(target, dict):
        name = target.get("title") or default
    else:
        name = getattr(target, "__name__", None) or default
    name = re.sub(r"[^A-Za-z0-9_-]", "_", str(name))
    return name[:64] or default


def array_schema(item_schema: Dict[str, Any], title: str = "Items") -> Dict[str, Any]:
    """
    Wrap an item schema into an object holding a list of items.

    Providers want an object at the top level (tool parameters must be objects),
    so lists are requested as ``{"items": [...]}``. Nested ``$defs`` are hoisted
    so pydantic ``$ref`` pointers keep resolving.
    """
    item = copy.deepcopy(item_schema)
    defs = item.pop("$defs", None)

    schema: Dict[str, Any] = {
        "title": title,
        "type": "object",
        "properties": {ITEMS_KEY: {"type": "array", "items": item}},
        "required": [ITEMS_KEY],
    }
    if defs:
        schema["$defs"] = defs
    return schema
