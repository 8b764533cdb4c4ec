"""
Schema construction module.

Builds the JSON Schema that adapters send to providers, from pydantic models
or plain JSON Schema dicts.

Example:
    ```python
    from reask.schema import schema_for

    schema = schema_for({"type": "object", "properties": {"name": {"type": "string"}}})
    ```
"""

from reask.schema.parser import ITEMS_KEY, array_schema, schema_for, schema_name_for, validate_schema

__all__ = [
    "ITEMS_KEY",
    "array_schema",
    "schema_for",
    "schema_name_for",
    "validate_schema",
]
