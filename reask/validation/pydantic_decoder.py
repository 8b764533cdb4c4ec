"""
Pydantic-backed decoder.

Works for BaseModel subclasses and for any other type pydantic can validate
(``list[int]``, ``dict[str, float]``, dataclasses, ...) through TypeAdapter.
The request's validation context is forwarded as pydantic's ``context``, so
model validators can read it via ``info.context``.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reask.validation.decoder import DecodeError, DecodeResult, Decoder, json_type_name

logger = logging.getLogger(__name__)

# pydantic error type -> expected JSON type
_TYPE_ERRORS: Dict[str, str] = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "list_type": "array",
    "tuple_type": "array",
    "set_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "dataclass_type": "object",
    "none_required": "null",
}


class PydanticDecoder(Decoder[Any]):
    """Decodes values into a pydantic model (or any pydantic-supported type)."""

    def __init__(self, target: Any):
        self.target = target
        self._adapter = TypeAdapter(target)

    def decode(self, value: Any, context: Optional[Mapping[str, Any]] = None) -> DecodeResult[Any]:
        try:
            decoded = self._adapter.validate_python(
                value, context=dict(context) if context else None
            )
        except PydanticValidationError as e:
            errors = [_convert_pydantic_error(err) for err in e.errors(include_url=False)]
            logger.debug(f"Pydantic validation produced {len(errors)} error(s)")
            return DecodeResult.fail(errors)

        return DecodeResult.ok(decoded)

    def json_schema(self) -> Dict[str, Any]:
        return self._adapter.json_schema()

    def __repr__(self) -> str:
        return f"PydanticDecoder({getattr(self.target, '__name__', self.target)!r})"


def _convert_pydantic_error(err: Dict[str, Any]) -> DecodeError:
    path = tuple(str(p) for p in err.get("loc", ()))
    kind = err.get("type", "")
    found_value = err.get("input")

    if kind == "missing":
        return DecodeError(expected="field", found="nothing", path=path)

    if kind in _TYPE_ERRORS:
        return DecodeError(expected=_TYPE_ERRORS[kind], found=json_type_name(found_value), path=path)

    return DecodeError(expected=_lower_first(err.get("msg", kind)), found=_dump(found_value), path=path)


def _lower_first(text: str) -> str:
    # "Input should be greater than 0" reads better mid-sentence
    return text[:1].lower() + text[1:]


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)
