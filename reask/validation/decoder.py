"""
Decoder contract.

A Decoder interprets an untyped value (a parsed JSON tree) as a target type.
It never raises for bad input: it returns a DecodeResult that either carries
the decoded value or a non-empty list of DecodeErrors, one per invalid field.

Implementations:
    - JsonSchemaDecoder (reask.validation.validator): JSON Schema dicts
    - PydanticDecoder (reask.validation.pydantic_decoder): pydantic models and types
    - FunctionDecoder: any callable returning a DecodeResult
    - ItemsDecoder: lists wrapped as {"items": [...]}, per-item decoding
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar, get_origin

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeError:
    """
    One decode failure.

    Attributes:
        expected: Description of what the target type wanted (e.g. "string")
        found: Description of what was there (e.g. "integer", "nothing")
        path: Keys / indexes locating the failure inside the value
    """

    expected: str
    found: str
    path: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(str(p) for p in self.path))


@dataclass
class DecodeResult(Generic[T]):
    """
    Outcome of a single decode.

    Attributes:
        value: Decoded value (None when invalid)
        errors: Decode errors (empty when valid)
    """

    value: Optional[T] = None
    errors: List[DecodeError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, value: T) -> "DecodeResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, errors: Sequence[DecodeError]) -> "DecodeResult[T]":
        if not errors:
            raise ValueError("A failed decode needs at least one DecodeError")
        return cls(errors=list(errors))


class Decoder(ABC, Generic[T]):
    """Interprets an untyped value as ``T``."""

    @abstractmethod
    def decode(self, value: Any, context: Optional[Mapping[str, Any]] = None) -> DecodeResult[T]:
        """
        Decode ``value``.

        Args:
            value: Untyped value, usually parsed JSON
            context: Request validation context, for decoders that use one

        Returns:
            DecodeResult: value on success, non-empty errors on failure
        """


class FunctionDecoder(Decoder[T]):
    """Adapts a plain ``fn(value) -> DecodeResult`` into a Decoder."""

    def __init__(self, fn: Callable[[Any], DecodeResult[T]]):
        self._fn = fn

    def decode(self, value: Any, context: Optional[Mapping[str, Any]] = None) -> DecodeResult[T]:
        return self._fn(value)

    def __repr__(self) -> str:
        return f"FunctionDecoder({getattr(self._fn, '__name__', self._fn)!r})"


def decoder_for(target: Any) -> Decoder:
    """
    Pick a decoder for ``target``.

    Args:
        target: A Decoder, a JSON Schema dict, a pydantic model or other type
            pydantic can validate, or a callable returning DecodeResult

    Returns:
        Decoder: Decoder for the target

    Raises:
        TypeError: If no decoder fits
    """
    if isinstance(target, Decoder):
        return target

    if isinstance(target, dict):
        from reask.validation.validator import JsonSchemaDecoder
        return JsonSchemaDecoder(target)

    if isinstance(target, type) or get_origin(target) is not None:
        from reask.validation.pydantic_decoder import PydanticDecoder
        return PydanticDecoder(target)

    if callable(target):
        return FunctionDecoder(target)

    raise TypeError(f"Cannot build a decoder for {target!r}")


def json_type_name(value: Any) -> str:
    """JSON type name of a Python value ("integer", "object", ...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class ItemsDecoder(Decoder[List[Any]]):
    """
    Decodes ``{"items": [...]}`` into a list, each item through ``item_decoder``.

    Item error paths are prefixed with the key and index (``items.2.age``).
    """

    def __init__(self, item_decoder: Decoder, key: str = "items"):
        self.item_decoder = item_decoder
        self.key = key

    def decode(self, value: Any, context: Optional[Mapping[str, Any]] = None) -> DecodeResult[List[Any]]:
        if not isinstance(value, dict) or self.key not in value:
            return DecodeResult.fail(
                [DecodeError(expected=f"object with an {self.key!r} array", found=json_type_name(value), path=())]
            )

        items = value[self.key]
        if not isinstance(items, list):
            return DecodeResult.fail(
                [DecodeError(expected="array", found=json_type_name(items), path=(self.key,))]
            )

        decoded: List[Any] = []
        errors: List[DecodeError] = []
        for index, item in enumerate(items):
            result = self.item_decoder.decode(item, context=context)
            if result.is_valid:
                decoded.append(result.value)
                continue
            prefix = (self.key, str(index))
            errors.extend(DecodeError(e.expected, e.found, prefix + e.path) for e in result.errors)

        if errors:
            return DecodeResult.fail(errors)
        return DecodeResult.ok(decoded)
