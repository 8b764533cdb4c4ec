"""
Validation layer module.

Turns raw provider text into typed values, or into structured decode errors
that the retry loop feeds back to the model.

Components:
    - decoder: Decoder contract, DecodeError / DecodeResult, decoder_for
    - parsing: Raw text -> JSON value (fenced blocks stripped)
    - validator: JSON Schema decoder built on jsonschema
    - pydantic_decoder: Decoder for pydantic models and types
    - error_formatter: Decode errors -> lines and the corrective message

Validation Flow:
    1. Parse raw text as JSON (syntax errors become a DecodeError)
    2. Decode the JSON value with the caller's decoder
    3. Collect all errors (not just the first)
    4. Format each as "Expected X but found Y at path a.b"
"""

from reask.validation.decoder import (
    DecodeError,
    DecodeResult,
    Decoder,
    FunctionDecoder,
    ItemsDecoder,
    decoder_for,
    json_type_name,
)
from reask.validation.error_formatter import (
    CORRECTION_PREAMBLE,
    correction_message,
    format_decode_error,
    format_decode_errors,
)
from reask.validation.parsing import extract_code_block, json_payload, parse_response
from reask.validation.pydantic_decoder import PydanticDecoder
from reask.validation.validator import JsonSchemaDecoder, quick_validate, validate

__all__ = [
    "DecodeError",
    "DecodeResult",
    "Decoder",
    "FunctionDecoder",
    "ItemsDecoder",
    "decoder_for",
    "json_type_name",
    "CORRECTION_PREAMBLE",
    "correction_message",
    "format_decode_error",
    "format_decode_errors",
    "extract_code_block",
    "json_payload",
    "parse_response",
    "PydanticDecoder",
    "JsonSchemaDecoder",
    "quick_validate",
    "validate",
]
