"""
Raw response text -> untyped JSON value.

Models commonly wrap JSON in ```json ... ``` fences even when asked not to,
and md_json mode asks for exactly that. The text is parsed as-is first; only
when that fails is the first fenced block tried, so JSON whose string values
contain fences still parses. Syntax errors come back as a DecodeError so that
unparseable output drives a corrective retry like any other invalid output.
"""

import json
import re
from typing import Any, Optional

from reask.validation.decoder import DecodeError, DecodeResult

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?([\s\S]*?)\n?[ \t]*```")


def extract_code_block(text: str) -> Optional[str]:
    """
    Return the contents of the first fenced code block, or None.

    Example:
        ```python
        extract_code_block('Here:\\n```json\\n{"a": 1}\\n```')  # '{"a": 1}'
        ```
    """
    match = _FENCE_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def json_payload(text: str) -> str:
    """Text as-is when it is already JSON, else the first fenced block, else the text."""
    try:
        json.loads(text)
        return text
    except json.JSONDecodeError:
        return extract_code_block(text) or text


def parse_response(text: str) -> DecodeResult[Any]:
    """
    Parse raw response text as JSON.

    Args:
        text: Raw text returned by an adapter

    Returns:
        DecodeResult: Parsed value, or one DecodeError describing the syntax error
    """
    candidate = text.strip()
    try:
        return DecodeResult.ok(json.loads(candidate))
    except json.JSONDecodeError as e:
        error = e

    block = extract_code_block(candidate)
    if block is not None:
        try:
            return DecodeResult.ok(json.loads(block))
        except json.JSONDecodeError as e:
            error = e

    return DecodeResult.fail(
        [DecodeError(expected="valid JSON", found=f"{error.msg} at position {error.pos}", path=())]
    )
