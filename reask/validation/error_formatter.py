"""
Error formatter - turn decode errors into text the model (and the user) can act on.

One line per error:

    Expected string but found integer at path age

The corrective system message wraps those lines in a fixed preamble asking
the model to try again.
"""

from typing import Iterable, List

from reask.types import Message
from reask.validation.decoder import DecodeError

CORRECTION_PREAMBLE = (
    "The response did not pass validation. "
    "Please try again and fix the following validation errors:"
)


def format_decode_error(error: DecodeError) -> str:
    """Format one error as a single line."""
    return f"Expected {error.expected} but found {error.found} at path {'.'.join(error.path)}"


def format_decode_errors(errors: Iterable[DecodeError]) -> List[str]:
    return [format_decode_error(e) for e in errors]


def correction_message(errors: Iterable[DecodeError]) -> Message:
    """
    Build the corrective system message for a failed attempt.

    Args:
        errors: Decode errors of the attempt

    Returns:
        Message: System-role message listing every error

    Example:
        ```python
        msg = correction_message([DecodeError("string", "integer", ("age",))])
        msg.content.endswith("Expected string but found integer at path age")
        ```
    """
    body = "\n".join(format_decode_errors(errors))
    return Message.system(f"{CORRECTION_PREAMBLE}\n\n{body}")
