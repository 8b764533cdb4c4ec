"""
Validation-guided retry loop.

This is the core of reask:
    1. Send the request through the adapter (one round-trip)
    2. Parse the raw text and decode it with the caller's decoder
    3. On success: return Success(value)
    4. On decode failure with retries left: let the adapter replay the invalid
       output, append a corrective system message listing every decode error,
       consume one retry and go back to 1
    5. On decode failure with no retries left: return ValidationError with the
       errors of this last attempt
    6. On adapter failure (any ReaskError from complete, e.g. ProviderError or a
       ConfigError for a request the adapter cannot build): return AdapterError
       immediately. Only ProviderError is retried, and only if the policy says so

The loop performs at most ``1 + request.max_retries`` adapter calls and never
raises for adapter or decode failures; every outcome is an LLMResult value.

Usage:
    ```python
    from reask.adapters import MockAdapter
    from reask.retry import run
    from reask.results import Success
    from reask.validation import JsonSchemaDecoder

    result = run(adapter, request, JsonSchemaDecoder(schema))
    if isinstance(result, Success):
        print(result.value)
    ```
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from reask.adapters.base import Adapter
from reask.errors import ProviderError, ReaskError
from reask.results import AdapterError, LLMResult, Success, ValidationError
from reask.types import Message, Request
from reask.validation.decoder import DecodeResult, Decoder
from reask.validation.error_formatter import correction_message, format_decode_errors
from reask.validation.parsing import parse_response

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


@dataclass
class RetryPolicy:
    """
    Knobs around the retry loop.

    Attributes:
        retry_adapter_errors: Treat ProviderError as retryable. The same request
            is re-sent (no messages appended) and one retry is consumed.
        cancel: Object with ``is_set()`` (e.g. threading.Event) checked before
            every attempt; when set the loop ends with AdapterError("cancelled")
        on_attempt: Called with (attempt_number, request) before each adapter call
    """

    retry_adapter_errors: bool = False
    cancel: Optional[Any] = None
    on_attempt: Optional[Callable[[int, Request], None]] = None

    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


def decode_raw(raw: str, decoder: Decoder, request: Request) -> DecodeResult:
    """Parse raw text and decode it; JSON syntax errors count as decode errors."""
    parsed = parse_response(raw)
    if not parsed.is_valid:
        return parsed
    return decoder.decode(parsed.value, context=request.validation_context)


def corrective_messages(adapter: Adapter, raw: str, request: Request, result: DecodeResult) -> List[Message]:
    """Adapter replay of the invalid output, then one system message listing the errors."""
    messages = list(adapter.reask(raw, request))
    messages.append(correction_message(result.errors))
    return messages


def run(
    adapter: Adapter,
    request: Request,
    decoder: Decoder,
    policy: Optional[RetryPolicy] = None,
) -> LLMResult:
    """
    Drive the request / validate / correct loop to one terminal result.

    Args:
        adapter: Provider adapter
        request: Initial request (``max_retries`` is the correction budget)
        decoder: Decoder for the target type
        policy: Optional retry policy (adapter-error retries, cancellation, hooks)

    Returns:
        LLMResult: Success, ValidationError or AdapterError
    """
    policy = policy or RetryPolicy()
    total = request.max_retries + 1
    attempt = 0

    while True:
        if policy.cancelled():
            logger.warning(f"Cancelled before attempt {attempt + 1}/{total}")
            return AdapterError(CANCELLED, attempts=attempt)

        attempt += 1
        logger.info(
            f"Attempt {attempt}/{total} via {adapter.name} "
            f"(model={request.model}, mode={request.mode.value}, retries left={request.max_retries})"
        )
        if policy.on_attempt is not None:
            policy.on_attempt(attempt, request)

        try:
            raw = adapter.complete(request)
        except ReaskError as e:
            # request-construction errors (ConfigError) are not transient
            retryable = isinstance(e, ProviderError) and policy.retry_adapter_errors
            if retryable and request.max_retries > 0:
                logger.warning(f"Adapter error on attempt {attempt}, retrying: {e}")
                request = request.retry_with(())
                continue
            logger.error(f"Adapter error on attempt {attempt}: {e}")
            return AdapterError(str(e), attempts=attempt)

        result = decode_raw(raw, decoder, request)

        if result.is_valid:
            logger.info(f"Response validated after {attempt - 1} retries")
            return Success(result.value, attempts=attempt, raw_response=raw)

        logger.warning(f"Validation failed with {len(result.errors)} error(s)")

        if request.max_retries == 0:
            logger.error("Max retries reached, response failed validation")
            return ValidationError(
                errors=format_decode_errors(result.errors), attempts=attempt, raw_response=raw
            )

        correction = corrective_messages(adapter, raw, request, result)
        logger.debug(f"Corrective message:\n{correction[-1].content}")
        request = request.retry_with(correction)
