"""
Unit tests for the validation-guided retry loop.
"""

import threading

import pytest

from reask.adapters import MockAdapter
from reask.errors import ConfigError, ProviderError
from reask.results import AdapterError, Success, ValidationError
from reask.retry import RetryPolicy, run
from reask.types import Message, Request, ResponseMode, Role
from reask.validation import (
    CORRECTION_PREAMBLE,
    DecodeError,
    DecodeResult,
    Decoder,
    JsonSchemaDecoder,
    correction_message,
    format_decode_error,
)


class AlwaysFails(Decoder):
    """Fails every decode with the same errors."""

    def __init__(self, errors):
        self.errors = errors
        self.seen = []

    def decode(self, value, context=None):
        self.seen.append(value)
        return DecodeResult.fail(self.errors)


class AcceptsOnly(Decoder):
    """Accepts exactly one value, reports everything else as a string mismatch."""

    def __init__(self, accepted):
        self.accepted = accepted
        self.contexts = []

    def decode(self, value, context=None):
        self.contexts.append(context)
        if value == self.accepted:
            return DecodeResult.ok(value)
        return DecodeResult.fail([DecodeError(expected=repr(self.accepted), found=repr(value), path=("value",))])


def make_request(max_retries=0, **kwargs):
    return Request(
        model="test-model",
        messages=[Message.user("Extract the person")],
        mode=ResponseMode.JSON,
        max_retries=max_retries,
        **kwargs,
    )


class TestTermination:
    """Call count bounds."""

    @pytest.mark.parametrize("max_retries", [0, 1, 2, 5])
    def test_at_most_n_plus_one_calls(self, max_retries):
        """A decoder that never succeeds uses exactly the whole budget."""
        adapter = MockAdapter(['{"age": 1}'], repeat_last=True)
        decoder = AlwaysFails([DecodeError("string", "integer", ("age",))])

        result = run(adapter, make_request(max_retries), decoder)

        assert isinstance(result, ValidationError)
        assert len(adapter.calls) == max_retries + 1
        assert result.attempts == max_retries + 1

    def test_success_short_circuits(self):
        """Valid first response: one call regardless of budget."""
        adapter = MockAdapter(['"ok"'], repeat_last=True)

        result = run(adapter, make_request(max_retries=5), AcceptsOnly("ok"))

        assert isinstance(result, Success)
        assert result.value == "ok"
        assert result.attempts == 1
        assert len(adapter.calls) == 1

    def test_adapter_error_is_immediate(self):
        """Connection refused is returned at once, not retried."""
        adapter = MockAdapter([ProviderError("connection refused"), '"ok"'])

        result = run(adapter, make_request(max_retries=5), AcceptsOnly("ok"))

        assert isinstance(result, AdapterError)
        assert result.message == "connection refused"
        assert len(adapter.calls) == 1


class TestRetryFlows:
    """Worked examples."""

    def test_no_retries_reports_errors(self):
        """max_retries=0: one call, one formatted error line."""
        adapter = MockAdapter(['{"age": 7}'])
        decoder = AlwaysFails([DecodeError("string", "integer", ("age",))])

        result = run(adapter, make_request(max_retries=0), decoder)

        assert isinstance(result, ValidationError)
        assert result.errors == ["Expected string but found integer at path age"]
        assert len(adapter.calls) == 1
        assert adapter.reask_calls == []

    def test_third_attempt_succeeds(self):
        """Two failures then success, with two corrective system messages."""
        adapter = MockAdapter(['"bad"', '"worse"', '"ok"'])

        result = run(adapter, make_request(max_retries=2), AcceptsOnly("ok"))

        assert isinstance(result, Success)
        assert result.value == "ok"
        assert len(adapter.calls) == 3

        final_messages = adapter.calls[-1].messages
        corrections = [
            m for m in final_messages if m.role == Role.SYSTEM and m.content.startswith(CORRECTION_PREAMBLE)
        ]
        assert len(corrections) == 2

    def test_missing_field_named_in_correction(self):
        """A missing required field shows up in the corrective message."""
        schema = {
            "type": "object",
            "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
            "required": ["name", "age"],
        }
        adapter = MockAdapter(['{"name":"Ada"}', '{"name":"Ada","age":36}'])

        result = run(adapter, make_request(max_retries=1), JsonSchemaDecoder(schema))

        assert isinstance(result, Success)
        assert result.value == {"name": "Ada", "age": 36}
        correction = adapter.calls[1].messages[-1]
        assert correction.role == Role.SYSTEM
        assert "age" in correction.content
        assert "Expected field but found nothing at path age" in correction.content


class TestExhaustion:
    """What gets reported when the budget runs out."""

    def test_reports_only_last_attempt_errors(self):
        adapter = MockAdapter(['{"n": 1}', '{"n": 2}', '{"n": 3}'])

        class RejectsN(Decoder):
            def decode(self, value, context=None):
                return DecodeResult.fail([DecodeError("n > 10", str(value["n"]), ("n",))])

        result = run(adapter, make_request(max_retries=2), RejectsN())

        assert isinstance(result, ValidationError)
        assert result.errors == ["Expected n > 10 but found 3 at path n"]
        assert result.raw_response == '{"n": 3}'
        assert len(adapter.calls) == 3

    def test_invalid_json_drives_a_retry(self):
        adapter = MockAdapter(["Sure! Here is the data you asked for", '"ok"'])

        result = run(adapter, make_request(max_retries=1), AcceptsOnly("ok"))

        assert isinstance(result, Success)
        correction = adapter.calls[1].messages[-1].content
        assert "Expected valid JSON but found" in correction

    def test_invalid_json_without_retries(self):
        adapter = MockAdapter(["{broken"])

        result = run(adapter, make_request(max_retries=0), AcceptsOnly("ok"))

        assert isinstance(result, ValidationError)
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Expected valid JSON but found")


class TestConversationGrowth:
    """Messages are only ever appended."""

    def test_messages_are_prefix_preserving(self):
        adapter = MockAdapter(['"a"', '"b"', '"c"', '"ok"'])

        run(adapter, make_request(max_retries=3), AcceptsOnly("ok"))

        assert len(adapter.calls) == 4
        for before, after in zip(adapter.calls, adapter.calls[1:]):
            assert len(after.messages) > len(before.messages)
            assert after.messages[: len(before.messages)] == before.messages

    def test_appended_messages_are_reask_then_correction(self):
        adapter = MockAdapter(['"bad"', '"ok"'])

        run(adapter, make_request(max_retries=1), AcceptsOnly("ok"))

        first, second = adapter.calls
        added = second.messages[len(first.messages):]
        assert added[0] == Message.assistant('"bad"')
        assert added[1].role == Role.SYSTEM
        assert added[1].content.startswith(CORRECTION_PREAMBLE)
        assert len(added) == 2

    def test_adapter_decides_reask_messages(self):
        adapter = MockAdapter(['"bad"', '"ok"'], reask_fn=lambda raw, request: [])

        run(adapter, make_request(max_retries=1), AcceptsOnly("ok"))

        first, second = adapter.calls
        added = second.messages[len(first.messages):]
        assert len(added) == 1
        assert added[0].role == Role.SYSTEM
        assert adapter.reask_calls[0][0] == '"bad"'

    def test_retry_budget_decrements(self):
        adapter = MockAdapter(['"a"', '"b"', '"ok"'])

        run(adapter, make_request(max_retries=2), AcceptsOnly("ok"))

        assert [c.max_retries for c in adapter.calls] == [2, 1, 0]

    def test_initial_request_is_untouched(self):
        adapter = MockAdapter(['"bad"', '"ok"'])
        request = make_request(max_retries=1)

        run(adapter, request, AcceptsOnly("ok"))

        assert request.max_retries == 1
        assert len(request.messages) == 1


class TestCorrectionFormatting:
    """Error line and corrective message text."""

    def test_format_nested_path(self):
        error = DecodeError("integer", "string", ("address", "zip", "0"))
        assert format_decode_error(error) == "Expected integer but found string at path address.zip.0"

    def test_correction_message_text(self):
        message = correction_message(
            [DecodeError("string", "integer", ("age",)), DecodeError("field", "nothing", ("name",))]
        )

        assert message.role == Role.SYSTEM
        assert message.content == (
            "The response did not pass validation. Please try again and fix the following validation errors:\n\n"
            "Expected string but found integer at path age\n"
            "Expected field but found nothing at path name"
        )


class TestRetryPolicy:
    """Optional policy knobs."""

    def test_retry_adapter_errors(self):
        adapter = MockAdapter([ProviderError("503"), '"ok"'])
        policy = RetryPolicy(retry_adapter_errors=True)

        result = run(adapter, make_request(max_retries=1), AcceptsOnly("ok"), policy=policy)

        assert isinstance(result, Success)
        assert len(adapter.calls) == 2
        assert adapter.calls[1].messages == adapter.calls[0].messages
        assert adapter.calls[1].max_retries == 0

    def test_retry_adapter_errors_exhausted(self):
        adapter = MockAdapter([ProviderError("first"), ProviderError("second")])
        policy = RetryPolicy(retry_adapter_errors=True)

        result = run(adapter, make_request(max_retries=1), AcceptsOnly("ok"), policy=policy)

        assert isinstance(result, AdapterError)
        assert result.message == "second"
        assert result.attempts == 2

    def test_cancelled_before_first_attempt(self):
        event = threading.Event()
        event.set()
        adapter = MockAdapter(['"ok"'])

        result = run(adapter, make_request(max_retries=3), AcceptsOnly("ok"), policy=RetryPolicy(cancel=event))

        assert isinstance(result, AdapterError)
        assert result.message == "cancelled"
        assert result.attempts == 0
        assert adapter.calls == []

    def test_cancelled_between_attempts(self):
        event = threading.Event()
        policy = RetryPolicy(cancel=event, on_attempt=lambda attempt, request: event.set())
        adapter = MockAdapter(['"bad"'], repeat_last=True)

        result = run(adapter, make_request(max_retries=3), AcceptsOnly("ok"), policy=policy)

        assert isinstance(result, AdapterError)
        assert result.message == "cancelled"
        assert len(adapter.calls) == 1

    def test_on_attempt_sees_each_request(self):
        seen = []
        policy = RetryPolicy(on_attempt=lambda attempt, request: seen.append((attempt, request.max_retries)))
        adapter = MockAdapter(['"a"', '"ok"'])

        run(adapter, make_request(max_retries=1), AcceptsOnly("ok"), policy=policy)

        assert seen == [(1, 1), (2, 0)]


class TestBoundaries:
    """What crosses the loop boundary and what doesn't."""

    def test_config_error_from_adapter_becomes_adapter_error(self):
        adapter = MockAdapter([ConfigError("tools mode needs a response schema"), '"ok"'])
        policy = RetryPolicy(retry_adapter_errors=True)

        result = run(adapter, make_request(max_retries=2), AcceptsOnly("ok"), policy=policy)

        assert isinstance(result, AdapterError)
        assert result.message == "tools mode needs a response schema"
        assert result.attempts == 1
        assert len(adapter.calls) == 1

    def test_unexpected_adapter_exception_propagates(self):
        """Non-reask exceptions are programming errors and are not turned into results."""
        adapter = MockAdapter([RuntimeError("bug in adapter")])

        with pytest.raises(RuntimeError):
            run(adapter, make_request(max_retries=2), AcceptsOnly("ok"))

    def test_validation_context_reaches_decoder(self):
        adapter = MockAdapter(['"ok"'])
        decoder = AcceptsOnly("ok")

        run(adapter, make_request(validation_context={"tenant": "acme"}), decoder)

        assert dict(decoder.contexts[0]) == {"tenant": "acme"}

    def test_fenced_response_is_parsed(self):
        adapter = MockAdapter(['```json\n{"name": "Ada"}\n```'])
        decoder = JsonSchemaDecoder({"type": "object", "required": ["name"]})

        result = run(adapter, make_request(), decoder)

        assert isinstance(result, Success)
        assert result.value == {"name": "Ada"}

    def test_bare_json_containing_fence_succeeds_first_time(self):
        adapter = MockAdapter(['{"snippet": "```python\\nprint(1)\\n```"}'])
        decoder = JsonSchemaDecoder({"type": "object", "required": ["snippet"]})

        result = run(adapter, make_request(max_retries=2), decoder)

        assert isinstance(result, Success)
        assert result.value == {"snippet": "```python\nprint(1)\n```"}
        assert len(adapter.calls) == 1
