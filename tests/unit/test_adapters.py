"""
Unit tests for provider adapters, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from reask.adapters import AdapterFactory, AnthropicAdapter, MockAdapter, OpenAIAdapter
from reask.errors import ConfigError, ProviderAuthError, ProviderError, ProviderResponseError
from reask.types import Message, Request, ResponseMode

SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
    "required": ["name", "age"],
}


def make_request(mode=ResponseMode.TOOLS, **kwargs):
    return Request(
        model="test-model",
        messages=[Message.system("You extract people."), Message.user("Ada, 36")],
        mode=mode,
        response_schema=SCHEMA,
        schema_name="Person",
        **kwargs,
    )


def capture_client(response_json, status_code=200, captured=None):
    """httpx client whose transport records the request and returns ``response_json``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured["url"] = str(request.url)
            captured["headers"] = dict(request.headers)
            captured["payload"] = json.loads(request.content)
        return httpx.Response(status_code, json=response_json)

    return httpx.Client(transport=httpx.MockTransport(handler))


def openai_response(content=None, arguments=None):
    message = {"role": "assistant", "content": content}
    if arguments is not None:
        message["tool_calls"] = [
            {"id": "call_1", "type": "function", "function": {"name": "Person", "arguments": arguments}}
        ]
    return {"id": "chatcmpl-1", "choices": [{"index": 0, "message": message}]}


class TestOpenAIAdapter:
    """OpenAI-compatible chat completions."""

    def test_tools_mode(self):
        captured = {}
        client = capture_client(openai_response(arguments='{"name":"Ada","age":36}'), captured=captured)
        adapter = OpenAIAdapter(api_key="test-key", base_url="http://test-api/", client=client)

        raw = adapter.complete(make_request(temperature=0.0, max_tokens=50))

        assert raw == '{"name":"Ada","age":36}'
        assert captured["url"] == "http://test-api/chat/completions"
        assert captured["headers"]["authorization"] == "Bearer test-key"
        payload = captured["payload"]
        assert payload["model"] == "test-model"
        assert payload["tools"][0]["function"]["name"] == "Person"
        assert payload["tools"][0]["function"]["parameters"] == SCHEMA
        assert payload["tool_choice"] == {"type": "function", "function": {"name": "Person"}}
        assert payload["temperature"] == 0.0
        assert payload["max_tokens"] == 50
        assert payload["messages"][0] == {"role": "system", "content": "You extract people."}

    def test_json_mode(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client({}))
        payload = adapter.build_payload(make_request(ResponseMode.JSON))

        assert payload["response_format"] == {"type": "json_object"}
        assert payload["messages"][0]["role"] == "system"
        assert '"required"' in payload["messages"][0]["content"]
        assert len(payload["messages"]) == 3
        assert "temperature" not in payload

    def test_json_schema_mode(self):
        adapter = OpenAIAdapter(api_key="k", strict=True, client=capture_client({}))
        payload = adapter.build_payload(make_request(ResponseMode.JSON_SCHEMA))

        assert payload["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "Person", "schema": SCHEMA, "strict": True},
        }
        assert len(payload["messages"]) == 2

    def test_md_json_mode_extracts_block(self):
        content = 'Sure:\n```json\n{"name": "Ada", "age": 36}\n```'
        adapter = OpenAIAdapter(api_key="k", client=capture_client(openai_response(content=content)))

        raw = adapter.complete(make_request(ResponseMode.MD_JSON))

        assert raw == '{"name": "Ada", "age": 36}'

    def test_md_json_mode_keeps_bare_json(self):
        content = '{"snippet": "```sh\\nls\\n```"}'
        adapter = OpenAIAdapter(api_key="k", client=capture_client(openai_response(content=content)))

        assert adapter.complete(make_request(ResponseMode.MD_JSON)) == content

    def test_tools_mode_needs_schema(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client({}))
        request = Request(model="m", messages=[Message.user("hi")], mode=ResponseMode.TOOLS)

        with pytest.raises(ConfigError):
            adapter.build_payload(request)

    def test_auth_error(self):
        adapter = OpenAIAdapter(api_key="bad", client=capture_client({"error": "nope"}, status_code=401))

        with pytest.raises(ProviderAuthError) as exc_info:
            adapter.complete(make_request())
        assert exc_info.value.status_code == 401

    def test_server_error(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client({"error": "overloaded"}, status_code=503))

        with pytest.raises(ProviderError, match="HTTP 503"):
            adapter.complete(make_request())

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        adapter = OpenAIAdapter(api_key="k", client=client)

        with pytest.raises(ProviderError, match="connection refused"):
            adapter.complete(make_request())

    def test_unexpected_shape(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client({"choices": []}))

        with pytest.raises(ProviderResponseError):
            adapter.complete(make_request())

    def test_missing_tool_call(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client(openai_response(content="hello")))

        with pytest.raises(ProviderResponseError):
            adapter.complete(make_request(ResponseMode.TOOLS))

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        captured = {}
        adapter = OpenAIAdapter(client=capture_client(openai_response(content="{}"), captured=captured))

        adapter.complete(make_request(ResponseMode.JSON))

        assert captured["headers"]["authorization"] == "Bearer env-key"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ConfigError):
            OpenAIAdapter()

    def test_default_reask_replays_assistant(self):
        adapter = OpenAIAdapter(api_key="k", client=capture_client({}))

        assert adapter.reask('{"name": 1}', make_request()) == [Message.assistant('{"name": 1}')]


class TestAnthropicAdapter:
    """Anthropic Messages API."""

    def test_tools_mode(self):
        captured = {}
        response = {
            "content": [
                {"type": "text", "text": "Calling the tool"},
                {"type": "tool_use", "id": "t1", "name": "Person", "input": {"name": "Ada", "age": 36}},
            ]
        }
        adapter = AnthropicAdapter(api_key="ak", base_url="http://anthropic", client=capture_client(response, captured=captured))

        raw = adapter.complete(make_request())

        assert json.loads(raw) == {"name": "Ada", "age": 36}
        assert captured["url"] == "http://anthropic/messages"
        assert captured["headers"]["x-api-key"] == "ak"
        assert captured["headers"]["anthropic-version"] == "2023-06-01"
        payload = captured["payload"]
        assert payload["system"] == "You extract people."
        assert payload["messages"] == [{"role": "user", "content": "Ada, 36"}]
        assert payload["tools"][0]["input_schema"] == SCHEMA
        assert payload["tool_choice"] == {"type": "tool", "name": "Person"}
        assert payload["max_tokens"] == 4096

    def test_json_mode_system_instruction(self):
        adapter = AnthropicAdapter(api_key="ak", client=capture_client({}))
        payload = adapter.build_payload(make_request(ResponseMode.JSON, max_tokens=100))

        assert payload["system"].startswith("Respond only with a JSON object")
        assert payload["system"].endswith("You extract people.")
        assert payload["max_tokens"] == 100
        assert "tools" not in payload

    def test_consecutive_roles_merged(self):
        request = Request(
            model="m",
            messages=[
                Message.user("Ada, 36"),
                Message.assistant('{"name": 1}'),
                Message.system("fix the errors"),
                Message.user("again"),
                Message.tool("tool output"),
            ],
            mode=ResponseMode.JSON,
        )
        payload = AnthropicAdapter(api_key="ak", client=capture_client({})).build_payload(request)

        assert payload["messages"] == [
            {"role": "user", "content": "Ada, 36"},
            {"role": "assistant", "content": '{"name": 1}'},
            {"role": "user", "content": "again\n\ntool output"},
        ]
        assert payload["system"] == "fix the errors"

    def test_md_json_text_block(self):
        response = {"content": [{"type": "text", "text": '```json\n{"name": "Ada"}\n```'}]}
        adapter = AnthropicAdapter(api_key="ak", client=capture_client(response))

        assert adapter.complete(make_request(ResponseMode.MD_JSON)) == '{"name": "Ada"}'

    def test_no_matching_block(self):
        response = {"content": [{"type": "text", "text": "no tool"}]}
        adapter = AnthropicAdapter(api_key="ak", client=capture_client(response))

        with pytest.raises(ProviderResponseError):
            adapter.complete(make_request(ResponseMode.TOOLS))

    def test_http_error(self):
        adapter = AnthropicAdapter(api_key="ak", client=capture_client({"error": {}}, status_code=400))

        with pytest.raises(ProviderError) as exc_info:
            adapter.complete(make_request())
        assert exc_info.value.status_code == 400


class TestMockAdapter:
    """Scripted adapter."""

    def test_returns_in_order_and_records(self):
        adapter = MockAdapter(["a", "b"])
        request = make_request()

        assert adapter.complete(request) == "a"
        assert adapter.complete(request) == "b"
        assert adapter.calls == [request, request]

    def test_exhausted_script(self):
        adapter = MockAdapter(["a"])
        adapter.complete(make_request())

        with pytest.raises(ProviderError):
            adapter.complete(make_request())

    def test_repeat_last(self):
        adapter = MockAdapter(["a"], repeat_last=True)

        assert [adapter.complete(make_request()) for _ in range(3)] == ["a", "a", "a"]

    def test_raises_scripted_exception(self):
        adapter = MockAdapter([ProviderError("down")])

        with pytest.raises(ProviderError, match="down"):
            adapter.complete(make_request())


class TestAdapterFactory:
    """Provider name -> adapter."""

    def test_create_mock(self):
        adapter = AdapterFactory.create("mock", responses=["x"], timeout=5)
        assert isinstance(adapter, MockAdapter)

    def test_create_openai(self):
        adapter = AdapterFactory.create(" OpenAI ", api_key="k")
        assert isinstance(adapter, OpenAIAdapter)
        adapter.close()

    def test_create_anthropic(self):
        adapter = AdapterFactory.create("anthropic", api_key="k")
        assert isinstance(adapter, AnthropicAdapter)
        adapter.close()

    def test_unknown_provider(self):
        with pytest.raises(ConfigError, match="Unknown provider"):
            AdapterFactory.create("carrier-pigeon")

    def test_list_providers(self):
        assert AdapterFactory.list_providers() == ["openai", "anthropic", "mock"]
