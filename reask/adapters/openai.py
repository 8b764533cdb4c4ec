"""
OpenAI-compatible chat completions adapter (httpx).

Works with api.openai.com and with any server exposing the same
``/chat/completions`` endpoint (vLLM, Ollama, LM Studio, ...).

Mode handling:
    - tools: one function tool built from the response schema, forced via
      tool_choice; raw text is the function-call arguments
    - json: ``response_format={"type": "json_object"}`` plus a schema instruction
    - json_schema: ``response_format={"type": "json_schema", ...}``
    - md_json: schema instruction asking for a ```json block; raw text is the block
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from reask.adapters.base import Adapter, drop_none, schema_instruction
from reask.errors import ConfigError, ProviderAuthError, ProviderError, ProviderResponseError
from reask.types import Request, ResponseMode
from reask.validation.parsing import json_payload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
_AUTH_ERROR_STATUS_CODES = {401, 403}


class OpenAIAdapter(Adapter):
    """
    Adapter for OpenAI-compatible chat completion APIs.

    Usage::

        with OpenAIAdapter(api_key="sk-...") as adapter:
            raw = adapter.complete(request)
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        strict: bool = False,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: API key. Falls back to the OPENAI_API_KEY env var.
            base_url: API base URL. Falls back to OPENAI_BASE_URL, then the public API.
            timeout: Request timeout in seconds.
            strict: Send ``strict: true`` with json_schema mode (the schema must then
                forbid additional properties everywhere).
            client: Pre-built httpx client (tests pass one with a MockTransport).

        Raises:
            ConfigError: If no API key is provided or found in the environment.
        """
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        if not self._api_key:
            raise ConfigError(
                "No API key provided. Pass api_key= or set the OPENAI_API_KEY environment variable."
            )
        self._base_url = (base_url or os.environ.get("OPENAI_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self._strict = strict
        self._client = client or httpx.Client(timeout=timeout)

    def build_payload(self, request: Request) -> Dict[str, Any]:
        """
        Build the chat completions request body for ``request``.

        Args:
            request: Normalized request

        Returns:
            Dict: JSON body

        Raises:
            ConfigError: If tools or json_schema mode is used without a response schema
        """
        messages: List[Dict[str, str]] = request.message_dicts()
        payload: Dict[str, Any] = {"model": request.model}

        if request.mode in (ResponseMode.TOOLS, ResponseMode.JSON_SCHEMA) and request.response_schema is None:
            raise ConfigError(f"{request.mode.value} mode needs a response schema")

        if request.mode == ResponseMode.TOOLS:
            payload["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": request.schema_name,
                        "description": f"Correctly extracted `{request.schema_name}` with all the required parameters",
                        "parameters": request.response_schema,
                    },
                }
            ]
            payload["tool_choice"] = {"type": "function", "function": {"name": request.schema_name}}

        elif request.mode == ResponseMode.JSON_SCHEMA:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": request.schema_name,
                    "schema": request.response_schema,
                    "strict": self._strict,
                },
            }

        else:
            instruction = schema_instruction(request)
            if instruction:
                messages = [{"role": "system", "content": instruction}] + messages
            if request.mode == ResponseMode.JSON:
                payload["response_format"] = {"type": "json_object"}

        payload["messages"] = messages
        return drop_none(payload, temperature=request.temperature, max_tokens=request.max_tokens)

    def complete(self, request: Request) -> str:
        payload = self.build_payload(request)
        logger.debug(f"POST {self._base_url}/chat/completions model={request.model} mode={request.mode.value}")

        try:
            response = self._client.post(
                f"{self._base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Request to {self._base_url} failed: {e}") from e

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise ProviderAuthError(
                f"Authentication failed: HTTP {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise ProviderError(
                f"HTTP {response.status_code} - {response.text}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderResponseError(f"Response body is not JSON: {response.text[:200]}") from e

        return self.extract_text(data, request.mode)

    @staticmethod
    def extract_text(data: Dict[str, Any], mode: ResponseMode) -> str:
        """
        Pull the raw JSON payload out of a chat completions response.

        Raises:
            ProviderResponseError: If the response format is unexpected
        """
        try:
            message = data["choices"][0]["message"]
            if mode == ResponseMode.TOOLS:
                return message["tool_calls"][0]["function"]["arguments"]
            content = message.get("content") or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderResponseError(f"Cannot extract content from response: {e!r}. Response: {data}") from e

        if mode == ResponseMode.MD_JSON:
            return json_payload(content)
        return content

    def close(self) -> None:
        self._client.close()
