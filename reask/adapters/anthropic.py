"""
Anthropic Messages API adapter (httpx).

System messages are hoisted into the top-level ``system`` field, since the
Messages API only accepts user/assistant turns. Consecutive turns with the
same role are merged.

Mode handling:
    - tools: one tool whose input_schema is the response schema, forced via
      tool_choice; raw text is the tool_use input serialized as JSON
    - json / json_schema / md_json: schema instruction in the system prompt;
      raw text is the first text block (code block extracted for md_json)
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from reask.adapters.base import Adapter, drop_none, schema_instruction
from reask.errors import ConfigError, ProviderAuthError, ProviderError, ProviderResponseError
from reask.types import Request, ResponseMode, Role
from reask.validation.parsing import json_payload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096
_AUTH_ERROR_STATUS_CODES = {401, 403}


class AnthropicAdapter(Adapter):
    """Adapter for the Anthropic Messages API."""

    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ):
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        if not self._api_key:
            raise ConfigError(
                "No API key provided. Pass api_key= or set the ANTHROPIC_API_KEY environment variable."
            )
        self._base_url = (base_url or os.environ.get("ANTHROPIC_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def build_payload(self, request: Request) -> Dict[str, Any]:
        system_parts: List[str] = []
        turns: List[Dict[str, str]] = []

        for message in request.messages:
            if message.role == Role.SYSTEM:
                system_parts.append(message.content)
                continue
            # tool results have no role of their own here
            role = "assistant" if message.role == Role.ASSISTANT else "user"
            if turns and turns[-1]["role"] == role:
                turns[-1]["content"] += "\n\n" + message.content
            else:
                turns.append({"role": role, "content": message.content})

        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
        }

        if request.mode == ResponseMode.TOOLS:
            if request.response_schema is None:
                raise ConfigError("tools mode needs a response schema")
            payload["tools"] = [
                {
                    "name": request.schema_name,
                    "description": f"Correctly extracted `{request.schema_name}` with all the required parameters",
                    "input_schema": request.response_schema,
                }
            ]
            payload["tool_choice"] = {"type": "tool", "name": request.schema_name}
        else:
            instruction = schema_instruction(request)
            if instruction:
                system_parts.insert(0, instruction)

        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        payload["messages"] = turns
        return drop_none(payload, temperature=request.temperature)

    def complete(self, request: Request) -> str:
        payload = self.build_payload(request)
        logger.debug(f"POST {self._base_url}/messages model={request.model} mode={request.mode.value}")

        try:
            response = self._client.post(
                f"{self._base_url}/messages",
                json=payload,
                headers={"x-api-key": self._api_key, "anthropic-version": API_VERSION},
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
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ProviderResponseError(f"Unexpected response format: missing 'content'. Response: {data}")

        wanted = "tool_use" if mode == ResponseMode.TOOLS else "text"
        for block in blocks:
            if not isinstance(block, dict) or block.get("type") != wanted:
                continue
            if wanted == "tool_use":
                return json.dumps(block.get("input", {}))
            text = block.get("text") or ""
            if mode == ResponseMode.MD_JSON:
                return json_payload(text)
            return text

        raise ProviderResponseError(f"No {wanted} block in response. Response: {data}")

    def close(self) -> None:
        self._client.close()
