"""
Adapter abstraction - the only boundary between the retry loop and a provider.

An adapter knows the provider's HTTP API, its JSON shapes and its
authentication. The retry loop only knows two operations:

    - complete(request): exactly one round-trip; returns raw response text or
      raises ProviderError. Never retries internally, retry policy belongs to
      the orchestrator.
    - reask(raw, request): how the previous, invalid output should appear in
      the conversation before the corrective message is appended.

Usage:
    ```python
    from reask.adapters import AdapterFactory

    adapter = AdapterFactory.create("openai", api_key="sk-...")
    raw = adapter.complete(request)
    ```
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from reask.errors import ConfigError
from reask.types import Message, Request, ResponseMode

logger = logging.getLogger(__name__)


class Adapter(ABC):
    """
    Abstract base class for provider adapters.

    Attributes:
        name: Provider name used in logs and by the factory
    """

    name: str = "adapter"

    @abstractmethod
    def complete(self, request: Request) -> str:
        """
        Perform one completion round-trip.

        Args:
            request: Normalized request (messages, mode, schema, sampling options)

        Returns:
            str: Raw response text, already reduced to the JSON payload for the
                request's mode (tool arguments, message content, code block)

        Raises:
            ProviderError: On transport, HTTP or response-shape failure
            ConfigError: If the request cannot be expressed for this provider
        """

    def reask(self, raw: str, request: Request) -> List[Message]:
        """
        Represent a prior invalid response in the conversation.

        Args:
            raw: Raw text returned by the failed attempt
            request: The request that produced it

        Returns:
            List of messages to append before the corrective message. The default
            replays the raw text as an assistant turn.
        """
        return [Message.assistant(raw)]

    def close(self) -> None:
        """Release any held resources."""

    def __enter__(self) -> "Adapter":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def schema_instruction(request: Request) -> str:
    """
    System instruction describing the target schema for prompt-based modes.

    Args:
        request: Request carrying ``response_schema`` and ``mode``

    Returns:
        str: Instruction text (empty when the request has no schema)
    """
    if request.response_schema is None:
        return ""

    schema_text = json.dumps(request.response_schema, indent=2)
    if request.mode == ResponseMode.MD_JSON:
        return (
            "Respond with a JSON object that matches the JSON Schema below, "
            "inside a single ```json code block.\n\n"
            f"{schema_text}"
        )
    return (
        "Respond only with a JSON object that matches the JSON Schema below. "
        "No markdown, no prose.\n\n"
        f"{schema_text}"
    )


class AdapterFactory:
    """
    Factory for creating adapter instances.

    Usage:
        ```python
        adapter = AdapterFactory.create("anthropic", api_key="...")
        adapter = AdapterFactory.create("mock", responses=['{"name": "Ada"}'])
        ```
    """

    @staticmethod
    def create(provider: str, **kwargs: Any) -> Adapter:
        """
        Create an adapter for ``provider``.

        Args:
            provider: "openai", "anthropic" or "mock"
            **kwargs: Adapter-specific options (api_key, base_url, timeout, responses)

        Returns:
            Adapter: New adapter instance

        Raises:
            ConfigError: If the provider is unknown
        """
        p = provider.lower().strip()

        if p == "openai":
            from reask.adapters.openai import OpenAIAdapter
            return OpenAIAdapter(**kwargs)

        if p == "anthropic":
            from reask.adapters.anthropic import AnthropicAdapter
            return AnthropicAdapter(**kwargs)

        if p == "mock":
            from reask.adapters.mock import MockAdapter
            return MockAdapter(**kwargs)

        raise ConfigError(f"Unknown provider: {provider}")

    @staticmethod
    def list_providers() -> List[str]:
        return ["openai", "anthropic", "mock"]


def drop_none(payload: Dict[str, Any], **optional: Optional[Any]) -> Dict[str, Any]:
    """Add the non-None ``optional`` entries to ``payload``."""
    for key, value in optional.items():
        if value is not None:
            payload[key] = value
    return payload
