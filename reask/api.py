"""
High-level Python API for reask.

``Instructor`` ties the pieces together:
    1. Derive the target JSON Schema and a decoder from the response model
    2. Build a Request from the call arguments and the client's ClientConfig
    3. Run the validation-guided retry loop through the configured adapter

Usage:
    ```python
    from pydantic import BaseModel
    from reask import ClientConfig, Instructor

    class Person(BaseModel):
        name: str
        age: int

    client = Instructor(ClientConfig(provider="openai", model="gpt-4o-mini"))
    result = client.create(Person, "Ada Lovelace was 36 when she died.", max_retries=2)
    person = result.unwrap()
    ```
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from reask.adapters.base import Adapter, AdapterFactory
from reask.config import ClientConfig
from reask.results import LLMResult
from reask.retry import RetryPolicy, run
from reask.schema import ITEMS_KEY, array_schema, schema_for, schema_name_for
from reask.types import Message, Request, ResponseMode
from reask.validation.decoder import Decoder, ItemsDecoder, decoder_for
from reask.validation.pydantic_decoder import PydanticDecoder
from reask.validation.validator import JsonSchemaDecoder

logger = logging.getLogger(__name__)

MessagesLike = Union[str, Message, Mapping[str, Any], Sequence[Union[Message, Mapping[str, Any]]]]


def normalize_messages(messages: MessagesLike) -> Tuple[Message, ...]:
    """
    Accept a bare prompt, a Message, a role/content dict, or a sequence of those.

    Raises:
        ValueError: If the conversation is empty
    """
    if isinstance(messages, str):
        items: List[Any] = [Message.user(messages)]
    elif isinstance(messages, (Message, Mapping)):
        items = [messages]
    else:
        items = list(messages)

    normalized = tuple(m if isinstance(m, Message) else Message.from_dict(m) for m in items)
    if not normalized:
        raise ValueError("At least one message is required")
    return normalized


def describe_target(response_model: Any) -> Tuple[Optional[Dict[str, Any]], str, Decoder]:
    """
    Schema, schema name and decoder for a response model.

    Args:
        response_model: Pydantic model / type, JSON Schema dict, or Decoder

    Returns:
        Tuple of (schema or None, schema name, decoder)
    """
    if isinstance(response_model, JsonSchemaDecoder):
        return response_model.schema, schema_name_for(response_model.schema), response_model
    if isinstance(response_model, PydanticDecoder):
        return response_model.json_schema(), schema_name_for(response_model.target), response_model
    if isinstance(response_model, Decoder):
        return None, "response", response_model

    return schema_for(response_model), schema_name_for(response_model), decoder_for(response_model)


class Instructor:
    """
    Client for structured extraction.

    Attributes:
        config: Defaults for every request
        adapter: Provider adapter used for every request
    """

    def __init__(self, config: Optional[ClientConfig] = None, adapter: Optional[Adapter] = None):
        """
        Initialize the client.

        Args:
            config: Client defaults (ClientConfig() if None)
            adapter: Adapter to use; built from ``config.provider`` if None

        Example:
            ```python
            # Real provider
            client = Instructor(ClientConfig(provider="anthropic", model="claude-3-5-haiku-latest"))

            # Scripted responses
            client = Instructor(adapter=MockAdapter(['{"name": "Ada", "age": 36}']))
            ```
        """
        self.config = config or ClientConfig()
        self.adapter = adapter or AdapterFactory.create(self.config.provider, **self.config.adapter_options())

        logger.info(
            f"Initialized Instructor: provider={self.adapter.name}, "
            f"model={self.config.model}, mode={self.config.mode.value}"
        )

    @classmethod
    def from_env(cls, adapter: Optional[Adapter] = None, **overrides: Any) -> "Instructor":
        """Client configured from REASK_* environment variables plus ``overrides``."""
        config = ClientConfig.from_env().with_overrides(**overrides)
        return cls(config, adapter=adapter)

    def build_request(
        self,
        messages: MessagesLike,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        schema_name: str = "response",
        model: Optional[str] = None,
        mode: Optional[Union[ResponseMode, str]] = None,
        max_retries: Optional[int] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        validation_context: Optional[Mapping[str, Any]] = None,
        stream: bool = False,
    ) -> Request:
        """Request from call arguments, falling back to the client config."""
        cfg = self.config
        return Request(
            model=model or cfg.model,
            messages=normalize_messages(messages),
            temperature=temperature if temperature is not None else cfg.temperature,
            max_tokens=max_tokens if max_tokens is not None else cfg.max_tokens,
            stream=stream,
            mode=ResponseMode(mode) if mode is not None else cfg.mode,
            max_retries=max_retries if max_retries is not None else cfg.max_retries,
            validation_context=validation_context or {},
            response_schema=response_schema,
            schema_name=schema_name,
        )

    def create(
        self,
        response_model: Any,
        messages: MessagesLike,
        *,
        policy: Optional[RetryPolicy] = None,
        stream: bool = False,
        **options: Any,
    ) -> LLMResult:
        """
        Extract one ``response_model`` value.

        Args:
            response_model: Pydantic model / type, JSON Schema dict, or Decoder
            messages: Prompt string, Message(s) or role/content dicts
            policy: Optional RetryPolicy
            stream: Mark the request as coming from a streaming entry point
            **options: model, mode, max_retries, temperature, max_tokens,
                validation_context (override the config for this call)

        Returns:
            LLMResult: Success, ValidationError or AdapterError
        """
        schema, name, decoder = describe_target(response_model)
        request = self.build_request(
            messages, response_schema=schema, schema_name=name, stream=stream, **options
        )
        return run(self.adapter, request, decoder, policy=policy)

    def create_iterable(
        self,
        response_model: Any,
        messages: MessagesLike,
        *,
        policy: Optional[RetryPolicy] = None,
        **options: Any,
    ) -> LLMResult:
        """
        Extract a list of ``response_model`` values.

        The provider is asked for ``{"items": [...]}``; every item is decoded and
        item errors are reported as ``items.<index>.<field>``.

        Returns:
            LLMResult: Success carrying a list, or a failure variant
        """
        item_schema, item_name, item_decoder = describe_target(response_model)
        schema = array_schema(item_schema if item_schema is not None else {}, title=f"{item_name}List")
        request = self.build_request(
            messages, response_schema=schema, schema_name=f"{item_name}List", **options
        )
        return run(self.adapter, request, ItemsDecoder(item_decoder, key=ITEMS_KEY), policy=policy)

    def create_partial(
        self,
        response_model: Any,
        messages: MessagesLike,
        *,
        policy: Optional[RetryPolicy] = None,
        **options: Any,
    ) -> Iterator[LLMResult]:
        """
        Streaming entry point.

        Incremental validation is not implemented: this yields exactly one
        terminal result, produced the same way as ``create`` with ``stream``
        set on the request.
        """
        yield self.create(response_model, messages, policy=policy, stream=True, **options)

    def close(self) -> None:
        self.adapter.close()

    def __enter__(self) -> "Instructor":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Instructor(provider={self.adapter.name}, model={self.config.model})"
