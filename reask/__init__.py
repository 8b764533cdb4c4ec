"""
reask: validated, strongly-typed structured output from LLM providers

reask sends prompts to LLM providers and coerces their text output into
validated data structures. When a response does not decode, the validation
errors are sent back to the model in a corrective message and the request is
re-issued, up to a bounded number of retries.

Key Features:
    - Pydantic models, JSON Schema dicts or custom decoders as targets
    - Four response modes: tools, json, json_schema, md_json
    - Corrective retries driven by structured decode errors
    - Failures returned as values (Success / ValidationError / AdapterError)
    - OpenAI-compatible and Anthropic adapters, plus a scripted mock

Quick Start:
    ```python
    from pydantic import BaseModel
    from reask import ClientConfig, Instructor, Success

    class User(BaseModel):
        name: str
        age: int

    client = Instructor(ClientConfig(provider="openai", model="gpt-4o-mini"))
    result = client.create(User, "John Doe is 30 years old", max_retries=3)

    if isinstance(result, Success):
        print(result.value)
    ```

Architecture:
    1. Schema: pydantic model / dict -> JSON Schema for the provider
    2. Adapter: one provider round-trip per attempt, raw JSON text back
    3. Validation: parse + decode into the target, structured errors on failure
    4. Retry loop: corrective message with the errors, bounded retries
"""

__version__ = "0.1.0"

from reask.adapters import Adapter, AdapterFactory, AnthropicAdapter, MockAdapter, OpenAIAdapter
from reask.api import Instructor
from reask.config import ClientConfig
from reask.errors import (
    ConfigError,
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    ReaskError,
    ResultError,
)
from reask.results import AdapterError, LLMResult, Success, ValidationError
from reask.retry import RetryPolicy, run
from reask.types import Message, Request, ResponseMode, Role
from reask.validation import (
    DecodeError,
    DecodeResult,
    Decoder,
    FunctionDecoder,
    JsonSchemaDecoder,
    PydanticDecoder,
)

__all__ = [
    "Adapter",
    "AdapterFactory",
    "AnthropicAdapter",
    "MockAdapter",
    "OpenAIAdapter",
    "Instructor",
    "ClientConfig",
    "ConfigError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderResponseError",
    "ReaskError",
    "ResultError",
    "AdapterError",
    "LLMResult",
    "Success",
    "ValidationError",
    "RetryPolicy",
    "run",
    "Message",
    "Request",
    "ResponseMode",
    "Role",
    "DecodeError",
    "DecodeResult",
    "Decoder",
    "FunctionDecoder",
    "JsonSchemaDecoder",
    "PydanticDecoder",
]
