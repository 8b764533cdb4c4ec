"""
Provider adapter module.

Adapters are the retry loop's only view of a provider. Each one turns a
normalized Request into exactly one HTTP round-trip and reduces the answer to
the raw JSON text for the request's response mode.

Components:
    - base: Adapter ABC, AdapterFactory, shared prompt helpers
    - openai: OpenAI-compatible chat completions
    - anthropic: Anthropic Messages API
    - mock: Scripted adapter for tests and demos
"""

from reask.adapters.anthropic import AnthropicAdapter
from reask.adapters.base import Adapter, AdapterFactory, schema_instruction
from reask.adapters.mock import MockAdapter
from reask.adapters.openai import OpenAIAdapter

__all__ = [
    "Adapter",
    "AdapterFactory",
    "schema_instruction",
    "AnthropicAdapter",
    "MockAdapter",
    "OpenAIAdapter",
]
