"""
Core data model shared by the orchestrator, decoders and adapters.

A conversation is an ordered tuple of Messages. Requests are frozen: each
retry produces a new Request with the corrective messages appended and the
retry budget decremented, so no state is shared between attempts.

Usage:
    ```python
    from reask.types import Message, Request, ResponseMode

    request = Request(
        model="gpt-4o-mini",
        messages=[Message.user("Extract: Ada Lovelace, 36")],
        mode=ResponseMode.JSON_SCHEMA,
        max_retries=2,
    )
    ```
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class Role(str, Enum):
    """Speaker tag attached to every message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ResponseMode(str, Enum):
    """
    How the target schema is communicated to the provider.

    Attributes:
        TOOLS: Function-call arguments carry the JSON object
        JSON: Provider JSON mode, schema described in the prompt
        JSON_SCHEMA: Provider-enforced schema-constrained JSON
        MD_JSON: JSON inside a fenced ```json code block
    """

    TOOLS = "tools"
    JSON = "json"
    JSON_SCHEMA = "json_schema"
    MD_JSON = "md_json"


@dataclass(frozen=True)
class Message:
    """Role-tagged text exchanged with the provider."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        return cls(role=Role(data["role"]), content=str(data.get("content") or ""))

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    @classmethod
    def tool(cls, content: str) -> "Message":
        return cls(Role.TOOL, content)


@dataclass(frozen=True)
class Request:
    """
    One completion request, immutable per attempt.

    Attributes:
        model: Provider model identifier
        messages: Conversation so far, in turn order
        temperature: Sampling temperature (provider default if None)
        max_tokens: Completion length cap (provider default if None)
        stream: Whether the caller asked for a streaming entry point
        mode: Response encoding mode, interpreted only by adapters
        max_retries: Remaining corrective retries (never negative)
        validation_context: Extra data handed to decoders that accept it
        response_schema: JSON Schema of the target shape, for adapters
        schema_name: Name used for tools / schema-constrained formats
    """

    model: str
    messages: Tuple[Message, ...]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = False
    mode: ResponseMode = ResponseMode.TOOLS
    max_retries: int = 0
    validation_context: Mapping[str, Any] = field(default_factory=dict)
    response_schema: Optional[Dict[str, Any]] = None
    schema_name: str = "response"

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "mode", ResponseMode(self.mode))
        object.__setattr__(
            self, "validation_context", MappingProxyType(dict(self.validation_context))
        )

    def retry_with(self, messages: Iterable[Message]) -> "Request":
        """Next attempt: messages appended, one retry consumed."""
        return replace(
            self,
            messages=self.messages + tuple(messages),
            max_retries=self.max_retries - 1,
        )

    def message_dicts(self) -> list:
        return [m.to_dict() for m in self.messages]
