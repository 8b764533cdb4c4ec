"""
Terminal outcomes of the retry loop.

Exactly one of these is produced per top-level call:
    - Success: the decoded value
    - ValidationError: formatted decode errors of the last attempt
    - AdapterError: the provider failure message

Callers branch on the variant (``isinstance`` or ``is_success``) or call
``unwrap()`` to get the value and raise ``ResultError`` otherwise.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar, Union

from reask.errors import ResultError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """
    The response decoded into the target type.

    Attributes:
        value: Decoded value
        attempts: Number of provider calls made
        raw_response: Raw text of the successful attempt
    """

    value: T
    attempts: int = 1
    raw_response: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class ValidationError:
    """
    Retry budget exhausted without a valid response.

    Attributes:
        errors: One formatted line per decode error of the final attempt
        attempts: Number of provider calls made
        raw_response: Raw text of the final attempt
    """

    errors: List[str] = field(default_factory=list)
    attempts: int = 1
    raw_response: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ResultError(
            "Response failed validation:\n" + "\n".join(self.errors), result=self
        )


@dataclass(frozen=True)
class AdapterError:
    """
    The provider call failed; not retried.

    Attributes:
        message: Error text reported by the adapter
        attempts: Number of provider calls made
    """

    message: str
    attempts: int = 1

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ResultError(f"Provider call failed: {self.message}", result=self)


LLMResult = Union[Success[T], ValidationError, AdapterError]
