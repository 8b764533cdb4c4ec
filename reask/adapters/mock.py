"""
Scripted adapter for tests, demos and the CLI's ``mock`` provider.

Responses are consumed in order; an Exception instance in the script is
raised instead of returned. Every request is recorded in ``calls``.
"""

import logging
from typing import Callable, List, Optional, Sequence, Union

from reask.adapters.base import Adapter
from reask.errors import ProviderError
from reask.types import Message, Request

logger = logging.getLogger(__name__)

Scripted = Union[str, Exception]


class MockAdapter(Adapter):
    """
    Adapter returning canned responses.

    Attributes:
        calls: Requests received by ``complete``, in order
        reask_calls: (raw, request) pairs received by ``reask``
    """

    name = "mock"

    def __init__(
        self,
        responses: Sequence[Scripted] = (),
        repeat_last: bool = False,
        reask_fn: Optional[Callable[[str, Request], List[Message]]] = None,
        **_: object,
    ):
        self._responses: List[Scripted] = list(responses)
        self._repeat_last = repeat_last
        self._reask_fn = reask_fn
        self.calls: List[Request] = []
        self.reask_calls: List[tuple] = []

    def complete(self, request: Request) -> str:
        self.calls.append(request)
        index = len(self.calls) - 1

        if index >= len(self._responses):
            if not (self._repeat_last and self._responses):
                raise ProviderError(f"Mock adapter has no response scripted for call {index + 1}")
            index = len(self._responses) - 1

        response = self._responses[index]
        logger.debug(f"Mock call {index + 1}: {response!r}")
        if isinstance(response, Exception):
            raise response
        return response

    def reask(self, raw: str, request: Request) -> List[Message]:
        self.reask_calls.append((raw, request))
        if self._reask_fn is not None:
            return self._reask_fn(raw, request)
        return super().reask(raw, request)
