"""In-memory transport serving canned responses."""

import asyncio
import copy
import inspect
from typing import Any, Dict, List, Optional, Tuple

from flame_client.api.exceptions import NetworkError
from flame_client.api.models import OperationKind
from flame_client.api.transports.base import Transport

# Sample data served to front-end development builds before a server exists
SAMPLE_RESPONSES: Dict[OperationKind, Any] = {
  OperationKind.CHECK_LOGIN: True,
  OperationKind.LIST_PROJECTS: ["test1", "test2", "test3"],
  OperationKind.LIST_DIRECTORY: [
    {"name": "next/"},
    {"name": "package.json"},
    {"name": "README.md"},
  ],
  OperationKind.READ_FILE: {
    "binary": False,
    "data": "This is a test readme file.",
  },
  OperationKind.SEARCH: {
    "matchRegexp": "[Tt]his is",
    "items": [
      {
        "path": "/test1/README.md",
        "matches": [{"L": 1, "T": "This is a test readme file."}],
      },
    ],
  },
}


class FixtureTransport(Transport):
  """Transport answering from a table of canned responses.

  Each response may be a plain value (deep-copied per call), an exception
  instance (raised), or a callable taking the operation arguments as
  keyword arguments; callables may be coroutine functions. Every call is
  recorded in ``calls``.
  """

  name = "fixture"

  def __init__(
    self,
    responses: Optional[Dict[OperationKind, Any]] = None,
    delay: float = 0.0,
  ):
    self.responses = dict(SAMPLE_RESPONSES if responses is None else responses)
    self.delay = delay
    self.calls: List[Tuple[OperationKind, Dict[str, Any]]] = []
    self.closed = False

  async def send(self, kind: OperationKind, arguments: Dict[str, Any]) -> Any:
    self.calls.append((kind, dict(arguments)))

    if self.delay:
      await asyncio.sleep(self.delay)

    if kind not in self.responses:
      raise NetworkError(f"No fixture registered for {kind.value}")

    response = self.responses[kind]

    if isinstance(response, BaseException):
      raise response

    if callable(response):
      response = response(**arguments)
      if inspect.isawaitable(response):
        response = await response
      return response

    return copy.deepcopy(response)

  def call_count(self, kind: Optional[OperationKind] = None) -> int:
    if kind is None:
      return len(self.calls)
    return sum(1 for called, _ in self.calls if called is kind)

  async def close(self) -> None:
    self.closed = True
