"""Abstract base class for Flame service transports."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from flame_client.api.models import OperationKind


class Transport(ABC):
  """Capability to deliver one operation to the Flame service.

  A transport knows the wire format and nothing about concurrency policy:
  it is called once per underlying network call and returns the decoded
  response as plain JSON-like data.
  """

  name = "transport"

  @abstractmethod
  async def send(self, kind: OperationKind, arguments: Dict[str, Any]) -> Any:
    """Send an operation and return the raw decoded response.

    Args:
      kind: Operation to perform
      arguments: Normalized operation arguments

    Returns:
      Decoded response data (booleans, lists, dictionaries)

    Raises:
      TransportError: When the service cannot be reached
      TimeoutError: When the transport gives up waiting
      ResponseValidationError: When the service answers with something unusable
    """
    pass

  async def close(self) -> None:
    """Release transport resources."""
