"""Main Flame API client interface."""

import asyncio
from typing import Any, Dict, Optional, Tuple

from .concurrent.manager import RequestManager
from .http.client import HTTPClient
from .logging import get_logger
from .models import (
  ClientConfig,
  DirectoryEntry,
  FileContents,
  Operation,
  OperationKind,
  Result,
  SearchResult,
)
from .transports.base import Transport
from .transports.http import HTTPTransport
from .validation import ResponseParser

logger = get_logger(__name__, "client")


class FlameClient:
  """API surface for project browsing and search.

  The client is constructed explicitly and handed to its consumers; it owns
  a RequestManager bound to one transport. Every operation returns an
  ``asyncio.Future[Result]`` immediately::

    async with FlameClient.from_config(config) as client:
      result = await client.search("readme", 10)
      if result.ok:
        ...
      elif not result.cancelled:
        show_error(result.fault)
  """

  def __init__(
    self,
    transport: Transport,
    parser: Optional[ResponseParser] = None,
    request_timeout: Optional[float] = None,
    operation_timeouts: Optional[Dict[OperationKind, float]] = None,
  ):
    """Initialize the client.

    Args:
      transport: Transport delivering operations to the service
      parser: Response parser; the default one is used when omitted
      request_timeout: Default deadline in seconds for each underlying call
      operation_timeouts: Per-operation deadlines overriding the default
    """
    self.transport = transport
    self.manager = RequestManager(
      transport,
      parser=parser,
      request_timeout=request_timeout,
      operation_timeouts=operation_timeouts,
    )
    self._is_closed = False

    logger.debug("FlameClient created", transport=transport.name)

  @classmethod
  def from_config(cls, config: ClientConfig) -> "FlameClient":
    """Create a client talking HTTP to the service described by ``config``."""
    http_client = HTTPClient(
      max_connections=config.max_connections,
      timeout=config.timeout,
    )
    transport = HTTPTransport(
      config.base_url,
      http_client=http_client,
      headers=config.headers,
    )
    return cls(
      transport,
      request_timeout=config.request_timeout,
      operation_timeouts=config.timeouts_by_kind(),
    )

  def invoke(self, operation: Operation) -> "asyncio.Future[Result]":
    return self.manager.invoke(operation)

  def check_login(self) -> "asyncio.Future[Result[bool]]":
    return self.invoke(Operation.check_login())

  def get_project_list(self) -> "asyncio.Future[Result[Tuple[str, ...]]]":
    return self.invoke(Operation.list_projects())

  def get_directory_contents(
    self, project: str, path: str = "/"
  ) -> "asyncio.Future[Result[Tuple[DirectoryEntry, ...]]]":
    return self.invoke(Operation.list_directory(project, path))

  def get_file_contents(
    self, project: str, path: str
  ) -> "asyncio.Future[Result[FileContents]]":
    return self.invoke(Operation.read_file(project, path))

  def search(self, query: str, limit: int) -> "asyncio.Future[Result[SearchResult]]":
    return self.invoke(Operation.search(query, limit))

  def get_status(self) -> Dict[str, Any]:
    return self.manager.get_status()

  async def close(self) -> None:
    """Cancel outstanding requests and release the transport."""
    if self._is_closed:
      return

    self._is_closed = True
    await self.manager.shutdown()
    await self.transport.close()

  async def __aenter__(self) -> "FlameClient":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()
