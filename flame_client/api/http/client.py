"""HTTP client with connection pooling for the Flame service."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout, TCPConnector
from aiohttp.client_exceptions import ClientConnectorError, ClientError

from flame_client.api.exceptions import NetworkError, ResponseValidationError, TimeoutError


@dataclass
class HTTPResponse:
  """Fully read HTTP response.

  The JSON body is decoded while the connection is open; ``decode_error``
  holds the reason when that failed.
  """

  status: int
  body: bytes = b""
  headers: Dict[str, str] = field(default_factory=dict)
  data: Any = None
  decode_error: Optional[str] = None

  @property
  def text(self) -> str:
    return self.body.decode("utf-8", errors="replace")

  def json(self) -> Any:
    """Return the decoded JSON body.

    Raises:
      ResponseValidationError: If the body is not valid JSON
    """
    if self.decode_error is not None:
      raise ResponseValidationError(
        f"Response body is not valid JSON: {self.decode_error}",
        response_data=self.text[:200],
        status=self.status,
      )
    return self.data


class HTTPClient:
  """HTTP client with connection pooling.

  Requests are never retried here: retry is a caller decision.
  """

  def __init__(
    self,
    max_connections: int = 10,
    timeout: float = 30
  ):
    """Initialize HTTP client with connection pooling.

    Args:
      max_connections: Maximum number of connections in the pool
      timeout: Total request timeout in seconds
    """
    self.max_connections = max_connections
    self.timeout = timeout
    self.session: Optional[aiohttp.ClientSession] = None

  async def _get_session(self) -> aiohttp.ClientSession:
    """Get or create the aiohttp session."""
    if self.session is None:
      connector = TCPConnector(limit=self.max_connections)
      timeout = ClientTimeout(total=self.timeout)

      self.session = aiohttp.ClientSession(
        connector=connector,
        timeout=timeout
      )

    return self.session

  async def request(
    self,
    method: str,
    url: str,
    **kwargs: Any
  ) -> HTTPResponse:
    """Make HTTP request and read the whole body.

    Args:
      method: HTTP method
      url: Request URL
      **kwargs: Additional arguments passed to aiohttp

    Returns:
      HTTP response with its body read

    Raises:
      NetworkError: For network-related errors
      TimeoutError: For timeout errors
    """
    session = await self._get_session()

    try:
      async with session.request(method, url, **kwargs) as response:
        body = await response.read()
        data, decode_error = None, None
        try:
          data = await response.json(content_type=None)
        except (ValueError, LookupError) as e:
          # UnicodeDecodeError is a ValueError; LookupError is an unknown charset
          decode_error = str(e)

        return HTTPResponse(
          status=response.status,
          body=body,
          headers=dict(response.headers),
          data=data,
          decode_error=decode_error,
        )
    except asyncio.TimeoutError as e:
      raise TimeoutError(f"Request timeout: {method} {url}", timeout_seconds=self.timeout) from e
    except ClientConnectorError as e:
      raise NetworkError(f"Connection failed: {str(e)}", e)
    except ClientError as e:
      raise NetworkError(f"HTTP request failed: {str(e)}", e)

  async def close(self) -> None:
    """Close the HTTP session and clean up resources."""
    if self.session is not None:
      await self.session.close()
      self.session = None

  async def __aenter__(self) -> "HTTPClient":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()
