"""HTTP transport for the Flame REST service."""

import time
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from flame_client.api.exceptions import NetworkError, ResponseValidationError
from flame_client.api.http.client import HTTPClient
from flame_client.api.logging import get_logger
from flame_client.api.models import OperationKind
from flame_client.api.transports.base import Transport

logger = get_logger(__name__, "http_transport")

DEFAULT_ROUTES: Dict[OperationKind, Tuple[str, str]] = {
  OperationKind.CHECK_LOGIN: ("GET", "/api/v1/user/login"),
  OperationKind.LIST_PROJECTS: ("GET", "/api/v1/projects"),
  OperationKind.LIST_DIRECTORY: ("GET", "/api/v1/projects/{project}/tree"),
  OperationKind.READ_FILE: ("GET", "/api/v1/projects/{project}/blob"),
  OperationKind.SEARCH: ("GET", "/api/v1/search"),
}


class HTTPTransport(Transport):
  """Maps Flame operations onto REST routes.

  Arguments named in a route template are URL-quoted into the path; the
  remaining arguments become query parameters.
  """

  name = "http"

  def __init__(
    self,
    base_url: str,
    http_client: Optional[HTTPClient] = None,
    headers: Optional[Dict[str, str]] = None,
    routes: Optional[Dict[OperationKind, Tuple[str, str]]] = None,
  ):
    """Initialize the transport.

    Args:
      base_url: Service root, e.g. ``https://flame.example.com``
      http_client: Shared HTTP client; a private one is created when omitted
      headers: Headers sent with every request (session cookie, auth token)
      routes: Override for the operation to (method, path template) mapping
    """
    self.base_url = base_url.rstrip("/")
    self.http_client = http_client or HTTPClient()
    self.headers = dict(headers or {})
    self.routes = {**DEFAULT_ROUTES, **(routes or {})}

  def build_request(
    self, kind: OperationKind, arguments: Dict[str, Any]
  ) -> Tuple[str, str, Dict[str, str]]:
    """Return (method, url, query params) for an operation."""
    method, template = self.routes[kind]

    path_args = {
      name: quote(str(value), safe="")
      for name, value in arguments.items()
      if f"{{{name}}}" in template
    }
    params = {
      name: str(value)
      for name, value in arguments.items()
      if name not in path_args
    }

    return method, self.base_url + template.format(**path_args), params

  async def send(self, kind: OperationKind, arguments: Dict[str, Any]) -> Any:
    method, url, params = self.build_request(kind, arguments)

    logger.log_request(kind.value, arguments, method=method, url=url)
    start_time = time.monotonic()

    response = await self.http_client.request(
      method, url, params=params or None, headers=self.headers or None
    )

    logger.log_response(
      kind.value,
      latency_ms=int((time.monotonic() - start_time) * 1000),
      status_code=response.status,
    )

    # An unauthenticated session is the negative answer to a login check
    if kind is OperationKind.CHECK_LOGIN and response.status == 401:
      return False

    if response.status >= 500:
      raise NetworkError(f"Service unavailable (HTTP {response.status}) for {kind.value}")

    if response.status >= 400:
      raise ResponseValidationError(
        f"Service rejected {kind.value} request (HTTP {response.status})",
        operation=kind.value,
        response_data=response.text[:200],
        status=response.status,
      )

    return response.json()

  async def close(self) -> None:
    await self.http_client.close()

  def __repr__(self) -> str:
    return f"HTTPTransport(base_url='{self.base_url}')"
