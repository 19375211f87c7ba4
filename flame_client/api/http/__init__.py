"""HTTP client infrastructure for the Flame service."""

from flame_client.api.http.client import HTTPClient, HTTPResponse

__all__ = [
  "HTTPClient",
  "HTTPResponse",
]
