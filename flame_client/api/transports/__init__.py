"""Transports delivering Flame operations to the service."""

from .base import Transport
from .fixture import SAMPLE_RESPONSES, FixtureTransport
from .http import DEFAULT_ROUTES, HTTPTransport

__all__ = [
  "Transport",
  "FixtureTransport",
  "HTTPTransport",
  "SAMPLE_RESPONSES",
  "DEFAULT_ROUTES",
]
