"""Client for the Flame project browsing and search service."""

from .client import FlameClient
from .concurrent import RequestManager
from .exceptions import (
  ConfigurationError,
  FaultError,
  FlameError,
  NetworkError,
  ResponseValidationError,
  TimeoutError,
  TransportError,
)
from .models import (
  ClientConfig,
  ConcurrencyPolicy,
  DirectoryEntry,
  Fault,
  FaultKind,
  FileContents,
  Operation,
  OperationKind,
  Result,
  SearchItem,
  SearchMatch,
  SearchResult,
)
from .transports import FixtureTransport, HTTPTransport, Transport

__all__ = [
  "FlameClient",
  "RequestManager",
  "FlameError",
  "ConfigurationError",
  "FaultError",
  "NetworkError",
  "ResponseValidationError",
  "TimeoutError",
  "TransportError",
  "ClientConfig",
  "ConcurrencyPolicy",
  "DirectoryEntry",
  "Fault",
  "FaultKind",
  "FileContents",
  "Operation",
  "OperationKind",
  "Result",
  "SearchItem",
  "SearchMatch",
  "SearchResult",
  "Transport",
  "FixtureTransport",
  "HTTPTransport",
]
