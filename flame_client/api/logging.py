"""Structured logging and debugging support for the Flame API client."""

import logging
import os
import sys
from typing import Any, Dict, Optional

import structlog


class SensitiveDataFilter:
  """Filter to prevent credentials from being logged."""

  SENSITIVE_KEYS = {
    "authorization", "cookie", "password", "secret", "token",
    "session", "api_key", "credential", "x-auth",
  }

  @classmethod
  def filter_sensitive_data(cls, data: Any) -> Any:
    """Recursively filter sensitive data from dictionaries and other structures.

    Args:
      data: Data structure to filter

    Returns:
      Filtered data structure with sensitive values replaced
    """
    if isinstance(data, dict):
      filtered = {}
      for key, value in data.items():
        if isinstance(key, str) and cls._is_sensitive_key(key):
          filtered[key] = cls._mask_sensitive_value(value)
        else:
          filtered[key] = cls.filter_sensitive_data(value)
      return filtered
    elif isinstance(data, list):
      return [cls.filter_sensitive_data(item) for item in data]
    elif isinstance(data, tuple):
      return tuple(cls.filter_sensitive_data(item) for item in data)
    else:
      return data

  @classmethod
  def _is_sensitive_key(cls, key: str) -> bool:
    key_lower = key.lower().replace("-", "_").replace(" ", "_")
    return any(sensitive.replace("-", "_") in key_lower for sensitive in cls.SENSITIVE_KEYS)

  @classmethod
  def _mask_sensitive_value(cls, value: Any) -> str:
    """Mask a sensitive value, keeping a short prefix and suffix of long values."""
    if value is None:
      return "[NONE]"

    value_str = str(value)
    if len(value_str) <= 8:
      return "[REDACTED]"
    return f"{value_str[:4]}...{value_str[-4:]}"


def configure_logging(
  debug_mode: bool = False,
  log_level: Optional[str] = None,
  log_file: Optional[str] = None,
  structured: bool = True,
) -> None:
  """Configure structured logging for the Flame client.

  Args:
    debug_mode: Enable debug mode with detailed logging
    log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    log_file: Optional file path for log output
    structured: Use structured JSON logging format
  """
  if log_level:
    level = getattr(logging, log_level.upper(), logging.INFO)
  elif debug_mode:
    level = logging.DEBUG
  else:
    level = logging.INFO

  processors = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    _add_process_context,
    _filter_sensitive_processor,
  ]

  if structured:
    processors.append(structlog.processors.JSONRenderer())
  else:
    processors.append(structlog.dev.ConsoleRenderer())

  structlog.configure(
    processors=processors,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
  )

  # Logs go to stderr so command output on stdout stays machine-readable
  handlers = []

  console_handler = logging.StreamHandler(sys.stderr)
  console_handler.setLevel(level)
  handlers.append(console_handler)

  if log_file:
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    handlers.append(file_handler)

  logging.basicConfig(
    level=level,
    handlers=handlers,
    format="%(message)s" if structured else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
  )

  logging.getLogger("aiohttp").setLevel(logging.WARNING)
  logging.getLogger("asyncio").setLevel(logging.WARNING)


def _add_process_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  event_dict["process_id"] = os.getpid()
  return event_dict


def _filter_sensitive_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  return SensitiveDataFilter.filter_sensitive_data(event_dict)


class FlameLogger:
  """Logger for Flame client operations with context management."""

  def __init__(self, name: str, component: Optional[str] = None):
    """Initialize the logger with optional component context.

    Args:
      name: Logger name
      component: Optional component name (transport, manager, ...) for context
    """
    self.name = name
    self.logger = structlog.get_logger(name)
    self.context: Dict[str, Any] = {}

    if component:
      self.context["component"] = component

  def _event(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    return SensitiveDataFilter.filter_sensitive_data({**self.context, **kwargs})

  def debug(self, message: str, **kwargs: Any) -> None:
    self.logger.debug(message, **self._event(kwargs))

  def info(self, message: str, **kwargs: Any) -> None:
    self.logger.info(message, **self._event(kwargs))

  def warning(self, message: str, **kwargs: Any) -> None:
    self.logger.warning(message, **self._event(kwargs))

  def error(self, message: str, **kwargs: Any) -> None:
    self.logger.error(message, **self._event(kwargs))

  def log_request(
    self,
    operation: str,
    arguments: Optional[Dict[str, Any]] = None,
    **kwargs: Any
  ) -> None:
    """Log an outgoing operation request.

    Args:
      operation: Operation name
      arguments: Operation arguments (filtered for sensitive data)
      **kwargs: Additional context
    """
    context = {
      "event_type": "flame_request",
      "operation": operation,
      **kwargs
    }

    if arguments:
      context["arguments"] = arguments

    self.debug("Flame API request issued", **context)

  def log_response(
    self,
    operation: str,
    latency_ms: int,
    status_code: Optional[int] = None,
    **kwargs: Any
  ) -> None:
    """Log a completed operation.

    Args:
      operation: Operation name
      latency_ms: Response latency in milliseconds
      status_code: HTTP status code when the transport is HTTP
      **kwargs: Additional context
    """
    context = {
      "event_type": "flame_response",
      "operation": operation,
      "latency_ms": latency_ms,
      **kwargs
    }

    if status_code is not None:
      context["status_code"] = status_code

    if status_code is not None and status_code >= 400:
      self.warning("Flame API request rejected", **context)
    else:
      self.debug("Flame API request completed", **context)

  def log_fault(
    self,
    operation: str,
    fault_kind: str,
    message: str,
    latency_ms: Optional[int] = None,
    **kwargs: Any
  ) -> None:
    """Log a request-level fault returned to callers.

    Protocol faults indicate a client/server contract bug and are logged as
    errors; the others are transient and logged as warnings.
    """
    context = {
      "event_type": "flame_fault",
      "operation": operation,
      "fault_kind": fault_kind,
      "fault_message": message,
      **kwargs
    }

    if latency_ms is not None:
      context["latency_ms"] = latency_ms

    if fault_kind == "Protocol":
      self.error("Flame API request failed", **context)
    else:
      self.warning("Flame API request failed", **context)

  def log_in_flight_status(
    self,
    in_flight: int,
    total_issued: int,
    total_coalesced: int,
    total_cancelled: int,
    **kwargs: Any
  ) -> None:
    """Log request manager counters for debugging."""
    context = {
      "event_type": "in_flight_status",
      "in_flight": in_flight,
      "total_issued": total_issued,
      "total_coalesced": total_coalesced,
      "total_cancelled": total_cancelled,
      **kwargs
    }

    self.debug("Request manager status", **context)


def get_logger(name: str, component: Optional[str] = None) -> FlameLogger:
  """Get a FlameLogger instance with optional component context."""
  return FlameLogger(name, component)
