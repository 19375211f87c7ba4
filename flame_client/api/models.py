"""Data models for Flame API operations, payloads and results."""

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from .exceptions import ConfigurationError, FaultError

T = TypeVar("T")


class ConcurrencyPolicy(str, Enum):
    """How duplicate in-flight requests for the same key are handled."""

    CANCEL_PREVIOUS = "cancel-previous"
    COALESCE = "coalesce-and-wait"


class OperationKind(str, Enum):
    """Logical operations exposed by the Flame service."""

    CHECK_LOGIN = "checkLogin"
    LIST_PROJECTS = "listProjects"
    LIST_DIRECTORY = "listDirectory"
    READ_FILE = "readFile"
    SEARCH = "search"

    @property
    def policy(self) -> ConcurrencyPolicy:
        return OPERATION_POLICIES[self]


# Queries are refined interactively, so only the latest answer matters.
# Reads are idempotent, so duplicates share one call.
OPERATION_POLICIES = {
    OperationKind.SEARCH: ConcurrencyPolicy.CANCEL_PREVIOUS,
    OperationKind.LIST_DIRECTORY: ConcurrencyPolicy.CANCEL_PREVIOUS,
    OperationKind.LIST_PROJECTS: ConcurrencyPolicy.CANCEL_PREVIOUS,
    OperationKind.READ_FILE: ConcurrencyPolicy.COALESCE,
    OperationKind.CHECK_LOGIN: ConcurrencyPolicy.COALESCE,
}


def normalize_path(path: str) -> str:
    """Normalize a project-relative path to an absolute POSIX form.

    ``"README.md"``, ``"/README.md"`` and ``"./README.md"`` all normalize to
    ``"/README.md"``; the empty path is the project root.
    """
    if not isinstance(path, str):
        raise ValueError("Path must be a string")
    return posixpath.normpath("/" + path.lstrip("/"))


@dataclass(frozen=True)
class Operation:
    """A single logical operation with its normalized arguments."""

    kind: OperationKind
    args: tuple[tuple[str, Any], ...] = ()

    def __post_init__(self):
        """Validate operation arguments after initialization."""
        if not isinstance(self.kind, OperationKind):
            raise ValueError(f"Unknown operation kind: {self.kind!r}")

        arguments = dict(self.args)

        if self.kind in (OperationKind.LIST_DIRECTORY, OperationKind.READ_FILE):
            if not arguments.get("project"):
                raise ValueError("Project cannot be empty")
            if "path" not in arguments:
                raise ValueError("Path is required")

        if self.kind is OperationKind.SEARCH:
            query = arguments.get("query")
            limit = arguments.get("limit")
            if not isinstance(query, str) or not query:
                raise ValueError("Search query cannot be empty")
            if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
                raise ValueError("Search limit must be a positive integer")

    @classmethod
    def check_login(cls) -> "Operation":
        return cls(OperationKind.CHECK_LOGIN)

    @classmethod
    def list_projects(cls) -> "Operation":
        return cls(OperationKind.LIST_PROJECTS)

    @classmethod
    def list_directory(cls, project: str, path: str = "/") -> "Operation":
        return cls(
            OperationKind.LIST_DIRECTORY,
            (("project", project), ("path", normalize_path(path))),
        )

    @classmethod
    def read_file(cls, project: str, path: str) -> "Operation":
        return cls(
            OperationKind.READ_FILE,
            (("project", project), ("path", normalize_path(path))),
        )

    @classmethod
    def search(cls, query: str, limit: int) -> "Operation":
        return cls(OperationKind.SEARCH, (("query", query), ("limit", limit)))

    @property
    def arguments(self) -> dict[str, Any]:
        return dict(self.args)

    @property
    def key(self) -> tuple[OperationKind, tuple[tuple[str, Any], ...]]:
        """In-flight key used to detect duplicate concurrent requests."""
        return (self.kind, self.args)

    @property
    def policy(self) -> ConcurrencyPolicy:
        return self.kind.policy

    def __str__(self) -> str:
        rendered = ", ".join(f"{name}={value!r}" for name, value in self.args)
        return f"{self.kind.value}({rendered})"


@dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a directory listing; directory names end with '/'."""

    name: str

    def __post_init__(self):
        if not self.name:
            raise ValueError("Directory entry name cannot be empty")

    @property
    def is_directory(self) -> bool:
        return self.name.endswith("/")


@dataclass(frozen=True)
class FileContents:
    """Contents of a project file.

    Text files carry ``str`` data and binary files carry ``bytes``.
    """

    binary: bool
    data: Union[str, bytes]

    def __post_init__(self):
        if self.binary and not isinstance(self.data, bytes):
            raise ValueError("Binary file contents must be bytes")
        if not self.binary and not isinstance(self.data, str):
            raise ValueError("Text file contents must be a string")


@dataclass(frozen=True)
class SearchMatch:
    line: int
    text: str

    def __post_init__(self):
        if self.line < 1:
            raise ValueError("Match line numbers start at 1")


@dataclass(frozen=True)
class SearchItem:
    path: str
    matches: tuple[SearchMatch, ...] = ()


@dataclass(frozen=True)
class SearchResult:
    """Search hits grouped by file, with the pattern the server matched."""

    match_pattern: str
    items: tuple[SearchItem, ...] = ()

    @property
    def match_count(self) -> int:
        return sum(len(item.matches) for item in self.items)


class FaultKind(str, Enum):
    UNAVAILABLE = "Unavailable"
    PROTOCOL = "Protocol"
    TIMEOUT = "Timeout"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class Fault:
    """A request-level failure returned to the caller as a value."""

    kind: FaultKind
    message: str
    operation: Optional[Operation] = None
    cause: Optional[Exception] = field(default=None, compare=False)

    @property
    def retryable(self) -> bool:
        """Whether offering the user a retry makes sense."""
        return self.kind in (FaultKind.UNAVAILABLE, FaultKind.TIMEOUT)

    @classmethod
    def cancelled(cls, operation: Operation) -> "Fault":
        return cls(
            FaultKind.CANCELLED,
            f"{operation} was superseded by a newer request",
            operation,
        )


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: either a payload value or a fault."""

    value: Optional[T] = None
    fault: Optional[Fault] = None

    def __post_init__(self):
        if self.fault is not None and self.value is not None:
            raise ValueError("Result cannot carry both a value and a fault")

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, fault: Fault) -> "Result[T]":
        return cls(fault=fault)

    @property
    def ok(self) -> bool:
        return self.fault is None

    @property
    def cancelled(self) -> bool:
        return self.fault is not None and self.fault.kind is FaultKind.CANCELLED

    def unwrap(self) -> T:
        """Return the payload or raise FaultError for a faulted result."""
        if self.fault is not None:
            raise FaultError(self.fault)
        return self.value


@dataclass
class ClientConfig:
    """Configuration for a Flame API client."""

    base_url: str
    timeout: float = 30
    request_timeout: Optional[float] = None
    operation_timeouts: dict[str, float] = field(default_factory=dict)
    max_connections: int = 10
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate client configuration after initialization."""
        if not self.base_url:
            raise ConfigurationError("Base URL cannot be empty", field="base_url")

        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Base URL must use http or https: {self.base_url}", field="base_url"
            )

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", field="timeout")

        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigurationError(
                "Request timeout must be positive", field="request_timeout"
            )

        if self.max_connections <= 0:
            raise ConfigurationError(
                "Max connections must be positive", field="max_connections"
            )

        known = {kind.value for kind in OperationKind}
        for name, value in self.operation_timeouts.items():
            if name not in known:
                raise ConfigurationError(
                    f"Unknown operation '{name}'. Known operations: {sorted(known)}",
                    field=f"operation_timeouts.{name}",
                )
            if value <= 0:
                raise ConfigurationError(
                    f"Timeout for '{name}' must be positive",
                    field=f"operation_timeouts.{name}",
                )

    def timeouts_by_kind(self) -> dict[OperationKind, float]:
        return {
            OperationKind(name): value for name, value in self.operation_timeouts.items()
        }

    @classmethod
    def from_dict(
        cls, config_dict: dict[str, Any], config_file: str = ""
    ) -> "ClientConfig":
        """Create ClientConfig from dictionary.

        Args:
          config_dict: Configuration dictionary (the ``client`` section, or
            the whole file when it has no such section)
          config_file: Source file path for error reporting

        Returns:
          ClientConfig instance

        Raises:
          ConfigurationError: If configuration is invalid
        """
        section = config_dict.get("client", config_dict)
        if not isinstance(section, dict):
            raise ConfigurationError(
                "Client section must be a dictionary",
                config_file=config_file,
                field="client",
            )

        for name in ("operation_timeouts", "headers"):
            if name in section and not isinstance(section[name], dict):
                raise ConfigurationError(
                    f"'{name}' must be a dictionary",
                    config_file=config_file,
                    field=name,
                )

        # Values substituted from environment variables arrive as strings
        section = dict(section)
        for name, cast in _NUMERIC_FIELDS.items():
            if section.get(name) is not None:
                section[name] = _coerce_number(section[name], cast, name, config_file)
        if "operation_timeouts" in section:
            section["operation_timeouts"] = {
                op: _coerce_number(value, float, f"operation_timeouts.{op}", config_file)
                for op, value in section["operation_timeouts"].items()
            }

        try:
            return cls(**section)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid client configuration: {e}", config_file=config_file
            )
        except ConfigurationError as e:
            e.config_file = config_file
            raise


_NUMERIC_FIELDS = {
    "timeout": float,
    "request_timeout": float,
    "max_connections": int,
}


def _coerce_number(value: Any, cast: type, field_name: str, config_file: str) -> Any:
    if isinstance(value, str):
        try:
            return cast(value.strip())
        except ValueError:
            pass
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return value

    raise ConfigurationError(
        f"'{field_name}' must be a number, got {value!r}",
        config_file=config_file,
        field=field_name,
    )
