"""Unit tests for Flame data models."""

import pytest

from flame_client.api.exceptions import ConfigurationError, FaultError
from flame_client.api.models import (
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
  normalize_path,
)


class TestOperation:
  """Test cases for Operation identity and validation."""

  @pytest.mark.parametrize(
    "kind, policy",
    [
      (OperationKind.SEARCH, ConcurrencyPolicy.CANCEL_PREVIOUS),
      (OperationKind.LIST_DIRECTORY, ConcurrencyPolicy.CANCEL_PREVIOUS),
      (OperationKind.LIST_PROJECTS, ConcurrencyPolicy.CANCEL_PREVIOUS),
      (OperationKind.READ_FILE, ConcurrencyPolicy.COALESCE),
      (OperationKind.CHECK_LOGIN, ConcurrencyPolicy.COALESCE),
    ],
  )
  def test_policy_per_operation_class(self, kind, policy):
    assert kind.policy is policy

  def test_equivalent_paths_share_a_key(self):
    """Test that path spellings of the same file produce one in-flight key."""
    keys = {
      Operation.read_file("proj", path).key
      for path in ("README.md", "/README.md", "./README.md", "docs/../README.md")
    }

    assert len(keys) == 1

  def test_key_distinguishes_projects(self):
    assert Operation.read_file("a", "x").key != Operation.read_file("b", "x").key

  def test_operation_is_immutable(self):
    operation = Operation.search("readme", 10)

    with pytest.raises(AttributeError):
      operation.kind = OperationKind.READ_FILE

  def test_arguments(self):
    operation = Operation.list_directory("test1", "next/")

    assert operation.arguments == {"project": "test1", "path": "/next"}
    assert str(operation) == "listDirectory(project='test1', path='/next')"

  @pytest.mark.parametrize(
    "factory",
    [
      lambda: Operation.search("", 10),
      lambda: Operation.search("readme", 0),
      lambda: Operation.search("readme", True),
      lambda: Operation.read_file("", "README.md"),
      lambda: Operation.list_directory("", "/"),
      lambda: Operation(OperationKind.READ_FILE, (("project", "p"),)),
    ],
  )
  def test_invalid_arguments_rejected(self, factory):
    with pytest.raises(ValueError):
      factory()

  def test_normalize_path(self):
    assert normalize_path("") == "/"
    assert normalize_path("/") == "/"
    assert normalize_path("a//b/") == "/a/b"
    assert normalize_path("../../etc") == "/etc"


class TestPayloads:
  """Test cases for payload dataclasses."""

  def test_directory_entry_kind(self):
    assert DirectoryEntry("next/").is_directory
    assert not DirectoryEntry("README.md").is_directory

  def test_directory_entry_requires_name(self):
    with pytest.raises(ValueError):
      DirectoryEntry("")

  def test_file_contents_type_matches_binary_flag(self):
    assert FileContents(binary=False, data="text").data == "text"
    assert FileContents(binary=True, data=b"\x00\x01").data == b"\x00\x01"

    with pytest.raises(ValueError):
      FileContents(binary=True, data="text")
    with pytest.raises(ValueError):
      FileContents(binary=False, data=b"bytes")

  def test_search_result_match_count(self):
    result = SearchResult(
      match_pattern="x",
      items=(
        SearchItem("/a", (SearchMatch(1, "x"), SearchMatch(3, "xx"))),
        SearchItem("/b", (SearchMatch(2, "x"),)),
      ),
    )

    assert result.match_count == 3

  def test_search_match_line_starts_at_one(self):
    with pytest.raises(ValueError):
      SearchMatch(0, "text")


class TestResult:
  """Test cases for Result and Fault values."""

  def test_success(self):
    result = Result.success(False)

    assert result.ok
    assert not result.cancelled
    assert result.unwrap() is False

  def test_failure_unwrap_raises_fault_error(self):
    fault = Fault(FaultKind.UNAVAILABLE, "connection refused", Operation.check_login())
    result = Result.failure(fault)

    assert not result.ok
    with pytest.raises(FaultError) as exc_info:
      result.unwrap()
    assert exc_info.value.fault is fault
    assert str(exc_info.value) == "[Unavailable] connection refused"

  def test_cancelled_marker(self):
    result = Result.failure(Fault.cancelled(Operation.search("readme", 10)))

    assert result.cancelled
    assert not result.fault.retryable

  @pytest.mark.parametrize(
    "kind, retryable",
    [
      (FaultKind.UNAVAILABLE, True),
      (FaultKind.TIMEOUT, True),
      (FaultKind.PROTOCOL, False),
      (FaultKind.CANCELLED, False),
    ],
  )
  def test_fault_retryable(self, kind, retryable):
    assert Fault(kind, "message").retryable is retryable

  def test_value_and_fault_are_exclusive(self):
    with pytest.raises(ValueError):
      Result(value=True, fault=Fault(FaultKind.PROTOCOL, "bad"))


class TestClientConfig:
  """Test cases for ClientConfig validation."""

  def test_defaults(self):
    config = ClientConfig(base_url="https://flame.example.com")

    assert config.timeout == 30
    assert config.request_timeout is None
    assert config.max_connections == 10
    assert config.headers == {}

  @pytest.mark.parametrize(
    "kwargs, field",
    [
      ({"base_url": ""}, "base_url"),
      ({"base_url": "ftp://flame"}, "base_url"),
      ({"base_url": "http://flame", "timeout": 0}, "timeout"),
      ({"base_url": "http://flame", "request_timeout": -1}, "request_timeout"),
      ({"base_url": "http://flame", "max_connections": 0}, "max_connections"),
      ({"base_url": "http://flame", "operation_timeouts": {"delete": 1}}, "operation_timeouts.delete"),
      ({"base_url": "http://flame", "operation_timeouts": {"search": 0}}, "operation_timeouts.search"),
    ],
  )
  def test_invalid_values(self, kwargs, field):
    with pytest.raises(ConfigurationError) as exc_info:
      ClientConfig(**kwargs)

    assert exc_info.value.field == field

  def test_timeouts_by_kind(self):
    config = ClientConfig(
      base_url="http://flame",
      operation_timeouts={"search": 5, "readFile": 20},
    )

    assert config.timeouts_by_kind() == {
      OperationKind.SEARCH: 5,
      OperationKind.READ_FILE: 20,
    }

  def test_from_dict_with_client_section(self):
    config = ClientConfig.from_dict(
      {"client": {"base_url": "http://flame", "request_timeout": 15}}
    )

    assert config.base_url == "http://flame"
    assert config.request_timeout == 15

  def test_from_dict_unknown_field(self):
    with pytest.raises(ConfigurationError) as exc_info:
      ClientConfig.from_dict({"base_url": "http://flame", "retries": 3}, "flame.yaml")

    assert exc_info.value.config_file == "flame.yaml"

  def test_from_dict_headers_must_be_mapping(self):
    with pytest.raises(ConfigurationError) as exc_info:
      ClientConfig.from_dict({"base_url": "http://flame", "headers": ["a"]})

    assert exc_info.value.field == "headers"

  def test_from_dict_coerces_numeric_strings(self):
    config = ClientConfig.from_dict({
      "base_url": "http://flame",
      "timeout": "12.5",
      "request_timeout": "15",
      "max_connections": "4",
      "operation_timeouts": {"search": "5"},
    })

    assert config.timeout == 12.5
    assert config.request_timeout == 15.0
    assert config.max_connections == 4
    assert config.operation_timeouts == {"search": 5.0}

  @pytest.mark.parametrize("section, field", [
    ({"request_timeout": "soon"}, "request_timeout"),
    ({"max_connections": "4.5"}, "max_connections"),
    ({"timeout": True}, "timeout"),
    ({"operation_timeouts": {"readFile": "slow"}}, "operation_timeouts.readFile"),
  ])
  def test_from_dict_non_numeric_value(self, section, field):
    with pytest.raises(ConfigurationError) as exc_info:
      ClientConfig.from_dict({"base_url": "http://flame", **section}, "flame.yaml")

    assert exc_info.value.field == field
    assert exc_info.value.config_file == "flame.yaml"
    assert "must be a number" in str(exc_info.value)
