"""Response parsing and validation for Flame service payloads."""

import base64
import binascii
import logging
from typing import Any, Callable, Dict, Tuple

from flame_client.api.exceptions import ResponseValidationError
from flame_client.api.models import (
  DirectoryEntry,
  FileContents,
  OperationKind,
  SearchItem,
  SearchMatch,
  SearchResult,
)

logger = logging.getLogger(__name__)


class ResponseParser:
  """Converts raw wire payloads into typed payloads.

  Every parse method either returns a fully typed, immutable payload or
  raises ResponseValidationError listing the offending fields. The search
  parser accepts both the long field names (``matchPattern``, ``line``,
  ``text``) and the short ones the development stub served (``matchRegexp``,
  ``L``, ``T``).
  """

  def __init__(self):
    self._parsers: Dict[OperationKind, Callable[[Any], Any]] = {
      OperationKind.CHECK_LOGIN: self.parse_login,
      OperationKind.LIST_PROJECTS: self.parse_project_list,
      OperationKind.LIST_DIRECTORY: self.parse_directory_contents,
      OperationKind.READ_FILE: self.parse_file_contents,
      OperationKind.SEARCH: self.parse_search_result,
    }

  def parse(self, kind: OperationKind, raw: Any) -> Any:
    """Parse the raw response of an operation.

    Args:
      kind: Operation the response belongs to
      raw: Decoded JSON value returned by the transport

    Returns:
      Typed payload for the operation

    Raises:
      ResponseValidationError: If the response does not match the expected shape
    """
    try:
      payload = self._parsers[kind](raw)
    except ResponseValidationError as e:
      e.operation = kind.value
      e.response_data = raw
      raise

    logger.debug(f"Response validation passed for {kind.value}")
    return payload

  def parse_login(self, raw: Any) -> bool:
    if isinstance(raw, dict) and "login" in raw:
      raw = raw["login"]

    if not isinstance(raw, bool):
      raise ResponseValidationError(
        "Login check response must be a boolean",
        field_errors={"login": f"expected boolean, got {type(raw).__name__}"},
      )
    return raw

  def parse_project_list(self, raw: Any) -> Tuple[str, ...]:
    items = self._require_list(raw, "projects")

    error = ResponseValidationError("Project list contains invalid names")
    for index, name in enumerate(items):
      if not isinstance(name, str) or not name:
        error.add_field_error(f"projects[{index}]", "expected non-empty string")

    if error.has_field_errors():
      raise error
    return tuple(items)

  def parse_directory_contents(self, raw: Any) -> Tuple[DirectoryEntry, ...]:
    items = self._require_list(raw, "entries")

    entries = []
    error = ResponseValidationError("Directory listing contains invalid entries")
    for index, item in enumerate(items):
      name = item.get("name") if isinstance(item, dict) else None
      if not isinstance(name, str) or not name:
        error.add_field_error(f"entries[{index}].name", "expected non-empty string")
        continue
      entries.append(DirectoryEntry(name=name))

    if error.has_field_errors():
      raise error
    return tuple(entries)

  def parse_file_contents(self, raw: Any) -> FileContents:
    if not isinstance(raw, dict):
      raise ResponseValidationError(
        "File contents response must be an object",
        field_errors={"": f"expected object, got {type(raw).__name__}"},
      )

    binary = raw.get("binary")
    data = raw.get("data")

    error = ResponseValidationError("File contents response is malformed")
    if not isinstance(binary, bool):
      error.add_field_error("binary", "expected boolean")
    if not isinstance(data, str):
      error.add_field_error("data", "expected string")
    if error.has_field_errors():
      raise error

    if not binary:
      return FileContents(binary=False, data=data)

    try:
      decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
      raise ResponseValidationError(
        "Binary file data is not valid base64",
        field_errors={"data": str(e)},
      )
    return FileContents(binary=True, data=decoded)

  def parse_search_result(self, raw: Any) -> SearchResult:
    if not isinstance(raw, dict):
      raise ResponseValidationError(
        "Search response must be an object",
        field_errors={"": f"expected object, got {type(raw).__name__}"},
      )

    error = ResponseValidationError("Search response is malformed")

    pattern = raw.get("matchPattern", raw.get("matchRegexp"))
    if not isinstance(pattern, str):
      error.add_field_error("matchPattern", "expected string")

    raw_items = raw.get("items")
    if not isinstance(raw_items, list):
      error.add_field_error("items", "expected list")
      raise error

    items = []
    for index, raw_item in enumerate(raw_items):
      prefix = f"items[{index}]"
      if not isinstance(raw_item, dict):
        error.add_field_error(prefix, "expected object")
        continue

      path = raw_item.get("path")
      if not isinstance(path, str) or not path:
        error.add_field_error(f"{prefix}.path", "expected non-empty string")

      raw_matches = raw_item.get("matches")
      if not isinstance(raw_matches, list):
        error.add_field_error(f"{prefix}.matches", "expected list")
        continue

      matches = []
      for match_index, raw_match in enumerate(raw_matches):
        match = self._parse_match(raw_match, f"{prefix}.matches[{match_index}]", error)
        if match is not None:
          matches.append(match)

      items.append(SearchItem(path=path, matches=tuple(matches)))

    if error.has_field_errors():
      raise error
    return SearchResult(match_pattern=pattern, items=tuple(items))

  def _parse_match(self, raw: Any, prefix: str, error: ResponseValidationError):
    if not isinstance(raw, dict):
      error.add_field_error(prefix, "expected object")
      return None

    line = raw.get("line", raw.get("L"))
    text = raw.get("text", raw.get("T"))

    if isinstance(line, bool) or not isinstance(line, int) or line < 1:
      error.add_field_error(f"{prefix}.line", "expected positive integer")
      return None
    if not isinstance(text, str):
      error.add_field_error(f"{prefix}.text", "expected string")
      return None
    return SearchMatch(line=line, text=text)

  def _require_list(self, raw: Any, field_name: str) -> list:
    # Services may wrap lists in an object keyed by the field name
    if isinstance(raw, dict) and field_name in raw:
      raw = raw[field_name]

    if not isinstance(raw, list):
      raise ResponseValidationError(
        f"Expected a list of {field_name}",
        field_errors={field_name: f"expected list, got {type(raw).__name__}"},
      )
    return raw
