"""Unit tests for FixtureTransport."""

import pytest

from flame_client.api.exceptions import NetworkError
from flame_client.api.models import OperationKind
from flame_client.api.transports.fixture import SAMPLE_RESPONSES, FixtureTransport


class TestFixtureTransport:
  """Test cases for canned responses."""

  @pytest.mark.asyncio
  async def test_sample_responses_by_default(self):
    transport = FixtureTransport()

    assert await transport.send(OperationKind.LIST_PROJECTS, {}) == ["test1", "test2", "test3"]
    assert await transport.send(OperationKind.CHECK_LOGIN, {}) is True

  @pytest.mark.asyncio
  async def test_values_are_copied_per_call(self):
    transport = FixtureTransport()

    raw = await transport.send(OperationKind.LIST_DIRECTORY, {"project": "p", "path": "/"})
    raw.append({"name": "mutated"})

    assert len(SAMPLE_RESPONSES[OperationKind.LIST_DIRECTORY]) == 3

  @pytest.mark.asyncio
  async def test_exception_is_raised(self):
    transport = FixtureTransport({OperationKind.CHECK_LOGIN: NetworkError("down")})

    with pytest.raises(NetworkError):
      await transport.send(OperationKind.CHECK_LOGIN, {})

  @pytest.mark.asyncio
  async def test_missing_fixture_is_network_error(self):
    transport = FixtureTransport({})

    with pytest.raises(NetworkError, match="No fixture registered for search"):
      await transport.send(OperationKind.SEARCH, {"query": "x", "limit": 1})

  @pytest.mark.asyncio
  async def test_callables_receive_arguments(self):
    async def read_file(project, path):
      return {"binary": False, "data": f"{project}:{path}"}

    transport = FixtureTransport({
      OperationKind.READ_FILE: read_file,
      OperationKind.SEARCH: lambda query, limit: {"matchPattern": query, "items": []},
    })

    assert (await transport.send(OperationKind.READ_FILE, {"project": "p", "path": "/a"}))["data"] == "p:/a"
    assert (await transport.send(OperationKind.SEARCH, {"query": "q", "limit": 1}))["matchPattern"] == "q"

  @pytest.mark.asyncio
  async def test_calls_are_recorded(self):
    transport = FixtureTransport()

    await transport.send(OperationKind.CHECK_LOGIN, {})
    await transport.send(OperationKind.LIST_PROJECTS, {})
    await transport.send(OperationKind.LIST_PROJECTS, {})
    await transport.close()

    assert transport.call_count() == 3
    assert transport.call_count(OperationKind.LIST_PROJECTS) == 2
    assert transport.closed
