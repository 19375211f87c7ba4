"""Unit tests for the in-flight request table."""

import asyncio
import pytest

from flame_client.api.concurrent.inflight import InFlightEntry, InFlightTable
from flame_client.api.models import Fault, FaultKind, Operation, Result


class TestInFlightTable:
  """Test cases for InFlightTable bookkeeping."""

  def test_add_and_get(self):
    table = InFlightTable()
    entry = InFlightEntry(Operation.check_login())

    table.add(entry)

    assert table.get(entry.key) is entry
    assert entry.key in table
    assert len(table) == 1

  def test_one_entry_per_key(self):
    table = InFlightTable()
    table.add(InFlightEntry(Operation.read_file("p", "a")))

    with pytest.raises(KeyError):
      table.add(InFlightEntry(Operation.read_file("p", "/a")))

  def test_remove_only_current_entry(self):
    """Test that a superseded entry cannot remove its replacement."""
    table = InFlightTable()
    old = InFlightEntry(Operation.search("q", 5))
    new = InFlightEntry(Operation.search("q", 5))

    table.add(old)
    assert table.remove(old)
    table.add(new)

    assert not table.remove(old)
    assert table.get(new.key) is new

  def test_clear_returns_entries(self):
    table = InFlightTable()
    entries = [InFlightEntry(Operation.check_login()), InFlightEntry(Operation.list_projects())]
    for entry in entries:
      table.add(entry)

    assert table.clear() == entries
    assert len(table) == 0

  def test_describe(self):
    table = InFlightTable()
    table.add(InFlightEntry(Operation.list_projects()))

    description = table.describe()

    assert description[0]["operation"] == "listProjects()"
    assert description[0]["policy"] == "cancel-previous"
    assert description[0]["waiters"] == 0


class TestInFlightEntry:
  """Test cases for waiter delivery."""

  @pytest.mark.asyncio
  async def test_deliver_skips_done_waiters(self):
    loop = asyncio.get_running_loop()
    entry = InFlightEntry(Operation.check_login())
    first = entry.subscribe(loop)
    second = entry.subscribe(loop)
    second.cancel()

    delivered = entry.deliver(Result.success(True))

    assert delivered == 1
    assert first.result().value is True
    assert second.cancelled()

  @pytest.mark.asyncio
  async def test_fail_sets_exception(self):
    loop = asyncio.get_running_loop()
    entry = InFlightEntry(Operation.check_login())
    waiter = entry.subscribe(loop)

    entry.fail(RuntimeError("bug"))

    with pytest.raises(RuntimeError):
      await waiter

  @pytest.mark.asyncio
  async def test_deliver_same_result_object(self):
    loop = asyncio.get_running_loop()
    entry = InFlightEntry(Operation.read_file("p", "a"))
    waiters = [entry.subscribe(loop) for _ in range(3)]
    result = Result.failure(Fault(FaultKind.TIMEOUT, "slow"))

    entry.deliver(result)

    assert all(w.result() is result for w in waiters)
