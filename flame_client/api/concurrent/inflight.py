"""Tracking table for outstanding requests."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional

from flame_client.api.models import Operation, Result


@dataclass
class InFlightEntry:
  """One outstanding underlying call and the callers waiting on it."""

  operation: Operation
  task: Optional[asyncio.Task] = None
  waiters: List[asyncio.Future] = field(default_factory=list)
  issued_at: float = field(default_factory=time.monotonic)

  @property
  def key(self) -> Hashable:
    return self.operation.key

  def subscribe(self, loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Add a waiter; waiters are resolved in subscription order."""
    waiter = loop.create_future()
    self.waiters.append(waiter)
    return waiter

  def deliver(self, result: Result) -> int:
    """Resolve every pending waiter with the same result.

    Returns:
      Number of waiters that received the result
    """
    delivered = 0
    for waiter in self.waiters:
      if not waiter.done():
        waiter.set_result(result)
        delivered += 1
    return delivered

  def fail(self, error: BaseException) -> None:
    for waiter in self.waiters:
      if not waiter.done():
        waiter.set_exception(error)

  def age_ms(self) -> int:
    return int((time.monotonic() - self.issued_at) * 1000)


class InFlightTable:
  """Maps in-flight keys to their single outstanding entry.

  Holds at most one entry per key. Only the event loop thread mutates the
  table, at issue and completion points.
  """

  def __init__(self):
    self._entries: Dict[Hashable, InFlightEntry] = {}

  def get(self, key: Hashable) -> Optional[InFlightEntry]:
    return self._entries.get(key)

  def add(self, entry: InFlightEntry) -> None:
    """Register a new entry.

    Raises:
      KeyError: If an entry with the same key is already in flight
    """
    if entry.key in self._entries:
      raise KeyError(f"Request already in flight: {entry.operation}")
    self._entries[entry.key] = entry

  def remove(self, entry: InFlightEntry) -> bool:
    """Remove an entry if it is still the current one for its key.

    Returns:
      True if the entry was current and has been removed, False if it had
      already been completed or superseded
    """
    if self._entries.get(entry.key) is entry:
      del self._entries[entry.key]
      return True
    return False

  def clear(self) -> List[InFlightEntry]:
    """Remove and return all entries."""
    entries = list(self._entries.values())
    self._entries.clear()
    return entries

  def entries(self) -> List[InFlightEntry]:
    return list(self._entries.values())

  def describe(self) -> List[Dict[str, Any]]:
    return [
      {
        "operation": str(entry.operation),
        "policy": entry.operation.policy.value,
        "waiters": len(entry.waiters),
        "age_ms": entry.age_ms(),
      }
      for entry in self._entries.values()
    ]

  def __contains__(self, key: Hashable) -> bool:
    return key in self._entries

  def __len__(self) -> int:
    return len(self._entries)
