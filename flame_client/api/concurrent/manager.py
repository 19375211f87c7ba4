"""Request manager enforcing per-operation concurrency policies."""

import asyncio
import time
from typing import Any, Dict, Optional

from flame_client.api.concurrent.inflight import InFlightEntry, InFlightTable
from flame_client.api.exceptions import (
  ResponseValidationError,
  TimeoutError,
  TransportError,
)
from flame_client.api.logging import get_logger
from flame_client.api.models import (
  ConcurrencyPolicy,
  Fault,
  FaultKind,
  Operation,
  OperationKind,
  Result,
)
from flame_client.api.transports.base import Transport
from flame_client.api.validation import ResponseParser

logger = get_logger(__name__, "request_manager")


class RequestManager:
  """Issues operations against a transport and returns results as values.

  Each invocation returns an ``asyncio.Future`` resolving to a ``Result``.
  Duplicate invocations of an in-flight key follow the operation's policy:

  - cancel-previous: the pending call is cancelled and its callers receive
    a ``Cancelled`` fault; a late result of the old call is discarded.
  - coalesce-and-wait: the caller joins the pending call and receives the
    same result as every earlier caller, in subscription order.

  Transport, timeout and payload failures become ``Fault`` values. Nothing
  is retried automatically.
  """

  def __init__(
    self,
    transport: Transport,
    parser: Optional[ResponseParser] = None,
    request_timeout: Optional[float] = None,
    operation_timeouts: Optional[Dict[OperationKind, float]] = None,
  ):
    """Initialize the request manager.

    Args:
      transport: Transport used for every underlying call
      parser: Parser turning raw responses into typed payloads
      request_timeout: Default deadline in seconds for an underlying call
      operation_timeouts: Per-operation deadlines overriding the default
    """
    self.transport = transport
    self.parser = parser or ResponseParser()
    self.request_timeout = request_timeout
    self.operation_timeouts = dict(operation_timeouts or {})

    self._in_flight = InFlightTable()
    self._is_shutdown = False

    self._total_issued = 0
    self._total_coalesced = 0
    self._total_cancelled = 0
    self._total_completed = 0

  def invoke(self, operation: Operation) -> "asyncio.Future[Result]":
    """Issue an operation and return a future for its result.

    Must be called from a running event loop; returns without waiting.

    Args:
      operation: The operation to perform

    Returns:
      Future resolving to a Result carrying the payload or a Fault

    Raises:
      RuntimeError: If the manager has been shut down
    """
    if self._is_shutdown:
      raise RuntimeError("RequestManager has been shut down")

    loop = asyncio.get_running_loop()
    existing = self._in_flight.get(operation.key)

    if existing is not None:
      if operation.policy is ConcurrencyPolicy.COALESCE:
        self._total_coalesced += 1
        logger.debug(
          "Joining in-flight request",
          operation=str(operation),
          waiters=len(existing.waiters) + 1,
        )
        return existing.subscribe(loop)

      self._supersede(existing)

    entry = InFlightEntry(operation)
    waiter = entry.subscribe(loop)
    self._in_flight.add(entry)
    entry.task = loop.create_task(self._run(entry))
    self._total_issued += 1

    logger.log_request(operation.kind.value, operation.arguments, policy=operation.policy.value)
    return waiter

  def _supersede(self, entry: InFlightEntry) -> None:
    self._in_flight.remove(entry)
    if entry.task is not None:
      entry.task.cancel()
    delivered = entry.deliver(Result.failure(Fault.cancelled(entry.operation)))
    self._total_cancelled += 1

    logger.debug(
      "Superseded in-flight request",
      operation=str(entry.operation),
      cancelled_waiters=delivered,
    )

  async def _run(self, entry: InFlightEntry) -> None:
    try:
      result = await self._execute(entry.operation)
    except asyncio.CancelledError:
      # Supersession and shutdown resolve waiters before cancelling
      if self._in_flight.remove(entry):
        entry.deliver(Result.failure(Fault.cancelled(entry.operation)))
      raise
    except Exception as e:
      logger.error(
        "Unexpected error while executing request",
        operation=str(entry.operation),
        error=repr(e),
      )
      if self._in_flight.remove(entry):
        entry.fail(e)
      return

    if not self._in_flight.remove(entry):
      logger.debug("Discarding result of superseded request", operation=str(entry.operation))
      return

    self._total_completed += 1
    entry.deliver(result)

  async def _execute(self, operation: Operation) -> Result:
    timeout = self.get_timeout(operation.kind)
    start_time = time.monotonic()

    try:
      call = self.transport.send(operation.kind, operation.arguments)
      if timeout is not None:
        raw = await asyncio.wait_for(call, timeout=timeout)
      else:
        raw = await call
      payload = self.parser.parse(operation.kind, raw)

    except (asyncio.TimeoutError, TimeoutError) as e:
      fault = Fault(
        FaultKind.TIMEOUT,
        f"{operation} exceeded its deadline" + (f" of {timeout}s" if timeout is not None else ""),
        operation,
        e,
      )
    except (TransportError, OSError) as e:
      fault = Fault(FaultKind.UNAVAILABLE, str(e) or type(e).__name__, operation, e)
    except ResponseValidationError as e:
      fault = Fault(FaultKind.PROTOCOL, e.get_detailed_message(), operation, e)

    else:
      logger.log_response(
        operation.kind.value,
        latency_ms=int((time.monotonic() - start_time) * 1000),
      )
      return Result.success(payload)

    logger.log_fault(
      operation.kind.value,
      fault.kind.value,
      fault.message,
      latency_ms=int((time.monotonic() - start_time) * 1000),
    )
    return Result.failure(fault)

  def get_timeout(self, kind: OperationKind) -> Optional[float]:
    return self.operation_timeouts.get(kind, self.request_timeout)

  def is_in_flight(self, operation: Operation) -> bool:
    return operation.key in self._in_flight

  def get_status(self) -> Dict[str, Any]:
    """Get current status information for the manager.

    Returns:
      Dictionary with in-flight requests and lifetime counters
    """
    return {
      "in_flight": len(self._in_flight),
      "total_issued": self._total_issued,
      "total_coalesced": self._total_coalesced,
      "total_cancelled": self._total_cancelled,
      "total_completed": self._total_completed,
      "is_shutdown": self._is_shutdown,
      "requests": self._in_flight.describe(),
    }

  async def wait_for_completion(self, timeout: Optional[float] = None) -> bool:
    """Wait until no request is in flight.

    Args:
      timeout: Optional timeout in seconds

    Returns:
      True if the table drained, False if the timeout expired first
    """
    async def drained():
      while len(self._in_flight):
        tasks = [entry.task for entry in self._in_flight.entries() if entry.task is not None]
        # asyncio.wait leaves the tasks running when this wait is cancelled
        await asyncio.wait(tasks)

    try:
      if timeout is not None:
        await asyncio.wait_for(drained(), timeout=timeout)
      else:
        await drained()
      return True
    except asyncio.TimeoutError:
      return False

  async def shutdown(self) -> None:
    """Cancel all in-flight requests and refuse new ones.

    Waiters of cancelled requests receive a ``Cancelled`` fault.
    """
    if self._is_shutdown:
      logger.warning("RequestManager is already shut down")
      return

    self._is_shutdown = True
    entries = self._in_flight.clear()

    tasks = []
    for entry in entries:
      entry.deliver(Result.failure(Fault.cancelled(entry.operation)))
      if entry.task is not None and not entry.task.done():
        entry.task.cancel()
        tasks.append(entry.task)

    if tasks:
      await asyncio.gather(*tasks, return_exceptions=True)

    self._total_cancelled += len(entries)
    logger.log_in_flight_status(
      in_flight=0,
      total_issued=self._total_issued,
      total_coalesced=self._total_coalesced,
      total_cancelled=self._total_cancelled,
    )
    logger.info("RequestManager shutdown complete", cancelled_requests=len(entries))

  def __repr__(self) -> str:
    return (
      f"RequestManager("
      f"transport={self.transport.name!r}, "
      f"in_flight={len(self._in_flight)}, "
      f"is_shutdown={self._is_shutdown})"
    )
