"""Concurrent request management components for the Flame client."""

from .inflight import InFlightEntry, InFlightTable
from .manager import RequestManager

__all__ = ["InFlightEntry", "InFlightTable", "RequestManager"]
