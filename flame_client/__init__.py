"""Flame client: request manager and CLI for the Flame project browser API."""

__version__ = "0.1.0"
