"""Configuration data models - re-exported from main models module."""

from ..models import ClientConfig

__all__ = ["ClientConfig"]
