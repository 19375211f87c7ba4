"""Configuration management for the Flame client."""

from .loader import DEFAULT_CONFIG_NAME, ConfigLoader
from .models import ClientConfig

__all__ = [
  "ConfigLoader",
  "ClientConfig",
  "DEFAULT_CONFIG_NAME",
]
