"""Utility modules for NotAPI."""

from notapi.utils.exceptions import (
    NotAPIError,
    ConfigurationError,
    ProviderError,
    ChannelError,
)
from notapi.utils.logging import setup_logging

__all__ = [
    "NotAPIError",
    "ConfigurationError",
    "ProviderError",
    "ChannelError",
    "setup_logging",
]
