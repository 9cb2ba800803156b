"""
Custom exceptions for NotAPI.

All exceptions inherit from NotAPIError so callers at a component boundary
(provider registry, notification sink, keep-alive scheduler) can catch the
whole family with a single except clause and turn it into data.
"""

from typing import Any, Dict, Optional


class NotAPIError(Exception):
    """
    Base class for NotAPI errors.

    ``message`` is the short text shown to API callers and in the operator
    channel; ``str()`` appends the context and cause for the logs.

    Attributes:
        message: Short human-readable description
        context: Key/value details about where it happened
        original_error: Underlying exception, when wrapping one
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append("[" + " ".join(f"{key}={value}" for key, value in self.context.items()) + "]")
        if self.original_error is not None:
            parts.append(f"caused by {type(self.original_error).__name__}: {self.original_error}")
        return " ".join(parts)


class ConfigurationError(NotAPIError):
    """Raised for settings that validate individually but not together."""


class ProviderError(NotAPIError):
    """
    Raised by a provider operation that could not produce a result.

    This covers malformed input (a non-numeric roman numeral request) as
    well as external service failures (SpamWatch or Genius unreachable,
    non-200 responses, unparseable bodies). The provider registry catches
    it and records ``message`` as the operation's error, so it never
    reaches the HTTP layer.
    """


class ChannelError(NotAPIError):
    """
    Raised by a MessageChannel when a delivery to the operator channel fails.

    The notification sink answers it with a single fallback message and
    otherwise drops it.
    """
