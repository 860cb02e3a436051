"""
Error taxonomy for the gateway.

Only ``ValidationError`` ever reaches a caller. Provider and parse errors are
recovered inside the gateway by the fallback policy; a missing credential is
not an error at all at request time, it simply routes to the fallback path.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(Enum):
    """Why a feature answered from its fallback path."""

    UNCONFIGURED = "unconfigured"
    TIMEOUT = "timeout"
    PROVIDER = "provider"
    PARSE = "parse"
    EMPTY = "empty"


class AisleError(Exception):
    """Base class for gateway errors."""


class ValidationError(AisleError, ValueError):
    """Caller input was rejected before any provider call."""


class ConfigurationError(AisleError):
    """An adapter was built without the credential it needs."""


class ProviderError(AisleError):
    """Network, timeout, non-2xx or provider-side failure."""

    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.PROVIDER,
        provider: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.provider = provider


class ParseError(ProviderError):
    """Provider replied, but not in the expected shape."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message, kind=FailureKind.PARSE, provider=provider)


__all__ = [
    "FailureKind",
    "AisleError",
    "ValidationError",
    "ConfigurationError",
    "ProviderError",
    "ParseError",
]
