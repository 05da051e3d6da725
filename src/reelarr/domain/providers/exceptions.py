"""Provider system exceptions."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for all provider-related errors."""


class ProviderConfigError(ProviderError):
    """Raised when a provider configuration violates its invariants."""


class DuplicateProviderError(ProviderError):
    """Raised when two providers are registered under the same id."""


class ProviderNotFoundError(ProviderError):
    """Raised when a provider id is not known to the registry."""


class NoProvidersError(ProviderError):
    """Raised when an aggregate call finds zero enabled providers."""


class ProviderUnavailableError(ProviderError):
    """Raised when a provider cannot run, e.g. its base URL is unknown."""


class CapabilityNotSupportedError(ProviderError):
    """Raised when an operation is invoked that the provider does not offer."""


class FetchError(ProviderError):
    """Raised when an upstream request fails (transport or HTTP status)."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason
        self.status = status


class OperationCancelledError(ProviderError):
    """Raised when the caller's cancellation signal fires mid-operation."""
