from .base import Capability, ProviderConfig, ProviderContext, ProviderProtocol
from .exceptions import (
    CapabilityNotSupportedError,
    DuplicateProviderError,
    FetchError,
    NoProvidersError,
    OperationCancelledError,
    ProviderConfigError,
    ProviderError,
    ProviderNotFoundError,
    ProviderUnavailableError,
)

__all__ = [
    "Capability",
    "CapabilityNotSupportedError",
    "DuplicateProviderError",
    "FetchError",
    "NoProvidersError",
    "OperationCancelledError",
    "ProviderConfig",
    "ProviderConfigError",
    "ProviderContext",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderProtocol",
    "ProviderUnavailableError",
]
