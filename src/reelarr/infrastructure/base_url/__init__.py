from .resolver import BaseUrlResolver, ProviderUrlEntry

__all__ = ["BaseUrlResolver", "ProviderUrlEntry"]
