from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, ProviderOverride

__all__ = ["AppConfig", "EnvOverrides", "ProviderOverride", "load_config"]
