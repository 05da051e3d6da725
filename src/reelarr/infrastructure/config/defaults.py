"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "reelarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
        "follow_redirects": True,
        "max_retries": 2,
        "backoff_base": 0.5,
        "response_ttl_seconds": 300,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/reelarr",
        "backend": "diskcache",
        "ttl_seconds": 3600,
        "max_concurrent": 10,
    },
    "providers": {
        "url_document": "./config/provider_urls.json",
        "base_url_ttl_seconds": 3600,
        "timeout_seconds": 15.0,
        "max_concurrent": 16,
        "extractor_timeout_seconds": 20.0,
        "overrides": {},
    },
    "tmdb": {
        "api_key": None,
        "language": "en-US",
    },
}
