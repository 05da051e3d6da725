"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheAdapter,
HttpFetcher, HttpxTmdbClient, the FastAPI lifespan) with mocked HTTP via
respx.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from reelarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter


@pytest.fixture()
async def diskcache(tmp_path: Path) -> DiskcacheAdapter:
    """Real DiskcacheAdapter backed by tmp_path (auto-cleaned)."""
    adapter = DiskcacheAdapter(
        directory=tmp_path / "cache",
        ttl_seconds=3600,
        max_concurrent=5,
    )
    async with adapter:
        yield adapter


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep REELARR_* variables of the host shell out of config loading."""
    for key in list(os.environ):
        if key.upper().startswith("REELARR_"):
            monkeypatch.delenv(key, raising=False)
