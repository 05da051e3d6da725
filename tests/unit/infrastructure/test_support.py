"""Tests for small infrastructure helpers: content ids, cancellation,
TMDB mapping, cache adapters and metrics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from reelarr.domain.providers.exceptions import OperationCancelledError
from reelarr.infrastructure.cache import (
    DiskcacheAdapter,
    MemoryCacheAdapter,
    create_cache,
)
from reelarr.infrastructure.common.cancellation import (
    raise_if_cancelled,
    run_cancellable,
)
from reelarr.infrastructure.common.content_id import extract_content_id
from reelarr.infrastructure.common.headers import get_headers, headers_with_referer
from reelarr.infrastructure.metadata.tmdb_mapping import (
    parse_filter,
    parse_season_link,
    parse_title_link,
)
from reelarr.infrastructure.metrics import MetricsCollector


class TestContentId:
    @pytest.mark.parametrize(
        ("link", "expected"),
        [
            ("/movie/603", "603"),
            ("https://site.example/tv/1399/season/2", "1399"),
            ("603", "603"),
            ("  42 ", "42"),
            ("/about", None),
            ("", None),
        ],
    )
    def test_extract(self, link: str, expected: str | None) -> None:
        assert extract_content_id(link) == expected


class TestCancellation:
    def test_raise_if_cancelled(self) -> None:
        raise_if_cancelled(None)
        cancel = asyncio.Event()
        raise_if_cancelled(cancel)
        cancel.set()
        with pytest.raises(OperationCancelledError):
            raise_if_cancelled(cancel)

    @pytest.mark.asyncio()
    async def test_result_passes_through(self) -> None:
        async def _value() -> int:
            return 7

        assert await run_cancellable(_value(), asyncio.Event()) == 7
        assert await run_cancellable(_value(), None) == 7

    @pytest.mark.asyncio()
    async def test_exception_propagates(self) -> None:
        async def _boom() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await run_cancellable(_boom(), asyncio.Event())

    @pytest.mark.asyncio()
    async def test_cancel_stops_pending_work(self) -> None:
        cancel = asyncio.Event()
        finished = False

        async def _slow() -> None:
            nonlocal finished
            await asyncio.sleep(5)
            finished = True

        asyncio.get_running_loop().call_later(0.01, cancel.set)
        with pytest.raises(OperationCancelledError):
            await run_cancellable(_slow(), cancel)
        assert finished is False


class TestHeaders:
    def test_profiles_differ(self) -> None:
        assert "text/html" in get_headers("html")["Accept"]
        assert get_headers("json")["Accept"].startswith("application/json")

    def test_referer(self) -> None:
        headers = headers_with_referer("https://site.example")
        assert headers["Referer"] == "https://site.example"

    def test_returns_copies(self) -> None:
        get_headers("html")["Accept"] = "tampered"
        assert get_headers("html")["Accept"] != "tampered"


class TestTmdbLinkParsing:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("/trending/movie", ("trending", "movie", None)),
            ("top-rated/tv/", ("top-rated", "tv", None)),
            ("/genre/878", ("genre", "movie", "878")),
            ("bogus", ("popular", "movie", None)),
        ],
    )
    def test_parse_filter(self, token: str, expected: tuple) -> None:
        assert parse_filter(token) == expected

    def test_title_link(self) -> None:
        assert parse_title_link("/tv/1399") == ("tv", "1399")
        assert parse_title_link("https://x.example/movie/603") == ("movie", "603")
        assert parse_title_link("/person/1") is None

    def test_season_link(self) -> None:
        assert parse_season_link("/tv/1399/season/4") == ("1399", 4)
        assert parse_season_link("/movie/603") is None


class TestMemoryCacheAdapter:
    @pytest.mark.asyncio()
    async def test_set_get_delete(self) -> None:
        cache = MemoryCacheAdapter(ttl_seconds=60)
        await cache.set("k", {"a": 1})
        assert await cache.get("k") == {"a": 1}
        assert await cache.delete("k") is True
        assert await cache.delete("k") is False
        assert await cache.get("k") is None

    @pytest.mark.asyncio()
    async def test_entry_expires(self) -> None:
        cache = MemoryCacheAdapter()
        await cache.set("fresh", "v", ttl=60)
        await cache.set("stale", "v", ttl=0)
        assert await cache.get("fresh") == "v"
        assert await cache.get("stale") is None

    @pytest.mark.asyncio()
    async def test_oldest_dropped_over_capacity(self) -> None:
        cache = MemoryCacheAdapter(max_entries=2)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)
        assert await cache.get("a") is None
        assert await cache.get("c") == 3

    @pytest.mark.asyncio()
    async def test_context_manager_clears(self) -> None:
        async with MemoryCacheAdapter() as cache:
            await cache.set("k", "v")
        assert await cache.get("k") is None


class TestCacheFactory:
    def test_memory(self) -> None:
        assert isinstance(create_cache("memory"), MemoryCacheAdapter)

    def test_diskcache(self, tmp_path: Path) -> None:
        cache = create_cache("diskcache", directory=str(tmp_path))
        assert isinstance(cache, DiskcacheAdapter)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown cache backend"):
            create_cache("redis")  # type: ignore[arg-type]

    @pytest.mark.asyncio()
    async def test_diskcache_requires_open(self, tmp_path: Path) -> None:
        cache = DiskcacheAdapter(directory=tmp_path)
        with pytest.raises(RuntimeError, match="Cache not opened"):
            await cache.get("k")
        assert await cache.delete("k") is False


class TestMetricsCollector:
    def test_records_success_and_failure(self) -> None:
        metrics = MetricsCollector()
        metrics.record_provider_call("vidsrc", "list_posts", 2_000_000, 5, success=True)
        metrics.record_provider_call(
            "vidsrc", "get_streams", 4_000_000, 0, success=False, timed_out=True
        )

        snap = metrics.snapshot()["providers"]["vidsrc"]  # type: ignore[index]
        assert snap["calls"] == 2
        assert snap["successes"] == 1
        assert snap["failures"] == 1
        assert snap["timeouts"] == 1
        assert snap["total_results"] == 5
        assert snap["avg_duration_ms"] == 3.0
        assert snap["operations"] == {"get_streams": 1, "list_posts": 1}

    def test_unknown_provider(self) -> None:
        assert MetricsCollector().provider_stats("ghost") is None

    def test_snapshot_sorted_by_provider(self) -> None:
        metrics = MetricsCollector()
        for pid in ("zeta", "alpha"):
            metrics.record_provider_call(pid, "search", 1, 0, success=True)
        assert list(metrics.snapshot()["providers"]) == ["alpha", "zeta"]  # type: ignore[call-overload]
