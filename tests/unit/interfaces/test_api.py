"""Tests for the HTTP API (catalog, providers, stats) and CLI flag mapping."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reelarr.application.provider_manager import ProviderManager
from reelarr.domain.entities.media import Info, Post, Stream, StreamKind
from reelarr.domain.providers.base import Capability
from reelarr.domain.providers.exceptions import FetchError
from reelarr.infrastructure.config import AppConfig
from reelarr.infrastructure.metrics import MetricsCollector
from reelarr.interfaces.app import build_app
from reelarr.interfaces.cli.cli import _parse_args, build_cli_overrides


def _post(title: str, year: int | None, provider_id: str) -> Post:
    return Post(
        id=f"{provider_id}:{title}",
        title=title,
        image_url="",
        detail_link=f"/movie/{title.lower()}",
        kind="movie",
        source_provider_id=provider_id,
        year=year,
    )


def _info(provider_id: str) -> Info:
    return Info(
        title="The Matrix",
        synopsis="Red pill.",
        image_url="",
        source_provider_id=provider_id,
        year=1999,
    )


@pytest.fixture()
def manager() -> ProviderManager:
    return ProviderManager(metrics=MetricsCollector(), timeout=2.0)


@pytest.fixture()
def app(manager: ProviderManager) -> FastAPI:
    # Lifespan is not entered: TestClient is used without a context manager
    # and state is wired by hand.
    application = build_app(AppConfig())
    application.state.provider_manager = manager
    application.state.metrics = MetricsCollector()
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestCatalog:
    def test_posts_union(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider(
                "a", priority=1, results={"list_posts": [_post("Dune", 2021, "a")]}
            )
        )
        manager.register(
            make_provider(
                "b", priority=2, results={"list_posts": [_post("Dune", 2021, "b")]}
            )
        )

        resp = client.get("/api/v1/posts", params={"filter": "/trending/movie"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert [p["source_provider_id"] for p in body["posts"]] == ["a", "b"]

    def test_failing_provider_isolated(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider("bad", priority=1, errors={"list_posts": FetchError("u", "down")})
        )
        manager.register(
            make_provider(
                "good", priority=2, results={"list_posts": [_post("Dune", 2021, "good")]}
            )
        )
        resp = client.get("/api/v1/posts")
        assert resp.status_code == 200
        assert resp.json()["count"] == 1

    def test_search_dedupes(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider("a", priority=1, results={"search": [_post("Dune", 2021, "a")]})
        )
        manager.register(
            make_provider("b", priority=2, results={"search": [_post(" dune ", 2021, "b")]})
        )
        resp = client.get("/api/v1/search", params={"q": "dune"})
        body = resp.json()
        assert body["query"] == "dune"
        assert body["count"] == 1
        assert body["posts"][0]["source_provider_id"] == "a"

    def test_search_requires_query(self, client: TestClient) -> None:
        assert client.get("/api/v1/search").status_code == 422

    def test_streams(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        stream = Stream(
            server_label="VidSrc",
            url="https://vidsrc.example/embed/movie/603",
            kind=StreamKind.IFRAME,
        )
        manager.register(make_provider("a", results={"get_streams": [stream]}))
        resp = client.get("/api/v1/streams", params={"link": "/movie/603"})
        body = resp.json()
        assert body["count"] == 1
        assert body["streams"][0]["kind"] == "iframe"
        assert body["streams"][0]["url"] == stream.url

    def test_streams_rejects_unknown_kind(self, client: TestClient) -> None:
        resp = client.get("/api/v1/streams", params={"link": "/x", "kind": "anime"})
        assert resp.status_code == 422

    def test_meta_prefers_requested_provider(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider("a", priority=1, results={"get_metadata": _info("a")})
        )
        manager.register(
            make_provider("b", priority=2, results={"get_metadata": _info("b")})
        )
        resp = client.get("/api/v1/meta", params={"link": "/movie/603", "provider": "b"})
        assert resp.status_code == 200
        assert resp.json()["source_provider_id"] == "b"

    def test_meta_falls_back(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider(
                "a", priority=1, errors={"get_metadata": FetchError("u", "down")}
            )
        )
        manager.register(
            make_provider("b", priority=2, results={"get_metadata": _info("b")})
        )
        resp = client.get("/api/v1/meta", params={"link": "/movie/603"})
        assert resp.json()["source_provider_id"] == "b"

    def test_meta_not_found(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(
            make_provider("a", errors={"get_metadata": FetchError("u", "down")})
        )
        resp = client.get("/api/v1/meta", params={"link": "/movie/603"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "metadata_not_found"}

    def test_episodes_skip_incapable_providers(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("core", priority=1, capabilities=Capability.CORE))
        full = make_provider("full", priority=2, results={"list_episodes": []})
        manager.register(full)
        resp = client.get("/api/v1/episodes", params={"url": "/tv/1/season/1"})
        assert resp.json() == {"count": 0, "episodes": []}
        assert [op for op, _ in full.calls] == ["list_episodes"]

    def test_no_enabled_providers_is_503(self, client: TestClient) -> None:
        resp = client.get("/api/v1/posts")
        assert resp.status_code == 503
        assert resp.json()["error"] == "no_providers_enabled"

    def test_no_enabled_providers_for_fallback_is_503(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("off", enabled=False))
        resp = client.get("/api/v1/meta", params={"link": "/movie/1"})
        assert resp.status_code == 503


class TestProvidersAdmin:
    def test_list_sorted_by_priority(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("late", priority=9))
        manager.register(make_provider("early", priority=1, capabilities=Capability.STREAMS))

        providers = client.get("/api/v1/providers").json()["providers"]

        assert [p["id"] for p in providers] == ["early", "late"]
        assert providers[0]["capabilities"] == ["streams"]

    def test_stats(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("a"))
        manager.register(make_provider("b", enabled=False))
        body = client.get("/api/v1/providers/stats").json()
        assert body["total_count"] == 2
        assert body["enabled_count"] == 1
        assert body["disabled_count"] == 1

    def test_patch_toggles_and_reprioritises(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("a", priority=5))
        resp = client.patch(
            "/api/v1/providers/a", json={"enabled": False, "priority": 0}
        )
        assert resp.status_code == 200
        assert resp.json()["enabled"] is False
        assert resp.json()["priority"] == 0
        assert manager.enabled_providers == ()

    def test_patch_unknown_provider(self, client: TestClient) -> None:
        resp = client.patch("/api/v1/providers/ghost", json={"enabled": True})
        assert resp.status_code == 404
        assert resp.json()["provider"] == "ghost"

    def test_patch_negative_priority_rejected(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("a"))
        resp = client.patch("/api/v1/providers/a", json={"priority": -1})
        assert resp.status_code == 422


class TestStatsAndHealth:
    def test_metrics_after_calls(
        self,
        app: FastAPI,
        client: TestClient,
        make_provider: Any,
    ) -> None:
        metrics = MetricsCollector()
        manager = ProviderManager(metrics=metrics)
        manager.register(make_provider("a", results={"list_posts": []}))
        app.state.provider_manager = manager
        app.state.metrics = metrics

        client.get("/api/v1/posts")
        body = client.get("/api/v1/stats/metrics").json()

        assert body["providers"]["a"]["calls"] == 1
        assert body["providers"]["a"]["operations"] == {"list_posts": 1}

    def test_healthz(
        self, client: TestClient, manager: ProviderManager, make_provider: Any
    ) -> None:
        manager.register(make_provider("a"))
        manager.register(make_provider("b", enabled=False))
        assert client.get("/api/v1/healthz").json() == {
            "status": "ok",
            "providers": 2,
            "enabled": 1,
        }


class TestCli:
    def test_defaults_produce_no_overrides(self) -> None:
        assert build_cli_overrides(_parse_args([])) == {}

    def test_flags_mapped_to_config_keys(self) -> None:
        args = _parse_args(
            [
                "--provider-urls",
                "https://config.example/urls.json",
                "--tmdb-api-key",
                "abc",
                "--log-level",
                "DEBUG",
                "--log-format",
                "json",
                "--port",
                "8080",
            ]
        )
        assert args.port == 8080
        assert build_cli_overrides(args) == {
            "provider_url_document": "https://config.example/urls.json",
            "tmdb_api_key": "abc",
            "log_level": "DEBUG",
            "log_format": "json",
        }

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["--log-level", "LOUD"])
