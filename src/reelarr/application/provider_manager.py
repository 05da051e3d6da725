"""Provider registry and aggregation.

The manager owns the registry map and the derived priority-sorted tuple
of enabled providers.  Aggregate operations come in two flavours:

* fan-out (``list_all_posts``, ``search_all``, ``get_streams_from_all``):
  every enabled provider with the matching capability runs concurrently,
  each under its own timeout; failures become ``Failure`` outcomes and
  only successes reach the caller.
* fallback (``get_metadata_with_fallback``, ``get_episodes_with_fallback``):
  candidates are tried one at a time until the first success.

Only ``NoProvidersError`` (nothing enabled) escapes an aggregate call.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

import structlog

from reelarr.domain.entities.media import ContentKind, EpisodeLink, Info, Post, Stream
from reelarr.domain.entities.outcome import Failure, Outcome, Success
from reelarr.domain.ports.base_url import BaseUrlResolverPort
from reelarr.domain.providers.base import (
    Capability,
    ProviderContext,
    ProviderProtocol,
)
from reelarr.domain.providers.exceptions import (
    DuplicateProviderError,
    NoProvidersError,
    OperationCancelledError,
    ProviderConfigError,
    ProviderUnavailableError,
)
from reelarr.infrastructure.common.cancellation import run_cancellable

log = structlog.get_logger(__name__)

T = TypeVar("T")

_Invoke = Callable[[ProviderProtocol, ProviderContext], Awaitable[T]]

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_MAX_CONCURRENT = 16


class _MetricsRecorder(Protocol):
    """Records per-provider call metrics."""

    def record_provider_call(
        self,
        provider_id: str,
        operation: str,
        duration_ns: int,
        result_count: int,
        *,
        success: bool,
        timed_out: bool = False,
    ) -> None: ...


@dataclass(frozen=True)
class ProviderSummary:
    id: str
    display_name: str
    enabled: bool
    priority: int
    source_type: str
    capabilities: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderStats:
    total_count: int
    enabled_count: int
    disabled_count: int
    per_provider: list[ProviderSummary] = field(default_factory=list)


def capability_names(capabilities: Capability) -> list[str]:
    """Lower-case names of the single flags set in *capabilities*."""
    return [
        flag.name.lower()
        for flag in (
            Capability.POSTS,
            Capability.METADATA,
            Capability.STREAMS,
            Capability.SEARCH,
            Capability.EPISODES,
        )
        if flag in capabilities and flag.name
    ]


def _result_count(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, Sequence) and not isinstance(value, str):
        return len(value)
    return 1


def _dedupe_key(post: Post) -> tuple[str, int | None]:
    return post.title.strip().casefold(), post.year


class ProviderManager:
    """Registry of providers plus fan-out / fallback aggregation.

    Args:
        resolver: Base-URL resolver used for providers without a static
            ``base_url``.  Optional; without it such providers get an
            empty base URL and report themselves unavailable.
        metrics: Optional metrics recorder.
        timeout: Per-provider call timeout in seconds.
        max_concurrent: Upper bound on concurrently running provider calls
            within one fan-out.
    """

    def __init__(
        self,
        *,
        resolver: BaseUrlResolverPort | None = None,
        metrics: _MetricsRecorder | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        max_concurrent: int = _DEFAULT_MAX_CONCURRENT,
    ) -> None:
        self._resolver = resolver
        self._metrics = metrics
        self._timeout = timeout
        self._max_concurrent = max(1, max_concurrent)
        self._providers: dict[str, ProviderProtocol] = {}
        self._enabled: tuple[ProviderProtocol, ...] = ()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registry administration
    # ------------------------------------------------------------------

    def register(self, provider: ProviderProtocol) -> None:
        """Add *provider*; duplicate ids and malformed providers raise."""
        if not isinstance(provider, ProviderProtocol):
            raise ProviderConfigError(
                f"{provider!r} does not implement the provider protocol"
            )
        provider_id = provider.config.id
        with self._lock:
            if provider_id in self._providers:
                raise DuplicateProviderError(
                    f"provider {provider_id!r} is already registered"
                )
            self._providers[provider_id] = provider
            self._recompute()
        log.debug(
            "provider_registered",
            provider=provider_id,
            priority=provider.config.priority,
            capabilities=capability_names(provider.capabilities),
        )

    def register_all(self, providers: Sequence[ProviderProtocol]) -> None:
        for provider in providers:
            self.register(provider)

    def unregister(self, provider_id: str) -> bool:
        with self._lock:
            removed = self._providers.pop(provider_id, None)
            if removed is not None:
                self._recompute()
        if removed is not None:
            log.info("provider_unregistered", provider=provider_id)
        return removed is not None

    def set_enabled(self, provider_id: str, enabled: bool) -> bool:
        with self._lock:
            provider = self._providers.get(provider_id)
            if provider is None:
                return False
            provider.config.enabled = enabled
            self._recompute()
        log.info("provider_toggled", provider=provider_id, enabled=enabled)
        return True

    def set_priority(self, provider_id: str, priority: int) -> bool:
        if priority < 0:
            raise ProviderConfigError(
                f"provider {provider_id!r}: priority must be >= 0, got {priority}"
            )
        with self._lock:
            provider = self._providers.get(provider_id)
            if provider is None:
                return False
            provider.config.priority = priority
            self._recompute()
        log.info("provider_priority_changed", provider=provider_id, priority=priority)
        return True

    def _recompute(self) -> None:
        # sorted() is stable: equal priorities keep registration order.
        self._enabled = tuple(
            sorted(
                (p for p in self._providers.values() if p.config.enabled),
                key=lambda p: p.config.priority,
            )
        )

    def get_provider(self, provider_id: str) -> ProviderProtocol | None:
        return self._providers.get(provider_id)

    @property
    def providers(self) -> list[ProviderProtocol]:
        """All registered providers in registration order."""
        return list(self._providers.values())

    @property
    def enabled_providers(self) -> tuple[ProviderProtocol, ...]:
        """Enabled providers sorted by priority."""
        return self._enabled

    def get_stats(self) -> ProviderStats:
        providers = list(self._providers.values())
        enabled = sum(1 for p in providers if p.config.enabled)
        return ProviderStats(
            total_count=len(providers),
            enabled_count=enabled,
            disabled_count=len(providers) - enabled,
            per_provider=[
                ProviderSummary(
                    id=p.config.id,
                    display_name=p.config.display_name,
                    enabled=p.config.enabled,
                    priority=p.config.priority,
                    source_type=p.config.source_type,
                    capabilities=capability_names(p.capabilities),
                )
                for p in sorted(providers, key=lambda p: p.config.priority)
            ],
        )

    # ------------------------------------------------------------------
    # Single provider call
    # ------------------------------------------------------------------

    def _require_enabled(self) -> tuple[ProviderProtocol, ...]:
        enabled = self._enabled
        if not enabled:
            raise NoProvidersError("no providers are enabled")
        return enabled

    async def _context(
        self, provider: ProviderProtocol, cancel: asyncio.Event | None
    ) -> ProviderContext:
        base_url = provider.config.base_url
        if not base_url and self._resolver is not None:
            base_url = await self._resolver.resolve(provider.config.base_url_key)
        return ProviderContext(base_url=base_url, cancel=cancel)

    async def _call(
        self,
        provider: ProviderProtocol,
        operation: str,
        invoke: _Invoke[T],
        cancel: asyncio.Event | None,
    ) -> Outcome[T]:
        """Run one provider operation and normalise the result."""
        provider_id = provider.config.id
        t0 = time.perf_counter_ns()
        failure: Failure | None = None
        value: Any = None

        async def _run() -> T:
            # Base-URL lookup counts against the timeout and the cancel signal.
            ctx = await self._context(provider, cancel)
            return await invoke(provider, ctx)

        try:
            value = await asyncio.wait_for(
                run_cancellable(_run(), cancel), timeout=self._timeout
            )
        except TimeoutError:
            log.warning(
                "provider_call_timeout",
                provider=provider_id,
                operation=operation,
                timeout=self._timeout,
            )
            failure = Failure(
                provider_id, f"timed out after {self._timeout}s", "TimeoutError", True
            )
        except OperationCancelledError as exc:
            log.debug("provider_call_cancelled", provider=provider_id, operation=operation)
            failure = Failure(provider_id, str(exc), type(exc).__name__)
        except ProviderUnavailableError as exc:
            log.info(
                "provider_unavailable",
                provider=provider_id,
                operation=operation,
                reason=str(exc),
            )
            failure = Failure(provider_id, str(exc), type(exc).__name__)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "provider_call_failed",
                provider=provider_id,
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            failure = Failure(provider_id, str(exc) or type(exc).__name__, type(exc).__name__)

        duration_ns = time.perf_counter_ns() - t0
        duration_ms = round(duration_ns / 1_000_000, 1)
        if self._metrics is not None:
            self._metrics.record_provider_call(
                provider_id,
                operation,
                duration_ns,
                _result_count(value),
                success=failure is None,
                timed_out=failure is not None and failure.timed_out,
            )

        if failure is not None:
            return Failure(
                failure.provider_id,
                failure.reason,
                failure.error_type,
                failure.timed_out,
                duration_ms,
            )
        return Success(provider_id, value, duration_ms)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def gather_outcomes(
        self,
        operation: str,
        capability: Capability,
        invoke: _Invoke[T],
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[Outcome[T]]:
        """Run *invoke* on every enabled provider having *capability*.

        Returns one outcome per provider that finished, in priority order.
        When *cancel* fires, unfinished calls are cancelled and only the
        outcomes completed so far are returned.
        """
        targets = [p for p in self._require_enabled() if capability in p.capabilities]
        if not targets:
            log.info("fan_out_no_capable_providers", operation=operation)
            return []
        if cancel is not None and cancel.is_set():
            return []

        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _run(provider: ProviderProtocol) -> Outcome[T]:
            async with semaphore:
                return await self._call(provider, operation, invoke, cancel)

        t0 = time.perf_counter_ns()
        tasks = [asyncio.ensure_future(_run(p)) for p in targets]
        pending: set[asyncio.Future[Any]] = set(tasks)
        waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        interrupted = False
        try:
            while pending:
                watch = pending | {waiter} if waiter is not None else pending
                done, _ = await asyncio.wait(watch, return_when=asyncio.FIRST_COMPLETED)
                pending -= done
                if waiter is not None and waiter in done:
                    interrupted = bool(pending)
                    break
        finally:
            if waiter is not None:
                waiter.cancel()
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        outcomes: list[Outcome[T]] = [
            t.result() for t in tasks if t.done() and not t.cancelled()
        ]
        succeeded = sum(1 for o in outcomes if o.ok)
        log.info(
            "fan_out_complete",
            operation=operation,
            providers=len(targets),
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
            cancelled=interrupted,
            duration_ms=round((time.perf_counter_ns() - t0) / 1_000_000, 1),
        )
        return outcomes

    @staticmethod
    def _flatten(outcomes: list[Outcome[list[T]]]) -> list[T]:
        merged: list[T] = []
        for outcome in outcomes:
            if isinstance(outcome, Success):
                merged.extend(outcome.value)
        return merged

    async def list_all_posts(
        self,
        filter_token: str,
        page: int = 1,
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[Post]:
        outcomes = await self.gather_outcomes(
            "list_posts",
            Capability.POSTS,
            lambda p, ctx: p.list_posts(filter_token, page, ctx),
            cancel=cancel,
        )
        return self._flatten(outcomes)

    async def search_all(
        self,
        query: str,
        page: int = 1,
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[Post]:
        """Search every capable provider; duplicates by (title, year) are
        dropped, keeping the higher-priority provider's entry."""
        outcomes = await self.gather_outcomes(
            "search",
            Capability.SEARCH,
            lambda p, ctx: p.search(query, page, ctx),
            cancel=cancel,
        )
        seen: set[tuple[str, int | None]] = set()
        unique: list[Post] = []
        for post in self._flatten(outcomes):
            key = _dedupe_key(post)
            if key in seen:
                continue
            seen.add(key)
            unique.append(post)
        return unique

    async def get_streams_from_all(
        self,
        link: str,
        kind: ContentKind,
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[Stream]:
        outcomes = await self.gather_outcomes(
            "get_streams",
            Capability.STREAMS,
            lambda p, ctx: p.get_streams(link, kind, ctx),
            cancel=cancel,
        )
        return self._flatten(outcomes)

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    def fallback_candidates(
        self, capability: Capability, preferred_id: str | None = None
    ) -> list[ProviderProtocol]:
        """Preferred provider (when registered) then enabled ones by priority."""
        enabled = self._require_enabled()
        candidates: list[ProviderProtocol] = []
        preferred = self._providers.get(preferred_id) if preferred_id else None
        if preferred is not None:
            candidates.append(preferred)
        candidates.extend(p for p in enabled if p is not preferred)
        return [p for p in candidates if capability in p.capabilities]

    async def _first_success(
        self,
        operation: str,
        capability: Capability,
        preferred_id: str | None,
        invoke: _Invoke[T],
        cancel: asyncio.Event | None,
    ) -> Success[T] | None:
        for provider in self.fallback_candidates(capability, preferred_id):
            if cancel is not None and cancel.is_set():
                log.debug("fallback_cancelled", operation=operation)
                return None
            outcome = await self._call(provider, operation, invoke, cancel)
            if isinstance(outcome, Success):
                return outcome
        log.info("fallback_exhausted", operation=operation, preferred=preferred_id)
        return None

    async def get_metadata_with_fallback(
        self,
        link: str,
        preferred_id: str | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> Info | None:
        outcome = await self._first_success(
            "get_metadata",
            Capability.METADATA,
            preferred_id,
            lambda p, ctx: p.get_metadata(link, ctx),
            cancel,
        )
        return outcome.value if outcome is not None else None

    async def get_episodes_with_fallback(
        self,
        url: str,
        preferred_id: str | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[EpisodeLink]:
        outcome = await self._first_success(
            "list_episodes",
            Capability.EPISODES,
            preferred_id,
            lambda p, ctx: p.list_episodes(url, ctx),
            cancel,
        )
        return list(outcome.value) if outcome is not None else []
