"""Tests for concurrent provider aggregation."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from streamfuse.application.orchestrator import ProviderOrchestrator, aggregate
from streamfuse.domain.entities.streams import ContentQuery, RawCandidate
from streamfuse.domain.exceptions import ConfigError, ProviderError


class _FakeProvider:
    def __init__(
        self,
        name: str,
        results: list[RawCandidate] | None = None,
        *,
        error: BaseException | None = None,
        delay: float = 0.0,
        content_types: frozenset[str] = frozenset({"movie", "series"}),
    ) -> None:
        self.name = name
        self._results = results or []
        self._error = error
        self._delay = delay
        self._content_types = content_types
        self.calls = 0

    def supports(self, content_type: str) -> bool:
        return content_type in self._content_types

    async def search(self, query: ContentQuery) -> list[RawCandidate]:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return list(self._results)


def _raw(name: str, provider_id: str) -> RawCandidate:
    return RawCandidate(name=name, provider_id=provider_id, info_hash="a" * 40)


class TestAggregate:
    @pytest.mark.asyncio()
    async def test_merges_in_provider_order(self, movie_query: ContentQuery) -> None:
        a = _FakeProvider("a", [_raw("a1", "a"), _raw("a2", "a")], delay=0.02)
        b = _FakeProvider("b", [_raw("b1", "b")])
        result = await ProviderOrchestrator([a, b], per_provider_timeout=1.0).aggregate(
            movie_query
        )
        assert [c.name for c in result] == ["a1", "a2", "b1"]

    @pytest.mark.asyncio()
    async def test_failing_provider_is_isolated(self, movie_query: ContentQuery) -> None:
        good = _FakeProvider("good", [_raw("ok", "good")])
        providers = [
            _FakeProvider("broken", error=ProviderError("broken", "HTTP 500")),
            _FakeProvider("buggy", error=KeyError("title")),
            good,
        ]
        result = await ProviderOrchestrator(providers, per_provider_timeout=1.0).aggregate(
            movie_query
        )
        assert [c.name for c in result] == ["ok"]

    @pytest.mark.asyncio()
    async def test_slow_provider_times_out(self, movie_query: ContentQuery) -> None:
        slow = _FakeProvider("slow", [_raw("late", "slow")], delay=5)
        fast = _FakeProvider("fast", [_raw("early", "fast")])
        result = await ProviderOrchestrator([slow, fast], per_provider_timeout=0.05).aggregate(
            movie_query
        )
        assert [c.name for c in result] == ["early"]

    @pytest.mark.asyncio()
    async def test_all_failing_yields_empty(self, movie_query: ContentQuery) -> None:
        providers = [_FakeProvider("x", error=ProviderError("x", "down"))]
        assert await ProviderOrchestrator(providers, per_provider_timeout=1.0).aggregate(
            movie_query
        ) == []

    @pytest.mark.asyncio()
    async def test_restamps_provider_id(self, movie_query: ContentQuery) -> None:
        provider = _FakeProvider("real", [_raw("r", "wrong")])
        (candidate,) = await ProviderOrchestrator(
            [provider], per_provider_timeout=1.0
        ).aggregate(movie_query)
        assert candidate.provider_id == "real"

    @pytest.mark.asyncio()
    async def test_skips_unsupported_content_type(self, episode_query: ContentQuery) -> None:
        movies_only = _FakeProvider("movies", content_types=frozenset({"movie"}))
        both = _FakeProvider("both", [_raw("ep", "both")])
        await ProviderOrchestrator([movies_only, both], per_provider_timeout=1.0).aggregate(
            episode_query
        )
        assert movies_only.calls == 0
        assert both.calls == 1

    @pytest.mark.asyncio()
    async def test_no_applicable_provider_is_config_error(
        self, episode_query: ContentQuery
    ) -> None:
        orchestrator = ProviderOrchestrator(
            [_FakeProvider("movies", content_types=frozenset({"movie"}))],
            per_provider_timeout=1.0,
        )
        with pytest.raises(ConfigError):
            await orchestrator.aggregate(episode_query)

    @pytest.mark.asyncio()
    async def test_max_concurrent_bounds_fanout(self, movie_query: ContentQuery) -> None:
        running = 0
        peak = 0

        class _Tracking(_FakeProvider):
            async def search(self, query: ContentQuery) -> list[RawCandidate]:
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return []

        providers = [_Tracking(f"p{i}") for i in range(6)]
        await ProviderOrchestrator(
            providers, per_provider_timeout=1.0, max_concurrent=2
        ).aggregate(movie_query)
        assert peak <= 2

    @pytest.mark.asyncio()
    async def test_cancellation_propagates(self, movie_query: ContentQuery) -> None:
        slow = _FakeProvider("slow", delay=5)
        task = asyncio.create_task(
            ProviderOrchestrator([slow], per_provider_timeout=10.0).aggregate(movie_query)
        )
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio()
    async def test_functional_form(self, movie_query: ContentQuery) -> None:
        provider = _FakeProvider("a", [_raw("a1", "a")])
        result = await aggregate(movie_query, [provider], per_provider_timeout=1.0)
        assert [c.name for c in result] == ["a1"]

    def test_provider_names(self) -> None:
        provider = MagicMock()
        provider.name = "tpb"
        assert ProviderOrchestrator([provider], per_provider_timeout=1.0).provider_names == [
            "tpb"
        ]
