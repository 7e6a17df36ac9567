"""Concurrent provider fan-out with per-provider isolation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import replace

import structlog

from streamfuse.domain.entities.streams import ContentQuery, RawCandidate
from streamfuse.domain.exceptions import ConfigError, ProviderError
from streamfuse.domain.ports.provider import ProviderPort

log = structlog.get_logger(__name__)


class ProviderOrchestrator:
    """Query every applicable provider concurrently and merge the results.

    Each provider runs under its own timeout. A provider that times out or
    raises contributes nothing; the others are unaffected. There are no
    retries here. Cancelling the caller cancels every in-flight call.
    """

    def __init__(
        self,
        providers: Sequence[ProviderPort],
        *,
        per_provider_timeout: float,
        max_concurrent: int | None = None,
    ) -> None:
        self._providers = list(providers)
        self._timeout = per_provider_timeout
        self._max_concurrent = max_concurrent

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    def select(self, query: ContentQuery) -> list[ProviderPort]:
        """Providers that support *query*'s content type.

        Raises ConfigError when none do.
        """
        selected = [p for p in self._providers if p.supports(query.type)]
        if not selected:
            raise ConfigError(f"no provider supports content type {query.type!r}")
        return selected

    async def aggregate(self, query: ContentQuery) -> list[RawCandidate]:
        selected = self.select(query)
        semaphore = asyncio.Semaphore(self._max_concurrent or len(selected))

        async def _bounded(provider: ProviderPort) -> list[RawCandidate]:
            async with semaphore:
                return await self._search_one(provider, query)

        per_provider = await asyncio.gather(*(_bounded(p) for p in selected))

        merged: list[RawCandidate] = []
        for candidates in per_provider:
            merged.extend(candidates)
        log.info(
            "providers_aggregated",
            providers=len(selected),
            responded=sum(1 for c in per_provider if c),
            candidates=len(merged),
        )
        return merged

    async def _search_one(
        self, provider: ProviderPort, query: ContentQuery
    ) -> list[RawCandidate]:
        """One provider call; every failure except cancellation yields []."""
        t0 = time.perf_counter()
        try:
            raw = await asyncio.wait_for(provider.search(query), timeout=self._timeout)
        except TimeoutError:
            log.warning("provider_timeout", provider=provider.name, timeout=self._timeout)
            return []
        except ProviderError as exc:
            log.warning("provider_error", provider=provider.name, error=str(exc))
            return []
        except Exception:
            log.exception("provider_unexpected_error", provider=provider.name)
            return []
        except BaseException:
            log.warning("provider_search_cancelled", provider=provider.name)
            raise

        candidates = [
            c if c.provider_id == provider.name else replace(c, provider_id=provider.name)
            for c in raw or ()
        ]
        log.debug(
            "provider_search_done",
            provider=provider.name,
            count=len(candidates),
            elapsed_ms=round((time.perf_counter() - t0) * 1000),
        )
        return candidates


async def aggregate(
    query: ContentQuery,
    providers: Sequence[ProviderPort],
    per_provider_timeout: float,
    max_concurrent: int | None = None,
) -> list[RawCandidate]:
    """Functional form of ProviderOrchestrator.aggregate()."""
    orchestrator = ProviderOrchestrator(
        providers,
        per_provider_timeout=per_provider_timeout,
        max_concurrent=max_concurrent,
    )
    return await orchestrator.aggregate(query)
