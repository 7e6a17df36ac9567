"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from streamfuse.application.orchestrator import ProviderOrchestrator
from streamfuse.application.use_cases.stream_search import StreamSearchUseCase
from streamfuse.domain.exceptions import ConfigError
from streamfuse.domain.ports.extractor import ExtractorPort
from streamfuse.infrastructure.config.schema import AppConfig
from streamfuse.infrastructure.debrid import DebridResolver, build_debrid_api
from streamfuse.infrastructure.extractors.chain import ExtractorChain
from streamfuse.infrastructure.extractors.direct import DirectMediaExtractor
from streamfuse.infrastructure.extractors.doodstream import DoodStreamExtractor
from streamfuse.infrastructure.extractors.maxstream import MaxStreamExtractor
from streamfuse.infrastructure.extractors.mediaflow import MediaFlowExtractor
from streamfuse.infrastructure.extractors.supervideo import SuperVideoExtractor
from streamfuse.infrastructure.extractors.vixcloud import VixCloudExtractor
from streamfuse.infrastructure.providers import build_providers
from streamfuse.infrastructure.streams.sorter import StreamSorter
from streamfuse.infrastructure.tmdb import HttpxTmdbClient, ImdbSuggestClient
from streamfuse.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_extractor_chain(
    config: AppConfig, http_client: httpx.AsyncClient
) -> ExtractorChain:
    """Extractors in fallback order; the direct probe always runs last."""
    ua = config.http_user_agent
    extractors: list[ExtractorPort] = [
        VixCloudExtractor(http_client, user_agent=ua),
        SuperVideoExtractor(http_client, user_agent=ua),
        DoodStreamExtractor(http_client, user_agent=ua),
        MaxStreamExtractor(http_client, user_agent=ua),
        MediaFlowExtractor(
            http_client,
            config.extractors.mediaflow_url,
            config.extractors.mediaflow_password,
        ),
        DirectMediaExtractor(http_client),
    ]
    return ExtractorChain(
        extractors,
        http_client=http_client,
        timeout=config.extractors.timeout_seconds,
    )


def build_stream_search(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    chain: ExtractorChain,
) -> StreamSearchUseCase:
    """Wire the search pipeline. Raises ConfigError on unusable settings."""
    providers = build_providers(
        config.providers, http_client, user_agent=config.http_user_agent
    )
    orchestrator = ProviderOrchestrator(
        providers,
        per_provider_timeout=config.per_provider_timeout_seconds,
        max_concurrent=config.providers.max_concurrent,
    )

    debrid: DebridResolver | None = None
    if config.debrid.service and config.debrid.api_key:
        debrid = DebridResolver(
            build_debrid_api(config.debrid.service, config.debrid.api_key, http_client),
            batch_delay_seconds=config.debrid.batch_delay_seconds,
        )
        log.info("debrid_enabled", service=config.debrid.service)
    elif config.debrid.service:
        log.warning("debrid_api_key_missing", service=config.debrid.service)

    tmdb: HttpxTmdbClient | None = None
    if config.tmdb_api_key:
        tmdb = HttpxTmdbClient(api_key=config.tmdb_api_key, http_client=http_client)
    else:
        log.info("tmdb_disabled", reason="no api key, using IMDB suggest for titles")

    return StreamSearchUseCase(
        orchestrator=orchestrator,
        policy=config.filter_policy(),
        sorter=StreamSorter(config.sorting),
        extractor_chain=chain,
        debrid=debrid,
        catalog=tmdb,
        metadata=tmdb or ImdbSuggestClient(http_client=http_client),
        provider_priority=config.providers.effective_priority,
        resolve_inline=config.extractors.resolve_inline,
        extractor_concurrency=config.extractors.concurrency_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (shared by providers, extractors, debrid, TMDB)
        2. Extractor chain
        3. Stream search use case (providers, orchestrator, debrid, catalog)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 2) Extractor chain
    state.extractor_chain = build_extractor_chain(config, state.http_client)
    log.info("extractors_registered", extractors=state.extractor_chain.names)

    # 3) Use case; a ConfigError keeps the app up but answers 503
    state.config_error = None
    try:
        state.stream_search_uc = build_stream_search(
            config, state.http_client, state.extractor_chain
        )
    except ConfigError as exc:
        log.error("stream_search_misconfigured", error=str(exc))
        state.stream_search_uc = None
        state.config_error = str(exc)

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
