"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from streamfuse.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from streamfuse.application.use_cases.stream_search import StreamSearchUseCase
    from streamfuse.infrastructure.extractors.chain import ExtractorChain


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    extractor_chain: ExtractorChain

    # Application Services (None when the configuration is unusable)
    stream_search_uc: StreamSearchUseCase | None
    config_error: str | None
