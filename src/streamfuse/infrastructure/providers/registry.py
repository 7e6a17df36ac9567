"""Static name -> provider class table."""

from __future__ import annotations

import httpx
import structlog

from streamfuse.domain.exceptions import ConfigError
from streamfuse.domain.ports.provider import ProviderPort
from streamfuse.infrastructure.config.schema import ProvidersConfig

from .base import HttpxProviderBase
from .knaben import KnabenProvider
from .tpb import ThePirateBayProvider
from .zilean import ZileanProvider

log = structlog.get_logger(__name__)

PROVIDER_CLASSES: dict[str, type[HttpxProviderBase]] = {
    ThePirateBayProvider.name: ThePirateBayProvider,
    KnabenProvider.name: KnabenProvider,
    ZileanProvider.name: ZileanProvider,
}


def _base_url(config: ProvidersConfig, name: str) -> str | None:
    return getattr(config, f"{name}_url", None)


def build_providers(
    config: ProvidersConfig,
    http_client: httpx.AsyncClient,
    user_agent: str = "",
) -> list[ProviderPort]:
    """Instantiate the enabled providers in configured order.

    Raises ConfigError for names missing from the table.
    """
    unknown = [name for name in config.enabled if name not in PROVIDER_CLASSES]
    if unknown:
        raise ConfigError(
            f"unknown provider(s) {unknown}; available: {sorted(PROVIDER_CLASSES)}"
        )

    providers: list[ProviderPort] = []
    for name in dict.fromkeys(config.enabled):
        provider_cls = PROVIDER_CLASSES[name]
        providers.append(
            provider_cls(http_client, _base_url(config, name), user_agent=user_agent)
        )
    log.info("providers_built", providers=[p.name for p in providers])
    return providers
