"""Debrid service adapters and the batching resolver."""

from __future__ import annotations

import httpx

from streamfuse.domain.exceptions import ConfigError
from streamfuse.domain.ports.debrid import DebridApiPort

from .alldebrid import AllDebridApi
from .realdebrid import RealDebridApi
from .resolver import DebridResolver
from .torbox import TorboxApi

_APIS: dict[str, type[AllDebridApi] | type[RealDebridApi] | type[TorboxApi]] = {
    "realdebrid": RealDebridApi,
    "torbox": TorboxApi,
    "alldebrid": AllDebridApi,
}


def build_debrid_api(
    service: str, api_key: str, http_client: httpx.AsyncClient
) -> DebridApiPort:
    try:
        api_cls = _APIS[service]
    except KeyError:
        raise ConfigError(f"unknown debrid service: {service!r}") from None
    return api_cls(api_key=api_key, http_client=http_client)


__all__ = [
    "AllDebridApi",
    "DebridResolver",
    "RealDebridApi",
    "TorboxApi",
    "build_debrid_api",
]
