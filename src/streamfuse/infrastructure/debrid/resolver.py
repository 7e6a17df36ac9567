"""Batched debrid cache lookups with per-batch failure isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import httpx
import structlog

from streamfuse.domain.exceptions import DebridUnavailable
from streamfuse.domain.ports.debrid import DebridApiPort

log = structlog.get_logger(__name__)


class DebridResolver:
    """Answers "is this hash cached?" for any number of hashes.

    Hashes are normalized and de-duplicated, split into batches no larger
    than the API allows, and queried one batch at a time. A failing batch
    counts as "not cached"; check_availability() never raises.
    """

    def __init__(self, api: DebridApiPort, batch_delay_seconds: float = 0.0) -> None:
        self._api = api
        self._batch_delay = batch_delay_seconds

    @property
    def service(self) -> str:
        return self._api.name

    async def check_availability(self, hashes: Iterable[str]) -> dict[str, bool]:
        normalized = ((raw or "").strip().lower() for raw in hashes)
        unique = list(dict.fromkeys(h for h in normalized if h))
        result = {h: False for h in unique}
        if not unique:
            return result

        size = max(1, self._api.max_batch_size)
        batches = [unique[i : i + size] for i in range(0, len(unique), size)]
        for index, batch in enumerate(batches):
            if index and self._batch_delay > 0:
                await asyncio.sleep(self._batch_delay)
            try:
                answer = await self._api.instant_availability(batch)
            except (DebridUnavailable, httpx.HTTPError) as exc:
                log.warning(
                    "debrid_batch_failed",
                    service=self._api.name,
                    batch=index,
                    size=len(batch),
                    error=str(exc),
                )
                continue
            except Exception:
                log.exception(
                    "debrid_batch_error",
                    service=self._api.name,
                    batch=index,
                    size=len(batch),
                )
                continue
            if not isinstance(answer, dict):
                log.warning("debrid_batch_malformed", service=self._api.name, batch=index)
                continue
            for h in batch:
                result[h] = bool(answer.get(h, False))

        log.debug(
            "debrid_availability_checked",
            service=self._api.name,
            hashes=len(unique),
            cached=sum(result.values()),
            batches=len(batches),
        )
        return result
