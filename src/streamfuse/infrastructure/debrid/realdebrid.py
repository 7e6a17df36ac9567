"""Real-Debrid instant availability."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from streamfuse.domain.exceptions import DebridUnavailable

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.real-debrid.com/rest/1.0"
_ENDPOINT_DISABLED_CODE = 37


class RealDebridApi:
    """GET /torrents/instantAvailability/{h1}/{h2}/...

    A hash counts as cached when the service lists at least one ``rd``
    file variant for it. HTTP 403 with error_code 37 means the endpoint is
    disabled for the account; every hash of the batch is then a miss.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "realdebrid"

    @property
    def max_batch_size(self) -> int:
        return 40

    async def instant_availability(self, hashes: list[str]) -> dict[str, bool]:
        if not hashes:
            return {}
        url = f"{self._base_url}/torrents/instantAvailability/{'/'.join(hashes)}"
        resp = await self._http.get(
            url, headers={"Authorization": f"Bearer {self._api_key}"}
        )

        if resp.status_code == 403 and self._endpoint_disabled(resp):
            log.warning("realdebrid_instant_availability_disabled")
            return {h: False for h in hashes}
        if resp.status_code != 200:
            raise DebridUnavailable(f"realdebrid returned HTTP {resp.status_code}")

        try:
            data: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise DebridUnavailable("realdebrid returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise DebridUnavailable("realdebrid returned an unexpected payload")

        result: dict[str, bool] = {}
        for h in hashes:
            info = data.get(h)
            if isinstance(info, dict):
                result[h] = bool(info.get("rd"))
        return result

    @staticmethod
    def _endpoint_disabled(resp: httpx.Response) -> bool:
        try:
            body = resp.json()
        except ValueError:
            return "disabled_endpoint" in resp.text
        return isinstance(body, dict) and (
            body.get("error_code") == _ENDPOINT_DISABLED_CODE
            or body.get("error") == "disabled_endpoint"
        )
