"""Torbox instant availability."""

from __future__ import annotations

import httpx

from streamfuse.domain.exceptions import DebridUnavailable

_BASE_URL = "https://api.torbox.app/v1/api"


class TorboxApi:
    """POST /torrents/checkcached with ``format=object``.

    The answer maps each cached hash to its file listing; hashes the
    service does not know are simply absent.
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
        return "torbox"

    @property
    def max_batch_size(self) -> int:
        return 100

    async def instant_availability(self, hashes: list[str]) -> dict[str, bool]:
        if not hashes:
            return {}
        resp = await self._http.post(
            f"{self._base_url}/torrents/checkcached",
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={"hashes": hashes, "format": "object", "list_files": True},
        )
        if resp.status_code != 200:
            raise DebridUnavailable(f"torbox returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise DebridUnavailable("torbox returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise DebridUnavailable("torbox returned an unexpected payload")
        if not body.get("success"):
            raise DebridUnavailable(f"torbox error: {body.get('detail') or body.get('error')}")

        data = body.get("data")
        if not isinstance(data, dict):
            return {}
        return {h: True for h in hashes if data.get(h)}
