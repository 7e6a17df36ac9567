"""AllDebrid instant availability."""

from __future__ import annotations

import httpx

from streamfuse.domain.exceptions import DebridUnavailable

_BASE_URL = "https://api.alldebrid.com/v4"
_AGENT = "streamfuse"


class AllDebridApi:
    """POST /magnet/instant with one ``magnets[]`` field per hash."""

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
        return "alldebrid"

    @property
    def max_batch_size(self) -> int:
        return 50

    async def instant_availability(self, hashes: list[str]) -> dict[str, bool]:
        if not hashes:
            return {}
        resp = await self._http.post(
            f"{self._base_url}/magnet/instant",
            params={"agent": _AGENT, "apikey": self._api_key},
            data={"magnets[]": [f"magnet:?xt=urn:btih:{h}" for h in hashes]},
        )
        if resp.status_code != 200:
            raise DebridUnavailable(f"alldebrid returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise DebridUnavailable("alldebrid returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise DebridUnavailable("alldebrid returned an unexpected payload")
        if body.get("status") != "success":
            error = body.get("error")
            code = error.get("code", "unknown") if isinstance(error, dict) else "unknown"
            raise DebridUnavailable(f"alldebrid error: {code}")

        data = body.get("data")
        magnets = data.get("magnets") if isinstance(data, dict) else None
        if not isinstance(magnets, list):
            raise DebridUnavailable("alldebrid returned no magnets list")

        result: dict[str, bool] = {}
        for index, magnet in enumerate(magnets):
            if not isinstance(magnet, dict):
                continue
            h = str(magnet.get("hash") or "").lower()
            if not h and index < len(hashes):
                h = hashes[index]
            if h:
                result[h] = magnet.get("instant") is True
        return result
