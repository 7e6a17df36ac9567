"""Tests for debrid availability adapters and the batching resolver."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from streamfuse.domain.exceptions import ConfigError, DebridUnavailable
from streamfuse.infrastructure.debrid import (
    AllDebridApi,
    DebridResolver,
    RealDebridApi,
    TorboxApi,
    build_debrid_api,
)

_H1 = "a" * 40
_H2 = "b" * 40
_H3 = "c" * 40


def _make_api(batch_size: int = 100, side_effect: object = None) -> MagicMock:
    api = MagicMock()
    api.name = "fake"
    api.max_batch_size = batch_size
    api.instant_availability = AsyncMock(side_effect=side_effect)
    return api


class TestDebridResolver:
    @pytest.mark.asyncio()
    async def test_missing_hashes_are_not_cached(self) -> None:
        api = _make_api(side_effect=lambda batch: {_H1: True})
        result = await DebridResolver(api).check_availability([_H1, _H2])
        assert result == {_H1: True, _H2: False}

    @pytest.mark.asyncio()
    async def test_normalizes_and_deduplicates(self) -> None:
        api = _make_api(side_effect=lambda batch: {h: True for h in batch})
        result = await DebridResolver(api).check_availability([_H1.upper(), f" {_H1} ", "", _H2])
        assert result == {_H1: True, _H2: True}
        api.instant_availability.assert_awaited_once_with([_H1, _H2])

    @pytest.mark.asyncio()
    async def test_splits_into_batches(self) -> None:
        api = _make_api(batch_size=2, side_effect=lambda batch: {})
        hashes = [f"{i:040x}" for i in range(5)]
        await DebridResolver(api).check_availability(hashes)
        sizes = [len(call.args[0]) for call in api.instant_availability.await_args_list]
        assert sizes == [2, 2, 1]

    @pytest.mark.asyncio()
    async def test_failed_batch_counts_as_miss(self) -> None:
        answers = iter(
            [{_H1: True}, DebridUnavailable("rate limited"), {_H3: True}]
        )

        def _answer(batch: list[str]) -> dict[str, bool]:
            value = next(answers)
            if isinstance(value, Exception):
                raise value
            return value

        api = _make_api(batch_size=1, side_effect=_answer)
        result = await DebridResolver(api).check_availability([_H1, _H2, _H3])
        assert result == {_H1: True, _H2: False, _H3: True}

    @pytest.mark.asyncio()
    async def test_transport_error_counts_as_miss(self) -> None:
        api = _make_api(side_effect=httpx.ConnectError("down"))
        result = await DebridResolver(api).check_availability([_H1])
        assert result == {_H1: False}

    @pytest.mark.asyncio()
    async def test_empty_input_makes_no_call(self) -> None:
        api = _make_api()
        assert await DebridResolver(api).check_availability([]) == {}
        api.instant_availability.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_unexpected_adapter_error_counts_as_miss(self) -> None:
        api = _make_api(side_effect=AttributeError("'list' object has no attribute 'get'"))
        result = await DebridResolver(api).check_availability([_H1])
        assert result == {_H1: False}

    @pytest.mark.asyncio()
    @respx.mock
    async def test_alldebrid_list_payload_counts_as_miss(self) -> None:
        respx.post("https://api.alldebrid.com/v4/magnet/instant").mock(
            return_value=httpx.Response(200, json=[])
        )
        async with httpx.AsyncClient() as client:
            resolver = DebridResolver(AllDebridApi(api_key="k", http_client=client))
            result = await resolver.check_availability([_H1])
        assert result == {_H1: False}

    def test_service_name(self) -> None:
        assert DebridResolver(_make_api()).service == "fake"


class TestRealDebridApi:
    @pytest.mark.asyncio()
    @respx.mock
    async def test_rd_variants_mean_cached(self) -> None:
        route = respx.get(
            f"https://api.real-debrid.com/rest/1.0/torrents/instantAvailability/{_H1}/{_H2}"
        ).mock(
            return_value=httpx.Response(
                200, json={_H1: {"rd": [{"1": {"filename": "x.mkv"}}]}, _H2: {"rd": []}}
            )
        )
        async with httpx.AsyncClient() as client:
            api = RealDebridApi(api_key="key", http_client=client)
            result = await api.instant_availability([_H1, _H2])

        assert result == {_H1: True, _H2: False}
        assert route.calls.last.request.headers["Authorization"] == "Bearer key"

    @pytest.mark.asyncio()
    @respx.mock
    async def test_disabled_endpoint_is_all_miss(self) -> None:
        respx.get(url__startswith="https://api.real-debrid.com/").mock(
            return_value=httpx.Response(
                403, json={"error": "disabled_endpoint", "error_code": 37}
            )
        )
        async with httpx.AsyncClient() as client:
            result = await RealDebridApi(api_key="k", http_client=client).instant_availability(
                [_H1]
            )
        assert result == {_H1: False}

    @pytest.mark.asyncio()
    @respx.mock
    async def test_server_error_raises(self) -> None:
        respx.get(url__startswith="https://api.real-debrid.com/").mock(
            return_value=httpx.Response(503)
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable):
                await RealDebridApi(api_key="k", http_client=client).instant_availability(
                    [_H1]
                )


class TestTorboxApi:
    @pytest.mark.asyncio()
    @respx.mock
    async def test_present_hashes_are_cached(self) -> None:
        route = respx.post("https://api.torbox.app/v1/api/torrents/checkcached").mock(
            return_value=httpx.Response(
                200, json={"success": True, "data": {_H1: {"name": "x", "files": []}}}
            )
        )
        async with httpx.AsyncClient() as client:
            result = await TorboxApi(api_key="k", http_client=client).instant_availability(
                [_H1, _H2]
            )

        assert result == {_H1: True}
        sent = json.loads(route.calls.last.request.content)
        assert sent["hashes"] == [_H1, _H2]
        assert sent["format"] == "object"

    @pytest.mark.asyncio()
    @respx.mock
    async def test_unsuccessful_body_raises(self) -> None:
        respx.post("https://api.torbox.app/v1/api/torrents/checkcached").mock(
            return_value=httpx.Response(200, json={"success": False, "detail": "bad token"})
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable, match="bad token"):
                await TorboxApi(api_key="k", http_client=client).instant_availability([_H1])


class TestAllDebridApi:
    @pytest.mark.asyncio()
    @respx.mock
    async def test_instant_flags(self) -> None:
        route = respx.post("https://api.alldebrid.com/v4/magnet/instant").mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": "success",
                    "data": {
                        "magnets": [
                            {"magnet": "m1", "hash": _H1.upper(), "instant": True},
                            {"magnet": "m2", "instant": False},
                        ]
                    },
                },
            )
        )
        async with httpx.AsyncClient() as client:
            result = await AllDebridApi(api_key="k", http_client=client).instant_availability(
                [_H1, _H2]
            )

        assert result == {_H1: True, _H2: False}
        request = route.calls.last.request
        assert request.url.params["apikey"] == "k"
        assert request.url.params["agent"] == "streamfuse"

    @pytest.mark.asyncio()
    @respx.mock
    async def test_error_status_raises(self) -> None:
        respx.post("https://api.alldebrid.com/v4/magnet/instant").mock(
            return_value=httpx.Response(
                200, json={"status": "error", "error": {"code": "AUTH_BAD_APIKEY"}}
            )
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable, match="AUTH_BAD_APIKEY"):
                await AllDebridApi(api_key="k", http_client=client).instant_availability([_H1])


class TestBuildDebridApi:
    @pytest.mark.parametrize(
        ("service", "cls"),
        [("realdebrid", RealDebridApi), ("torbox", TorboxApi), ("alldebrid", AllDebridApi)],
    )
    def test_known_services(self, service: str, cls: type) -> None:
        assert isinstance(build_debrid_api(service, "k", httpx.AsyncClient()), cls)

    def test_unknown_service(self) -> None:
        with pytest.raises(ConfigError):
            build_debrid_api("premiumize", "k", httpx.AsyncClient())


class TestMalformedPayloads:
    @pytest.mark.asyncio()
    @respx.mock
    async def test_alldebrid_non_object_body_raises(self) -> None:
        respx.post("https://api.alldebrid.com/v4/magnet/instant").mock(
            return_value=httpx.Response(200, json=[])
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable):
                await AllDebridApi(api_key="k", http_client=client).instant_availability([_H1])

    @pytest.mark.asyncio()
    @respx.mock
    async def test_alldebrid_missing_magnets_raises(self) -> None:
        respx.post("https://api.alldebrid.com/v4/magnet/instant").mock(
            return_value=httpx.Response(200, json={"status": "success", "data": []})
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable):
                await AllDebridApi(api_key="k", http_client=client).instant_availability([_H1])

    @pytest.mark.asyncio()
    @respx.mock
    async def test_torbox_non_object_body_raises(self) -> None:
        respx.post("https://api.torbox.app/v1/api/torrents/checkcached").mock(
            return_value=httpx.Response(200, json=["unexpected"])
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(DebridUnavailable):
                await TorboxApi(api_key="k", http_client=client).instant_availability([_H1])

    @pytest.mark.asyncio()
    @respx.mock
    async def test_torbox_non_object_data_is_all_miss(self) -> None:
        respx.post("https://api.torbox.app/v1/api/torrents/checkcached").mock(
            return_value=httpx.Response(200, json={"success": True, "data": None})
        )
        async with httpx.AsyncClient() as client:
            result = await TorboxApi(api_key="k", http_client=client).instant_availability(
                [_H1]
            )
        assert result == {}
