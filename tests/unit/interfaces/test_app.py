"""Tests for the application factory and its lifespan wiring."""

from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from streamfuse.infrastructure.config import AppConfig
from streamfuse.interfaces.app import create_app
from streamfuse.interfaces.composition import build_extractor_chain


class TestCreateApp:
    def test_healthz_after_startup(self) -> None:
        config = AppConfig(providers={"enabled": ["tpb"]})
        with TestClient(create_app(config)) as client:
            resp = client.get("/healthz")
            assert client.app.state.stream_search_uc is not None

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["providers"] == ["tpb"]
        assert body["extractors"][-1] == "direct"

    def test_unknown_provider_degrades(self) -> None:
        config = AppConfig(providers={"enabled": ["nyaa"]})
        with TestClient(create_app(config)) as client:
            health = client.get("/healthz").json()
            stream = client.get("/stream/movie/tt0133093.json")

        assert health["status"] == "degraded"
        assert stream.status_code == 503
        assert "nyaa" in stream.json()["error"]

    def test_inconsistent_filter_degrades(self) -> None:
        config = AppConfig(filter={"min_size_movie_bytes": 5, "max_size_bytes": 1})
        with TestClient(create_app(config)) as client:
            assert client.get("/healthz").json()["status"] == "degraded"


class TestBuildExtractorChain:
    def test_order(self) -> None:
        chain = build_extractor_chain(AppConfig(), httpx.AsyncClient())
        assert chain.names == [
            "vixcloud",
            "supervideo",
            "doodstream",
            "maxstream",
            "mediaflow",
            "direct",
        ]
