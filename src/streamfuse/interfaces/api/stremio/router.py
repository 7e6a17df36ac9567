"""Stremio addon API endpoints (manifest, stream, play)."""

from __future__ import annotations

from typing import Any, cast
from urllib.parse import parse_qs, quote, urlparse

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from streamfuse import __version__
from streamfuse.domain.entities.streams import (
    CONTENT_TYPES,
    ContentType,
    StreamCandidate,
    StreamRequest,
)
from streamfuse.domain.exceptions import ConfigError, InvalidQueryError
from streamfuse.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_ADDON_ID = "community.streamfuse"
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


def _build_manifest(providers: list[str]) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": _ADDON_ID,
        "version": __version__,
        "name": "streamfuse",
        "description": f"Streams aggregated from {', '.join(providers) or 'no providers'}",
        "types": ["movie", "series"],
        "catalogs": [],
        "resources": ["stream"],
        "idPrefixes": ["tt", "tmdb:", "ctmdb."],
        "behaviorHints": {
            "adult": False,
            "configurable": False,
        },
    }


def _parse_episode(parts: list[str]) -> tuple[int, int] | None:
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def _parse_stream_id(content_type: str, raw_id: str) -> StreamRequest | None:
    """Parse a Stremio stream ID into a StreamRequest.

    Movies: "tt1234567" or "tmdb:12345"
    Series: "tt1234567:1:5" or "tmdb:12345:1:5" (season 1, episode 5)
    Collections: "ctmdb.10:1:3" (third film of TMDB collection 10)
    """
    if content_type not in CONTENT_TYPES:
        return None
    ct = cast(ContentType, content_type)

    if raw_id.startswith("ctmdb."):
        parts = raw_id.split(":")
        if len(parts) != 3 or not parts[0].removeprefix("ctmdb.").isdigit():
            return None
        episode = _parse_episode(parts[1:])
        if episode is None:
            return None
        return StreamRequest(ct, parts[0], season=episode[0], episode=episode[1])

    if raw_id.startswith("tmdb:"):
        parts = raw_id.split(":")
        media_id = f"tmdb:{parts[1]}" if len(parts) > 1 and parts[1] else None
        extra = parts[2:]
    elif raw_id.startswith("tt"):
        parts = raw_id.split(":")
        media_id = parts[0]
        extra = parts[1:]
    else:
        return None

    if media_id is None:
        return None
    if ct == "series" and len(extra) == 2:
        episode = _parse_episode(extra)
        if episode is None:
            return None
        return StreamRequest(ct, media_id, season=episode[0], episode=episode[1])
    return StreamRequest(ct, media_id)


def _trackers(magnet_uri: str | None) -> list[str]:
    if not magnet_uri:
        return []
    params = parse_qs(urlparse(magnet_uri).query)
    return [f"tracker:{tr}" for tr in params.get("tr", [])]


def _format_stremio_stream(
    candidate: StreamCandidate, base_url: str
) -> dict[str, Any] | None:
    """Convert a StreamCandidate to Stremio's stream JSON."""
    stream: dict[str, Any] = {
        "name": candidate.display_name,
        "description": candidate.description,
    }
    hints: dict[str, Any] = {"filename": candidate.name}
    if candidate.size_bytes is not None:
        hints["videoSize"] = candidate.size_bytes
    if candidate.binge_group:
        hints["bingeGroup"] = candidate.binge_group

    if candidate.direct_url and candidate.needs_extraction:
        stream["url"] = f"{base_url}/play?url={quote(candidate.direct_url, safe='')}"
        hints["notWebReady"] = True
    elif candidate.direct_url:
        stream["url"] = candidate.direct_url
    elif candidate.info_hash:
        stream["infoHash"] = candidate.info_hash
        sources = _trackers(candidate.magnet_uri)
        if sources:
            stream["sources"] = sources
    else:
        return None

    stream["behaviorHints"] = hints
    return stream


@router.get("/manifest.json")
async def stremio_manifest(request: Request) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return JSONResponse(
        content=_build_manifest(list(state.config.providers.enabled)),
        headers=_CORS_HEADERS,
    )


@router.get("/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams for a movie, episode, or collection item."""
    state = cast(AppState, request.app.state)

    parsed = _parse_stream_id(content_type, stream_id)
    if parsed is None:
        log.info("stremio_stream_id_unsupported", content_type=content_type, id=stream_id)
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    use_case = state.stream_search_uc
    if use_case is None:
        log.warning("stremio_stream_unavailable", reason=state.config_error)
        return JSONResponse(
            content={"streams": [], "error": state.config_error},
            status_code=503,
            headers=_CORS_HEADERS,
        )

    log.info(
        "stremio_stream_request",
        media_id=parsed.media_id,
        content_type=parsed.content_type,
        season=parsed.season,
        episode=parsed.episode,
    )
    try:
        candidates = await use_case.search(parsed)
    except InvalidQueryError as exc:
        log.info("stremio_stream_invalid_query", media_id=parsed.media_id, error=str(exc))
        return JSONResponse(
            content={"streams": []}, status_code=400, headers=_CORS_HEADERS
        )
    except ConfigError as exc:
        log.error("stremio_stream_config_error", media_id=parsed.media_id, error=str(exc))
        return JSONResponse(
            content={"streams": []}, status_code=503, headers=_CORS_HEADERS
        )

    base_url = str(request.base_url).rstrip("/")
    streams = [
        s
        for s in (_format_stremio_stream(c, base_url) for c in candidates)
        if s is not None
    ]
    return JSONResponse(content={"streams": streams}, headers=_CORS_HEADERS)


@router.get("/play")
async def play(request: Request, url: str = Query(...)) -> Response:
    """Resolve an embed page at playback time and redirect to the media URL."""
    state = cast(AppState, request.app.state)
    stream = await state.extractor_chain.resolve(url)
    if stream is None:
        log.info("play_unresolved", url=url)
        return JSONResponse(
            content={"error": "stream not resolvable"},
            status_code=404,
            headers=_CORS_HEADERS,
        )
    return RedirectResponse(stream.direct_url, status_code=302, headers=_CORS_HEADERS)
