"""Ordered fallback chain over embed extractors."""

from __future__ import annotations

import asyncio
import ipaddress
from collections.abc import Iterable
from urllib.parse import urlparse

import httpx
import structlog

from streamfuse.domain.entities.streams import ExtractedStream
from streamfuse.domain.exceptions import ExtractorFailure, ExtractorUnsupported
from streamfuse.domain.ports.extractor import ExtractorPort

log = structlog.get_logger(__name__)


def extract_domain(url: str) -> str:
    """Second-level domain of *url* ("vixcloud" for https://vixcloud.co/embed/1).

    Returns "" when the URL cannot be parsed or has fewer than two
    hostname segments.
    """
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return ""
    parts = hostname.split(".")
    return parts[-2] if len(parts) >= 2 else ""


def is_fetchable_url(url: str) -> bool:
    """True for http(s) URLs whose host is a public name or address.

    Loopback, private, link-local and reserved IP literals are refused, as
    are ``localhost`` names and URLs that cannot be parsed.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not hostname:
        return False
    hostname = hostname.rstrip(".").lower()
    if hostname == "localhost" or hostname.endswith(".localhost"):
        return False
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return True
    return address.is_global


class ExtractorChain:
    """Tries extractors in registration order; first non-None result wins.

    An extractor that does not recognize the URL is skipped silently. One
    that fails (network error, broken page, timeout) is logged and the
    chain moves on. resolve() itself never raises, except for cancellation.

    When no extractor recognizes the URL, redirects are followed once and
    the chain is retried against the final URL (link shorteners and
    "protector" pages).

    URLs that fail is_fetchable_url(), before or after a redirect, resolve
    to None without any request being made for them.
    """

    def __init__(
        self,
        extractors: Iterable[ExtractorPort] = (),
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._extractors: list[ExtractorPort] = []
        self._http_client = http_client
        self._timeout = timeout
        for extractor in extractors:
            self.register(extractor)

    def register(self, extractor: ExtractorPort) -> None:
        self._extractors.append(extractor)
        log.debug("extractor_registered", extractor=extractor.name)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self._extractors]

    def _candidates(self, url: str) -> list[ExtractorPort]:
        handlers: list[ExtractorPort] = []
        for extractor in self._extractors:
            try:
                if extractor.can_handle(url):
                    handlers.append(extractor)
            except Exception:
                log.exception("extractor_can_handle_error", extractor=extractor.name, url=url)
        return handlers

    async def resolve(self, embed_url: str) -> ExtractedStream | None:
        """Resolve *embed_url* to a direct URL, or None when nothing works."""
        if not is_fetchable_url(embed_url):
            log.info("extractor_url_refused", url=embed_url)
            return None

        handlers = self._candidates(embed_url)
        if not handlers:
            final_url = await self._follow_redirects(embed_url)
            if final_url is None:
                log.info("extractor_no_handler", url=embed_url)
                return None
            embed_url = final_url
            handlers = self._candidates(embed_url)

        for extractor in handlers:
            result = await self._try_extractor(extractor, embed_url)
            if result is not None:
                return result

        log.info("extractor_chain_exhausted", url=embed_url, tried=len(handlers))
        return None

    async def resolve_many(
        self, urls: Iterable[str], limit: int
    ) -> dict[str, ExtractedStream | None]:
        """Resolve several URLs concurrently, at most *limit* at a time."""
        unique = list(dict.fromkeys(urls))
        semaphore = asyncio.Semaphore(limit)

        async def _bounded(url: str) -> ExtractedStream | None:
            async with semaphore:
                return await self.resolve(url)

        results = await asyncio.gather(*(_bounded(u) for u in unique))
        return dict(zip(unique, results))

    async def _try_extractor(
        self, extractor: ExtractorPort, url: str
    ) -> ExtractedStream | None:
        """Run one extractor under its own timeout, absorbing failures."""
        try:
            result = await asyncio.wait_for(extractor.resolve(url), timeout=self._timeout)
        except ExtractorUnsupported:
            log.debug("extractor_declined", extractor=extractor.name, url=url)
            return None
        except ExtractorFailure as exc:
            log.warning(
                "extractor_failed", extractor=extractor.name, url=url, error=str(exc)
            )
            return None
        except (TimeoutError, httpx.TimeoutException):
            log.warning(
                "extractor_timeout", extractor=extractor.name, url=url, timeout=self._timeout
            )
            return None
        except httpx.HTTPError as exc:
            log.warning(
                "extractor_http_error", extractor=extractor.name, url=url, error=str(exc)
            )
            return None
        except Exception:
            log.exception("extractor_error", extractor=extractor.name, url=url)
            return None

        if result is None:
            log.warning("extractor_no_result", extractor=extractor.name, url=url)
            return None
        log.info("extractor_success", extractor=extractor.name, expires_at=result.expires_at)
        return result

    async def _follow_redirects(self, url: str) -> str | None:
        """Final URL after redirects, or None if unchanged or unreachable."""
        if self._http_client is None:
            return None
        try:
            resp = await self._http_client.head(
                url, follow_redirects=True, timeout=self._timeout
            )
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            log.debug("extractor_redirect_http_error", url=url, error=str(exc))
            return None
        final_url = str(resp.url)
        if final_url == url:
            return None
        if not is_fetchable_url(final_url):
            log.info("extractor_redirect_refused", original=url, final=final_url)
            return None
        log.debug("extractor_redirect_followed", original=url, final=final_url)
        return final_url
