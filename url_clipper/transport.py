"""HTTP transport used for page and image fetches."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional, Protocol

import requests

from .config import USER_AGENT
from .errors import TransportError
from .models import FetchResponse

logger = logging.getLogger("url_clipper")

IMAGE_REQUEST_HEADERS = {"User-Agent": USER_AGENT, "Accept": "*/*"}


class Transport(Protocol):
    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        """Return status and body; raise ``TransportError`` when no response arrives."""
        ...


class RequestsTransport:
    """Transport backed by a ``requests.Session``, run off the event loop."""

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()

    def _fetch_blocking(
        self,
        url: str,
        method: str,
        headers: Optional[Mapping[str, str]],
    ) -> FetchResponse:
        try:
            resp = self._session.request(
                method, url, headers=dict(headers or {}), timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> HTTP %d (%d bytes)", method, url, resp.status_code, len(resp.content))
        encoding = resp.encoding
        if encoding is None or encoding.lower() == "iso-8859-1":
            # requests falls back to latin-1 for text/* without a charset.
            encoding = resp.apparent_encoding or encoding
        return FetchResponse(
            url=resp.url or url,
            status=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers),
            encoding=encoding,
        )

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        return await asyncio.to_thread(self._fetch_blocking, url, method, headers)

    def close(self) -> None:
        self._session.close()
