from __future__ import annotations

import logging
from contextlib import AbstractContextManager, ExitStack, contextmanager
from typing import Iterator, Optional, Protocol

import httpx

from ..errors import NetworkError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Blocking whole-file retrieval; the context manager yields an iterator of byte chunks."""

    def fetch(self, url: str) -> AbstractContextManager[Iterator[bytes]]: ...


class HttpxFetcher:
    """Streams a remote file with httpx, one GET per call and no internal retries."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        chunk_size: int = 1024 * 1024,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._timeout = timeout
        self._chunk_size = max(1, chunk_size)
        self._client = client

    @contextmanager
    def fetch(self, url: str) -> Iterator[Iterator[bytes]]:
        with ExitStack() as stack:
            client = self._client
            if client is None:
                client = stack.enter_context(httpx.Client(timeout=self._timeout, follow_redirects=True))
            try:
                response = stack.enter_context(client.stream("GET", url, follow_redirects=True))
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise NetworkError(f"GET {url} returned HTTP {exc.response.status_code}") from exc
            except httpx.HTTPError as exc:
                raise NetworkError(f"GET {url} failed: {exc}") from exc

            logger.debug(
                "model.fetch.started",
                extra={"url": url, "contentLength": response.headers.get("Content-Length")},
            )
            yield self._chunks(response, url)

    def _chunks(self, response: httpx.Response, url: str) -> Iterator[bytes]:
        try:
            yield from response.iter_bytes(chunk_size=self._chunk_size)
        except httpx.HTTPError as exc:
            raise NetworkError(f"download of {url} interrupted: {exc}") from exc


__all__ = ["Fetcher", "HttpxFetcher"]
