"""
Lazy handles to files produced by predictions.

A FileOutput wraps the URL of a remotely stored output. Nothing is downloaded
until read() (or content_type(), or iteration) is first awaited. The download
runs at most once per FileOutput; every later or concurrent caller gets the
same bytes, or the same FileFetchError if the download failed.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional

import httpx

from synexa.exceptions import FileFetchError
from synexa.infra.logging import get_logger
from synexa.infra.settings import get_settings
from synexa.schemas import FetchedFile

logger = get_logger(__name__)

Fetcher = Callable[[str], Awaitable[FetchedFile]]

DEFAULT_CHUNK_SIZE = 64 * 1024


def looks_like_url(value: str) -> bool:
    """True if an output string should be wrapped in a FileOutput."""
    return value.startswith(("http://", "https://"))


async def fetch_url(url: str) -> FetchedFile:
    """
    Download ``url`` without API credentials.

    Args:
        url: File URL returned by the API

    Returns:
        FetchedFile with the body and its content type

    Raises:
        FileFetchError: On any transport failure or non-2xx response
    """
    timeout = get_settings().SYNEXA_FILE_FETCH_TIMEOUT_SECONDS
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FileFetchError(
            f"Failed to fetch file: {e}",
            url=url,
            original_error=e,
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise FileFetchError(
            f"Failed to fetch file: {e}",
            url=url,
            original_error=e,
        ) from e

    return FetchedFile(
        content=response.content,
        content_type=response.headers.get("content-type"),
    )


class FileOutput:
    """
    Handle to one remote output file.

    Usage:
        output = FileOutput("https://host/file.png")
        data = await output.read()
    """

    def __init__(self, url: str, fetcher: Optional[Fetcher] = None):
        """
        Args:
            url: Output URL
            fetcher: Coroutine function downloading a URL (default: fetch_url)
        """
        self._url = url
        self._fetcher = fetcher or fetch_url
        self._fetch_task: Optional[asyncio.Task[FetchedFile]] = None

    def url(self) -> str:
        return self._url

    def _fetched(self) -> asyncio.Task[FetchedFile]:
        # No await between the check and the assignment: the first caller
        # creates the task, everyone else sees it.
        if self._fetch_task is None:
            logger.debug("file_output_fetch_started", extra={"url": self._url})
            self._fetch_task = asyncio.ensure_future(self._fetch())
        return self._fetch_task

    async def _fetch(self) -> FetchedFile:
        try:
            return await self._fetcher(self._url)
        except FileFetchError:
            raise
        except Exception as e:
            # Custom fetchers may raise anything; callers only see FileFetchError
            raise FileFetchError(
                f"Failed to fetch file: {e}",
                url=self._url,
                original_error=e,
            ) from e

    async def _get(self) -> FetchedFile:
        # shield: a caller being cancelled must not cancel the shared download
        return await asyncio.shield(self._fetched())

    async def read(self) -> bytes:
        """
        Return the file contents, downloading them on first call.

        Raises:
            FileFetchError: If the (single) download failed
        """
        fetched = await self._get()
        return fetched.content

    async def content_type(self) -> Optional[str]:
        """Content type reported by the file host, if any."""
        fetched = await self._get()
        return fetched.content_type

    async def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the file contents in chunks of at most ``chunk_size`` bytes."""
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        content = await self.read()
        for start in range(0, len(content), chunk_size):
            yield content[start:start + chunk_size]

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_bytes()

    def __str__(self) -> str:
        return self._url

    def __repr__(self) -> str:
        return f"FileOutput({self._url!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileOutput):
            return self._url == other._url
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._url)
