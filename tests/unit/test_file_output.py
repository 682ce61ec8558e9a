"""
Unit tests for FileOutput memoized downloads.
"""
from __future__ import annotations

import asyncio

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from synexa.exceptions import FileFetchError
from synexa.file_output import FileOutput, fetch_url, looks_like_url
from synexa.schemas import FetchedFile


URL = "https://host/file.png"


class TestLooksLikeUrl:

    @pytest.mark.parametrize("value", ["https://host/file.png", "http://host/a.txt"])
    def test_http_urls(self, value):
        assert looks_like_url(value)

    @pytest.mark.parametrize("value", ["hello", "ftp://host/x", "httpish text", ""])
    def test_plain_strings(self, value):
        assert not looks_like_url(value)


class TestFileOutput:
    """Lazy, fetch-once semantics."""

    def test_url_returned_exactly(self):
        assert FileOutput(URL).url() == URL
        assert str(FileOutput(URL)) == URL

    def test_construction_does_not_fetch(self):
        fetcher = AsyncMock()
        FileOutput(URL, fetcher=fetcher)
        fetcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_fetches_once(self):
        fetcher = AsyncMock(return_value=FetchedFile(content=b"abc", content_type="image/png"))
        output = FileOutput(URL, fetcher=fetcher)

        assert await output.read() == b"abc"
        assert await output.read() == b"abc"
        assert await output.content_type() == "image/png"

        fetcher.assert_awaited_once_with(URL)

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_fetch(self):
        """N concurrent first reads trigger exactly one download."""
        calls = 0
        release = asyncio.Event()

        async def slow_fetch(url: str) -> FetchedFile:
            nonlocal calls
            calls += 1
            await release.wait()
            return FetchedFile(content=b"data")

        output = FileOutput(URL, fetcher=slow_fetch)
        readers = [asyncio.create_task(output.read()) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(*readers)

        assert results == [b"data"] * 5
        assert calls == 1

    @pytest.mark.asyncio
    async def test_failure_is_memoized(self):
        """A failed download is not retried; later reads see the same error."""
        fetcher = AsyncMock(side_effect=RuntimeError("connection reset"))
        output = FileOutput(URL, fetcher=fetcher)

        with pytest.raises(FileFetchError) as first:
            await output.read()
        with pytest.raises(FileFetchError) as second:
            await output.read()

        assert first.value is second.value
        assert "connection reset" in str(first.value)
        assert first.value.url == URL
        fetcher.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancelled_reader_does_not_cancel_fetch(self):
        release = asyncio.Event()

        async def slow_fetch(url: str) -> FetchedFile:
            await release.wait()
            return FetchedFile(content=b"data")

        output = FileOutput(URL, fetcher=slow_fetch)
        first = asyncio.create_task(output.read())
        await asyncio.sleep(0)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await output.read() == b"data"

    @pytest.mark.asyncio
    async def test_async_iteration_chunks(self):
        fetcher = AsyncMock(return_value=FetchedFile(content=b"abcdefg"))
        output = FileOutput(URL, fetcher=fetcher)

        chunks = [chunk async for chunk in output.iter_bytes(chunk_size=3)]

        assert chunks == [b"abc", b"def", b"g"]
        assert b"".join([chunk async for chunk in output]) == b"abcdefg"
        fetcher.assert_awaited_once()

    def test_equality_by_url(self):
        assert FileOutput(URL) == FileOutput(URL)
        assert FileOutput(URL) != FileOutput("https://host/other.png")
        assert len({FileOutput(URL), FileOutput(URL)}) == 1


class TestFetchUrl:
    """Default httpx-based downloader."""

    @staticmethod
    def _patched_client(handler):
        transport = httpx.MockTransport(handler)
        real_client = httpx.AsyncClient

        def factory(*args, **kwargs):
            kwargs["transport"] = transport
            return real_client(*args, **kwargs)

        return patch("synexa.file_output.httpx.AsyncClient", side_effect=factory)

    @pytest.mark.asyncio
    async def test_returns_bytes_and_content_type(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "x-api-key" not in request.headers
            return httpx.Response(200, content=b"PNG", headers={"content-type": "image/png"})

        with self._patched_client(handler):
            fetched = await fetch_url(URL)

        assert fetched.content == b"PNG"
        assert fetched.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"missing")

        with self._patched_client(handler):
            with pytest.raises(FileFetchError) as exc_info:
                await fetch_url(URL)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self._patched_client(handler):
            with pytest.raises(FileFetchError, match="refused"):
                await fetch_url(URL)
