"""Tests for the httpx byte source."""

import httpx
import pytest

from archive_errors import (
    BodyReadFailure,
    FetchImageError,
    MissingContentTypeFailure,
    ResponseStatusFailure,
    TransportFailure,
)
from http_client import FetchedImage, HttpxByteSource, create_http_client, normalize_content_type


class TrackingStream(httpx.AsyncByteStream):
    """Body stream that remembers whether it was closed."""

    def __init__(self, chunks=(b"body",)):
        self.chunks = list(chunks)
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class FailingStream(httpx.AsyncByteStream):
    """Body stream that breaks half way through."""

    async def __aiter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset while reading")


class TestHttpxByteSource:
    """Tests for HttpxByteSource."""

    @pytest.mark.asyncio
    async def test_fetch_returns_bytes_and_content_type(self, make_transport, png_bytes) -> None:
        transport = make_transport({
            "/ok.png": httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"}),
        })
        async with create_http_client(transport=transport) as client:
            fetched = await HttpxByteSource(client).fetch("https://example.test/ok.png")

        assert fetched == FetchedImage(png_bytes, "image/png")

    @pytest.mark.asyncio
    async def test_non_success_status_raises_and_closes_body(self, make_transport) -> None:
        stream = TrackingStream()
        transport = make_transport({"/missing.jpg": httpx.Response(404, stream=stream)})

        async with create_http_client(transport=transport) as client:
            with pytest.raises(ResponseStatusFailure) as exc_info:
                await HttpxByteSource(client).fetch("https://example.test/missing.jpg")

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == "https://example.test/missing.jpg"
        assert "404" in str(exc_info.value)
        assert stream.closed

    @pytest.mark.asyncio
    async def test_server_error_is_a_status_failure(self, make_transport) -> None:
        transport = make_transport({"/boom.png": httpx.Response(500, content=b"")})
        async with create_http_client(transport=transport) as client:
            with pytest.raises(ResponseStatusFailure):
                await HttpxByteSource(client).fetch("https://example.test/boom.png")

    @pytest.mark.asyncio
    async def test_missing_content_type(self, make_transport) -> None:
        transport = make_transport({"/untyped": httpx.Response(200, content=b"\x89PNG")})
        async with create_http_client(transport=transport) as client:
            with pytest.raises(MissingContentTypeFailure) as exc_info:
                await HttpxByteSource(client).fetch("https://example.test/untyped")

        assert exc_info.value.url == "https://example.test/untyped"

    @pytest.mark.asyncio
    async def test_blank_content_type_counts_as_missing(self, make_transport) -> None:
        transport = make_transport({
            "/blank": httpx.Response(200, content=b"x", headers={"content-type": "  "}),
        })
        async with create_http_client(transport=transport) as client:
            with pytest.raises(MissingContentTypeFailure):
                await HttpxByteSource(client).fetch("https://example.test/blank")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        async with create_http_client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportFailure) as exc_info:
                await HttpxByteSource(client).fetch("https://unreachable.test/a.png")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert "name resolution failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_a_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with create_http_client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportFailure):
                await HttpxByteSource(client).fetch("https://slow.test/a.png")

    @pytest.mark.asyncio
    async def test_body_read_failure(self, make_transport) -> None:
        transport = make_transport({
            "/broken.png": httpx.Response(200, headers={"content-type": "image/png"}, stream=FailingStream()),
        })
        async with create_http_client(transport=transport) as client:
            with pytest.raises(BodyReadFailure) as exc_info:
                await HttpxByteSource(client).fetch("https://example.test/broken.png")

        assert "connection reset" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failures_share_a_base_class(self, make_transport) -> None:
        transport = make_transport({})
        async with create_http_client(transport=transport) as client:
            with pytest.raises(FetchImageError):
                await HttpxByteSource(client).fetch("https://example.test/nothing")

    @pytest.mark.asyncio
    async def test_user_agent_is_sent(self, make_transport, png_bytes) -> None:
        transport = make_transport({
            "/ok.png": httpx.Response(200, content=png_bytes, headers={"content-type": "image/png"}),
        })
        async with create_http_client(user_agent="archiver-test/1.0", transport=transport) as client:
            await HttpxByteSource(client).fetch("https://example.test/ok.png")

        assert transport.requests[0].headers["user-agent"] == "archiver-test/1.0"


class TestNormalizeContentType:
    """Tests for normalize_content_type."""

    def test_plain_type_unchanged(self) -> None:
        assert normalize_content_type("image/jpeg") == "image/jpeg"

    def test_parameters_lose_whitespace(self) -> None:
        assert normalize_content_type("image/svg+xml; charset=utf-8") == "image/svg+xml;charset=utf-8"

    def test_empty(self) -> None:
        assert normalize_content_type(" ; ") == ""
