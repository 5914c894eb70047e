"""Shared fixtures for the markdown archiver tests."""

import asyncio
import base64
import io
import logging
from typing import Callable, Dict, List

import httpx
import pytest
from PIL import Image

from archive_errors import ResponseStatusFailure
from http_client import ByteSource, FetchedImage


def create_test_image(width: int = 8, height: int = 8, color: str = "red", fmt: str = "PNG") -> bytes:
    """Create a test image and return it as bytes."""
    img = Image.new("RGB", (width, height), color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def expected_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def mock_transport(routes: Dict[str, httpx.Response]) -> httpx.MockTransport:
    """
    Build a transport answering from a path -> response table.

    Unknown paths get a 404. Every request is recorded on ``transport.requests``.
    """
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        response = routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, content=b"not found", headers={"content-type": "text/plain"})
        return response

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


class StaticByteSource(ByteSource):
    """Answers from a url -> bytes table, optionally after a per-url delay."""

    def __init__(self, images: Dict[str, bytes], content_type: str = "image/png",
                 delays: Dict[str, float] = None):
        self.images = images
        self.content_type = content_type
        self.delays = delays or {}
        self.fetched: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, url: str) -> FetchedImage:
        self.fetched.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0.01))
            if url not in self.images:
                raise ResponseStatusFailure(url, 404)
            return FetchedImage(self.images[url], self.content_type)
        finally:
            self.in_flight -= 1


@pytest.fixture
def png_bytes() -> bytes:
    return create_test_image()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return create_test_image(color="blue", fmt="JPEG")


@pytest.fixture
def make_transport() -> Callable[[Dict[str, httpx.Response]], httpx.MockTransport]:
    return mock_transport


@pytest.fixture
def restore_root_logging():
    """Drop the handlers the CLI's logging setup attaches to the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
