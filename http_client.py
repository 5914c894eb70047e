"""
Byte sources for downloading images from URLs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Optional

import httpx

from archive_errors import (
    BodyReadFailure,
    MissingContentTypeFailure,
    ResponseStatusFailure,
    TransportFailure,
)


@dataclass(frozen=True)
class FetchedImage:
    """Raw bytes of an image and the MIME type the server declared for them."""
    data: bytes
    content_type: str


def normalize_content_type(value: str) -> str:
    """
    Tidy a Content-Type header value for use inside a data URI.

    Parameters are kept but the whitespace around ``;`` is dropped, since a
    data URI may not contain spaces.
    """
    parts = [part.strip() for part in value.split(";")]
    return ";".join(part for part in parts if part)


class ByteSource(ABC):
    """Abstract base class for fetching the bytes behind a URL."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedImage:
        """
        Fetch the bytes and content type of a URL.

        Args:
            url: The absolute URL to download

        Returns:
            FetchedImage: The downloaded bytes and their MIME type

        Raises:
            FetchImageError: One of its subclasses, naming the cause
        """


class HttpxByteSource(ByteSource):
    """Implementation of ByteSource using an ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient):
        self.logger = logging.getLogger(__name__)
        self.client = client

    async def fetch(self, url: str) -> FetchedImage:
        self.logger.debug(f"Downloading from URL: {url}")
        try:
            async with self.client.stream("GET", url) as response:
                if not response.is_success:
                    # Release the connection before giving up on the body.
                    await response.aclose()
                    self.logger.debug(f"Failed to download: {url} - Status code: {response.status_code}")
                    raise ResponseStatusFailure(url, response.status_code)

                content_type = normalize_content_type(response.headers.get("content-type", ""))
                if not content_type:
                    await response.aclose()
                    raise MissingContentTypeFailure(url)

                try:
                    data = await response.aread()
                except (httpx.HTTPError, httpx.StreamError) as e:
                    raise BodyReadFailure(url, str(e) or type(e).__name__) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportFailure(url, str(e) or type(e).__name__) from e

        self.logger.debug(f"Download successful: {url} - Size: {len(data)} bytes")
        return FetchedImage(data=data, content_type=content_type)


def create_http_client(
    timeout: float = 30.0,
    user_agent: str = "",
    follow_redirects: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Factory function to create the async HTTP client used for one archive run.

    Args:
        timeout: Timeout in seconds applied to connect, read, write and pool
        user_agent: Value of the User-Agent header (omitted when empty)
        follow_redirects: Whether redirects are followed
        transport: Optional transport, mostly for tests

    Returns:
        httpx.AsyncClient: A client the caller must close
    """
    headers = {"User-Agent": user_agent} if user_agent else None
    return httpx.AsyncClient(
        timeout=timeout,
        headers=headers,
        follow_redirects=follow_redirects,
        transport=transport,
    )
