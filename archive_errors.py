"""
Exception types raised while archiving markdown documents.
"""

from typing import Optional


class ArchiveError(Exception):
    """Base class for all errors raised by the archiver."""


class FetchImageError(ArchiveError):
    """
    An image could not be turned into a data URI.

    Every subclass carries the URL of the image so a caller can tell which
    reference failed.
    """

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class TransportFailure(FetchImageError):
    """The URL could not be reached (connection, DNS, timeout...)."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, f"Failed to fetch image at {url}: {reason}")


class ResponseStatusFailure(FetchImageError):
    """The server answered with a non-success status."""

    def __init__(self, url: str, status_code: int):
        super().__init__(
            url,
            f"Failed to fetch image at {url} as the server responded "
            f"with a status code of {status_code}.",
        )
        self.status_code = status_code


class MissingContentTypeFailure(FetchImageError):
    """The response did not declare a usable Content-Type."""

    def __init__(self, url: str):
        super().__init__(
            url,
            f"The server didn't answer with a Content-Type header at {url}, "
            "so the MIME type of the image can't be determined.",
        )


class BodyReadFailure(FetchImageError):
    """The response body could not be read into memory."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, f"Failed to read the body of image at {url}: {reason}")


class EncodingFailure(FetchImageError):
    """The encoder could not produce a data URI from the fetched bytes."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, f"Failed to encode image at {url}: {reason}")


class InvalidDataUriError(ArchiveError, ValueError):
    """A string that does not start with ``data:`` was used as a data URI."""

    def __init__(self, value: str, url: Optional[str] = None):
        preview = value if len(value) <= 40 else value[:40] + "..."
        super().__init__(f"Expected a data URI, but got {preview!r}")
        self.value = value
        self.url = url
