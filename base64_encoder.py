"""
Encoders that turn downloaded image bytes into ``data:`` URIs.

Two strategies exist because the two host runtimes expose different
primitives for reading binary payloads into text: a regular interpreter can
base64-encode a buffer directly, while Pyodide running in a browser goes
through the platform ``FileReader``.
"""

import asyncio
import base64
from abc import ABC, abstractmethod
import logging
from typing import Any, Callable, Optional

from archive_errors import ArchiveError, EncodingFailure, InvalidDataUriError
from archiver_options import RuntimeMode


class DataUri(str):
    """A string guaranteed to start with ``data:``."""

    PREFIX = "data:"

    def __new__(cls, value: str, url: Optional[str] = None):
        if not isinstance(value, str) or not value.startswith(cls.PREFIX):
            raise InvalidDataUriError(str(value), url)
        return super().__new__(cls, value)

    @classmethod
    def is_data_uri(cls, value: str) -> bool:
        return isinstance(value, str) and value.startswith(cls.PREFIX)


# 48x48 PNG substituted for images that could not be retrieved.
FALLBACK_IMAGE_DATA_URI = DataUri(
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAADAAAAAwCAYAAABXAvmHAAAACXBIWXMAAAsTAAALEwEAmpwY"
    "AAADN0lEQVR4nO2Y3U9SYRzH+T/qstq6sYv+gmKkKaAmaLalazJNjdNoikAo0PSyteWFF3mR"
    "lk0Kp64ZDGsElq/LeLtpxYbrwoZ4lq04cG5+7XnwIfDEi43ToTy/7bs9nPNs5/N5Xsb2k0jE"
    "EkssscQqdzVq9cebKNMzldb0TUWZQNBoMcPMJcp8snR4rXFXcHAqN4hJrTMdKyqAV54ygW10"
    "HCLRLaBpWtBEoltgHX1AROxFBcixqQR4OksC7wJl+lpcYH/LhIamD4RwHV2B0y8SfzW0KED/"
    "Zzug8CVA4WPgvIeBKtfvP4qeo/dortzHgLTAXJTrKwH4EhuG7Z1h6FwJ8itQv8RkQuCQkNzL"
    "wDkPA2fdaejseWRulZMLf8aVgFh8GGBPjxOLj+TM41XgsKnzpkUOysazBHbiI+kF8aV3sKIE"
    "8sXmD2IJBI/G2e94FVB6PoNsSgOyJxo85kOO5k3Al4AL9j6QPqzGaXDcAksoCcYAC+1ryRyI"
    "lmUGdO9TMBRiYSiUAt1mCprfCiRgCLBgCbPQ7p7OwJNoXk2DLcyCNcxiyMFQCsxBBM3i59lB"
    "Ih3rSRjwp8X0gRS0rf4Sb1tl8LuyC6CP6zc+gWxSwRGQTcqhf/0DB/YwsYRZvEjkd9kFLMEf"
    "oLR3ceBJFHYNDIW+c8Bu+7dBvdALqoUbeFyqEF1ugTbnWF54knbnWC5IKAVXXGaQzzbgtLqM"
    "YA0nhRGQTtQUFUBzdMsbGYjuJUcGnqT7jYN7LwIx6PXYoMdzB4/5ESgGv5/aqVYY9O+CYTMC"
    "ynk1R0A5p4aBdx9zdknrvQediz04Wu9dvEuCCaA0z1tBvXCTA0+C7oNl/770r7ky8CR9ay5h"
    "BVBqniryCqBoXo+D2R+FrpcURwA9E1wA3Ye6mfr8EnON0LE4wIEnEV4A/T88vlhwF+rnmkDj"
    "7q5cAXyUpuUFJVTPL1e2gHSiGmodyoISV53XKlgAHaVHNSCfzX8flOg+uLv4FRA6qiMj0EQZ"
    "9/711uIMmowaqpUgEYlugeV+urmLGs9FBVp6DadUlCnOd7v8z9rrhhOSUgr14VErmxwnQcEp"
    "4x5a+ZLhxRJLLLHEkhyifgJu5rlgZTGQ8gAAAABJRU5ErkJggg=="
)


class DataUriEncoder(ABC):
    """Abstract base class for turning bytes into a data URI."""

    @abstractmethod
    async def encode(self, data: bytes, content_type: str, url: str = "") -> DataUri:
        """
        Encode binary data as a data URI.

        Args:
            data: The image bytes
            content_type: MIME type placed in the URI
            url: Where the bytes came from, used in error messages

        Returns:
            DataUri: The encoded image

        Raises:
            EncodingFailure: If no usable encoding could be produced
        """


class Base64DataUriEncoder(DataUriEncoder):
    """Encodes bytes directly with :mod:`base64`."""

    @staticmethod
    def encode_bytes(data: bytes) -> str:
        return base64.b64encode(data).decode('ascii')

    async def encode(self, data: bytes, content_type: str, url: str = "") -> DataUri:
        return DataUri(f"data:{content_type};base64,{self.encode_bytes(data)}", url)


class PyodideFileReaderBinding:
    """Access to the browser's ``FileReader`` and ``Blob`` from Pyodide."""

    def __init__(self):
        try:
            from js import Blob, FileReader, Object
            from pyodide.ffi import create_proxy, to_js
        except ImportError as e:
            raise ArchiveError(
                "The browser runtime mode is only available when running under Pyodide"
            ) from e
        self._blob = Blob
        self._file_reader = FileReader
        self._object = Object
        self._create_proxy = create_proxy
        self._to_js = to_js

    def new_reader(self) -> Any:
        return self._file_reader.new()

    def new_blob(self, data: bytes, content_type: str) -> Any:
        options = self._to_js({"type": content_type}, dict_converter=self._object.fromEntries)
        return self._blob.new(self._to_js([data]), options)

    def create_proxy(self, callback: Callable[[Any], None]) -> Any:
        return self._create_proxy(callback)

    def destroy_proxy(self, proxy: Any) -> None:
        proxy.destroy()


class FileReaderDataUriEncoder(DataUriEncoder):
    """
    Encodes bytes with the platform ``FileReader.readAsDataURL``.

    The reader reports its outcome through ``load``/``error`` events rather
    than a return value, so the listeners resolve an asyncio future. They are
    removed again on every exit path so repeated runs do not pile up
    callbacks on the page.
    """

    def __init__(self, binding: Any = None):
        self.logger = logging.getLogger(__name__)
        self._binding = binding

    @property
    def binding(self) -> Any:
        if self._binding is None:
            self._binding = PyodideFileReaderBinding()
        return self._binding

    async def encode(self, data: bytes, content_type: str, url: str = "") -> DataUri:
        binding = self.binding
        loop = asyncio.get_running_loop()
        outcome = loop.create_future()
        reader = binding.new_reader()

        def on_load(event):
            if outcome.done():
                return
            result = reader.result
            if not result:
                outcome.set_exception(EncodingFailure(url, "the reader result was empty"))
            else:
                outcome.set_result(str(result))

        def on_error(event):
            if outcome.done():
                return
            outcome.set_exception(EncodingFailure(url, f"the reader reported an error: {reader.error}"))

        load_listener = binding.create_proxy(on_load)
        error_listener = binding.create_proxy(on_error)
        reader.addEventListener("load", load_listener)
        reader.addEventListener("error", error_listener)
        try:
            try:
                reader.readAsDataURL(binding.new_blob(data, content_type))
            except Exception as e:
                raise EncodingFailure(url, str(e)) from e
            result = await outcome
        finally:
            reader.removeEventListener("load", load_listener)
            reader.removeEventListener("error", error_listener)
            binding.destroy_proxy(load_listener)
            binding.destroy_proxy(error_listener)

        self.logger.debug(f"FileReader produced {len(result)} characters for {url}")
        return DataUri(result, url)


def create_encoder(runtime_mode: RuntimeMode, binding: Any = None) -> DataUriEncoder:
    """
    Factory function picking the encoder for a runtime.

    Args:
        runtime_mode: The host runtime
        binding: FileReader binding for the browser strategy (Pyodide's by default)

    Returns:
        DataUriEncoder: The strategy to use for the whole run
    """
    if runtime_mode is RuntimeMode.BROWSER:
        return FileReaderDataUriEncoder(binding)
    return Base64DataUriEncoder()
