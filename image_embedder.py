"""
Concurrent embedding of every image of a markdown document.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from archive_errors import EncodingFailure, FetchImageError, InvalidDataUriError
from archiver_options import FailurePolicy
from base64_encoder import FALLBACK_IMAGE_DATA_URI, DataUri, DataUriEncoder
from http_client import ByteSource
from markdown_processor import ImageReference, ImageReferenceScanner, MarkdownDocument, StructuredImage
from utils import format_file_size


@dataclass
class EmbeddingReport:
    """Statistics for one embedding run."""
    references_found: int = 0
    embedded: int = 0
    preserved: int = 0  # already data URIs, left untouched
    fallbacks: List[Tuple[str, FetchImageError]] = field(default_factory=list)
    encoded_size: int = 0  # characters of data URI written into the document

    @property
    def fallback_urls(self) -> List[str]:
        return [url for url, _ in self.fallbacks]


class ImageEmbedder:
    """
    Replaces every image URL of a document with a data URI.

    Each reference is fetched and encoded in its own task. References point
    at distinct tokens, so the tasks patch the shared tree without locking.
    """

    def __init__(
        self,
        byte_source: ByteSource,
        encoder: DataUriEncoder,
        failure_policy: FailurePolicy = FailurePolicy.FALLBACK,
        max_concurrency: Optional[int] = None,
        scanner: Optional[ImageReferenceScanner] = None,
    ):
        """
        Initialize the ImageEmbedder.

        Args:
            byte_source: Where image bytes are downloaded from
            encoder: Strategy turning bytes into data URIs
            failure_policy: Substitute the placeholder or abort on the first failure
            max_concurrency: Upper bound on simultaneous downloads (None = unbounded)
            scanner: Reference scanner, a default one is created if omitted
        """
        self.logger = logging.getLogger(__name__)
        self.byte_source = byte_source
        self.encoder = encoder
        self.failure_policy = failure_policy
        self.max_concurrency = max_concurrency
        self.scanner = scanner or ImageReferenceScanner()

    async def embed(self, document: MarkdownDocument) -> EmbeddingReport:
        """
        Embed all images of the document in place.

        Args:
            document: The parsed document, mutated by this call

        Returns:
            EmbeddingReport: What happened to each reference

        Raises:
            FetchImageError: Under the propagating policy, the first failure seen
        """
        references = self.scanner.scan(document)
        report = EmbeddingReport(references_found=len(references))
        if not references:
            self._log_processing_results(report)
            return report

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        tasks = [
            asyncio.ensure_future(self._process_reference(reference, report, semaphore))
            for reference in references
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # Stop the siblings so none of them patches the tree after the
            # failure has been handed to the caller.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        self._log_processing_results(report)
        return report

    async def fetch_and_encode(self, url: str) -> DataUri:
        """Download one image and encode it as a data URI."""
        fetched = await self.byte_source.fetch(url)
        encoded = await self.encoder.encode(fetched.data, fetched.content_type, url)
        try:
            return DataUri(encoded, url)
        except InvalidDataUriError as e:
            raise EncodingFailure(url, str(e)) from e

    async def _process_reference(
        self,
        reference: ImageReference,
        report: EmbeddingReport,
        semaphore: Optional[asyncio.Semaphore],
    ) -> None:
        url = reference.url
        if DataUri.is_data_uri(url):
            self.logger.debug("Preserving already embedded image")
            report.preserved += 1
            return

        if isinstance(reference, StructuredImage) and reference.alt_text:
            self.logger.debug(f"Processing image: {url} (alt: {reference.alt_text})")
        else:
            self.logger.debug(f"Processing image: {url}")
        try:
            if semaphore is None:
                data_uri = await self.fetch_and_encode(url)
            else:
                async with semaphore:
                    data_uri = await self.fetch_and_encode(url)
        except FetchImageError as e:
            if self.failure_policy is FailurePolicy.PROPAGATE:
                raise
            self.logger.warning(f"Using fallback image for {url}: {e}")
            report.fallbacks.append((url, e))
            reference.apply(FALLBACK_IMAGE_DATA_URI)
            return

        reference.apply(data_uri)
        report.embedded += 1
        report.encoded_size += len(data_uri)
        self.logger.debug(f"Embedded {url} ({format_file_size(len(data_uri))})")

    def _log_processing_results(self, report: EmbeddingReport) -> None:
        if report.references_found == 0:
            self.logger.info("No images found.")
            return

        self.logger.info(
            f"Images found: {report.references_found}, embedded: {report.embedded}, "
            f"already embedded: {report.preserved}, fallbacks: {len(report.fallbacks)}, "
            f"encoded size: {format_file_size(report.encoded_size)}"
        )
        for url in report.fallback_urls:
            self.logger.info(f"  not embedded: {url}")
