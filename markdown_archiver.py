#!/usr/bin/env python3
"""
Markdown Archiver - makes markdown documents self-contained by embedding
every referenced image as a base64 encoded data URI.

Usable as a library (``archive`` / ``archive_sync`` / ``MarkdownArchiver``)
or from the command line (``markdown-archiver``).
"""

import asyncio
import logging
import sys
from typing import List, Optional

import httpx

from archive_errors import ArchiveError
from archiver_options import ArchiverOptions
from base64_encoder import DataUriEncoder, create_encoder
from cli_parser import CommandLineParser
from http_client import ByteSource, HttpxByteSource, create_http_client
from image_embedder import EmbeddingReport, ImageEmbedder
from logger_setup import LoggerSetup
from markdown_processor import MarkdownDocument
from utils import read_stdin_or_file, write_stdout_or_file

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


class MarkdownArchiver:
    """Wires parser, byte source, encoder and embedder together."""

    def __init__(
        self,
        options: Optional[ArchiverOptions] = None,
        byte_source: Optional[ByteSource] = None,
        encoder: Optional[DataUriEncoder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the MarkdownArchiver.

        The runtime mode is resolved here, once, and decides the encoder for
        every image this archiver will ever process.

        Args:
            options: Settings for the run (defaults if omitted)
            byte_source: Custom byte source; an httpx one is created per run if omitted
            encoder: Custom encoder; chosen from the runtime mode if omitted
            transport: httpx transport for the default byte source
        """
        self.options = options or ArchiverOptions()
        self.runtime_mode = self.options.resolve_runtime_mode()
        self.encoder = encoder or create_encoder(self.runtime_mode)
        self.byte_source = byte_source
        self.transport = transport
        self.last_report: Optional[EmbeddingReport] = None

    async def archive(self, markdown: str) -> str:
        """
        Embed all images of a markdown text.

        Args:
            markdown: The input markdown

        Returns:
            str: The markdown with data URIs in place of image URLs

        Raises:
            FetchImageError: Under the propagating policy, the first image failure
        """
        document = MarkdownDocument.parse(markdown)
        logger.debug(f"Parsed {len(document.tokens)} top-level blocks ({self.runtime_mode.value} runtime)")

        if self.byte_source is not None:
            self.last_report = await self._embed(document, self.byte_source)
        else:
            async with create_http_client(
                timeout=self.options.timeout,
                user_agent=self.options.user_agent,
                follow_redirects=self.options.follow_redirects,
                transport=self.transport,
            ) as client:
                self.last_report = await self._embed(document, HttpxByteSource(client))

        return document.serialize()

    async def _embed(self, document: MarkdownDocument, byte_source: ByteSource) -> EmbeddingReport:
        embedder = ImageEmbedder(
            byte_source,
            self.encoder,
            failure_policy=self.options.failure_policy,
            max_concurrency=self.options.max_concurrency,
        )
        return await embedder.embed(document)


async def archive(markdown: str, options: Optional[ArchiverOptions] = None, **kwargs) -> str:
    """
    Take markdown contents and make them self-contained by embedding images.

    Args:
        markdown: The markdown to archive
        options: Settings for the run
        **kwargs: Passed on to :class:`MarkdownArchiver` (byte_source, encoder, transport)

    Returns:
        str: The markdown with embedded images
    """
    return await MarkdownArchiver(options, **kwargs).archive(markdown)


def archive_sync(markdown: str, options: Optional[ArchiverOptions] = None, **kwargs) -> str:
    """Blocking variant of :func:`archive` for code without an event loop."""
    return asyncio.run(archive(markdown, options, **kwargs))


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the command line tool.

    Args:
        args: Command line arguments (uses sys.argv[1:] if None)

    Returns:
        int: Exit code
    """
    if args is None:
        args = sys.argv[1:]

    options = CommandLineParser.parse(args)
    LoggerSetup.initialize_logger(options.debug, options.verbose, options.quiet, options.log_file)

    try:
        input_markdown = read_stdin_or_file(options.input_file)
        logger.info(f"Read input from {options.input_file or 'stdin'}")

        output_markdown = archive_sync(input_markdown, options.to_archiver_options())

        write_stdout_or_file(output_markdown, options.output_file)
        logger.info(f"Wrote output to {options.output_file or 'stdout'}")
        return 0
    except (ArchiveError, RuntimeError) as e:
        logger.error(f"Error: {e}")
        if options.debug:
            logger.exception("Stack trace:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
