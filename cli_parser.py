"""
Command line argument parser for the markdown archiver.
"""

import argparse
from dataclasses import dataclass
from typing import List, Optional

from archiver_options import DEFAULT_TIMEOUT, ArchiverOptions, FailurePolicy


@dataclass
class CommandLineOptions:
    """Holds the parsed command line options."""
    debug: bool = False
    verbose: bool = False
    quiet: bool = False
    fail_fast: bool = False
    input_file: Optional[str] = None
    output_file: Optional[str] = None
    log_file: Optional[str] = None
    max_concurrency: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT

    def to_archiver_options(self) -> ArchiverOptions:
        return ArchiverOptions(
            failure_policy=FailurePolicy.PROPAGATE if self.fail_fast else FailurePolicy.FALLBACK,
            max_concurrency=self.max_concurrency,
            timeout=self.timeout,
        )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


class CommandLineParser:
    """Parses command line arguments."""

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="markdown-archiver",
            description="Embed every image of a markdown document as a base64 data URI.",
        )
        parser.add_argument(
            "input_file", nargs="?",
            help="Markdown file to archive. Reads from stdin if omitted."
        )
        parser.add_argument(
            "--output-file", "-o", type=str,
            help="Write output to FILE instead of stdout"
        )
        parser.add_argument(
            "--fail-fast", "-f", action="store_true",
            help="Fail on the first image that can't be embedded instead of using a placeholder"
        )
        parser.add_argument(
            "--max-concurrency", "-c", type=_positive_int,
            help="Maximum number of images downloaded at once (default: no limit)"
        )
        parser.add_argument(
            "--timeout", "-t", type=_positive_float, default=DEFAULT_TIMEOUT,
            help=f"Timeout per request in seconds (default: {DEFAULT_TIMEOUT:g})"
        )
        parser.add_argument(
            "--log-file", "-l", type=str,
            help="Also write log output to FILE"
        )
        verbosity_group = parser.add_mutually_exclusive_group()
        verbosity_group.add_argument(
            "--quiet", "-Q", action="store_true",
            help="Only show errors on stderr"
        )
        verbosity_group.add_argument(
            "--verbose", "-v", action="store_true",
            help="Show per-document processing info on stderr"
        )
        verbosity_group.add_argument(
            "--debug", "-d", action="store_true",
            help="Show per-image debug messages on stderr"
        )
        return parser

    @classmethod
    def parse(cls, args: List[str]) -> CommandLineOptions:
        """
        Parse command line arguments.

        Args:
            args: Command line arguments

        Returns:
            CommandLineOptions: The parsed options
        """
        parsed_args = cls.build_parser().parse_args(args)

        return CommandLineOptions(
            debug=parsed_args.debug,
            verbose=parsed_args.verbose,
            quiet=parsed_args.quiet,
            fail_fast=parsed_args.fail_fast,
            input_file=parsed_args.input_file,
            output_file=parsed_args.output_file,
            log_file=parsed_args.log_file,
            max_concurrency=parsed_args.max_concurrency,
            timeout=parsed_args.timeout,
        )
