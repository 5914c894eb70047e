"""
Logging setup module for the markdown archiver command line tool.
"""

import logging
import sys
from typing import Optional


class LogFilter(logging.Filter):
    """Filter to control which log records are emitted."""
    def __init__(self, quiet=False):
        super().__init__()
        self.quiet = quiet

    def filter(self, record):
        # In quiet mode, only let through ERROR or higher level messages
        if self.quiet and record.levelno < logging.ERROR:
            return False
        return True


class LoggerSetup:
    """Sets up and configures logging for the command line tool."""

    CONSOLE_FORMAT = '%(levelname)s: %(message)s'
    FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'

    @classmethod
    def initialize_logger(
        cls,
        debug: bool = False,
        verbose: bool = False,
        quiet: bool = False,
        log_file: Optional[str] = None,
    ) -> logging.Logger:
        """
        Configure the root logger for a CLI run.

        Args:
            debug: Enable debug logging level
            verbose: Enable verbose (INFO) logging level
            quiet: Only show errors on the console
            log_file: Also write INFO (or DEBUG) output to this file

        Returns:
            logging.Logger: The root logger
        """
        if debug:
            log_level = logging.DEBUG
        elif verbose:
            log_level = logging.INFO
        else:
            log_level = logging.WARNING

        root = logging.getLogger()
        # Clear existing handlers to avoid duplication
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(cls.CONSOLE_FORMAT))
        console_handler.setLevel(log_level)
        console_handler.addFilter(LogFilter(quiet=quiet))
        root.addHandler(console_handler)

        if log_file:
            # Log files always get at least INFO output
            file_handler = logging.FileHandler(log_file, 'w', encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(cls.FILE_FORMAT))
            file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
            root.addHandler(file_handler)

        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
        return root
