"""
Utility functions for the markdown archiver.
"""

import sys
from typing import Optional


def format_file_size(size_bytes: int, decimals: int = 1) -> str:
    """
    Format a file size in human-readable form.

    Args:
        size_bytes: The size in bytes
        decimals: Number of decimal places to display

    Returns:
        str: The formatted file size
    """
    units = ["B", "KB", "MB", "GB", "TB"]

    if size_bytes == 0:
        return "0 B"

    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    return f"{size:.{decimals}f} {units[unit_index]}"


def read_stdin_or_file(file_path: Optional[str] = None) -> str:
    """
    Read markdown from stdin or a file.

    Args:
        file_path: Path to a file (optional, uses stdin if None)

    Returns:
        str: The content read from stdin or the file
    """
    if file_path:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise RuntimeError(f"Error reading input file: {e}") from e
    try:
        return sys.stdin.read()
    except (OSError, UnicodeDecodeError) as e:
        raise RuntimeError(f"Error reading from stdin: {e}") from e


def write_stdout_or_file(content: str, file_path: Optional[str] = None) -> None:
    """
    Write markdown to stdout or a file.

    Args:
        content: The content to write
        file_path: Path to a file (optional, uses stdout if None)
    """
    if file_path:
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise RuntimeError(f"Error writing to output file: {e}") from e
        return
    try:
        sys.stdout.write(content)
        sys.stdout.flush()
    except OSError as e:
        raise RuntimeError(f"Error writing to stdout: {e}") from e
