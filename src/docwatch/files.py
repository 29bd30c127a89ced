"""Helpers for the document the caller displays.

These are the watch-independent operations: naming the document and
reading it directly when watching is unavailable.
"""

from __future__ import annotations

import os
from pathlib import Path

from docwatch.errors import FileAccessError, FileNotFound

MARKDOWN_EXTENSIONS = frozenset({"md", "markdown", "mdown", "mkd", "mkdown"})


def get_filename(path: str | os.PathLike[str]) -> str:
    """Display name for path: its final component, or "Untitled"."""
    return Path(path).name or "Untitled"


def is_markdown_path(path: str | os.PathLike[str]) -> bool:
    """True if path has one of the markdown extensions (case-insensitive)."""
    suffix = Path(path).suffix
    return suffix[1:].lower() in MARKDOWN_EXTENSIONS if suffix else False


def read_text(path: str | os.PathLike[str]) -> str:
    """Read a document as UTF-8 text.

    Raises:
        FileNotFound: The file does not exist.
        FileAccessError: The file could not be read or decoded.
    """
    target = os.fspath(path)
    if not os.path.exists(target):
        raise FileNotFound(target, f"File not found: {target}")
    try:
        with open(target, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(target, f"Failed to read file: {e}") from e
    except UnicodeDecodeError as e:
        raise FileAccessError(target, f"Failed to read file: {e}") from e
