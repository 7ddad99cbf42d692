"""Invoice document discovery."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import StartupError

log = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".pdf", ".txt")


def document_id_for(path: Path) -> str:
    """Invoice id is the file name without its extension."""
    return path.stem


def discover_documents(folder: Path) -> list[Path]:
    """Find invoice documents directly under *folder*, sorted by name.

    Raises:
        StartupError: if *folder* is missing or cannot be listed.
    """
    if not folder.is_dir():
        raise StartupError(f"Invoice directory not found: {folder}")
    try:
        entries = list(folder.iterdir())
    except OSError as exc:
        raise StartupError(f"Cannot list invoice directory {folder}: {exc}") from exc

    documents = sorted(
        path
        for path in entries
        if path.is_file() and path.suffix.lower() in DOCUMENT_SUFFIXES
    )
    log.debug("Discovered %s document(s) in %s", len(documents), folder)
    return documents
