"""Exception hierarchy for the ingestion pipeline."""

from __future__ import annotations

from typing import Optional
import uuid


class IngestError(Exception):
    """Base error for ingestion operations."""


class StartupError(IngestError):
    """Raised when a run cannot start (documents or sink unavailable)."""


class DocumentReadError(IngestError):
    """Raised when a document cannot be opened or its text extracted."""


class EmptyExtractionError(IngestError):
    """Raised when a document yields no line items."""


class PersistenceError(IngestError):
    """Raised when a document's batch cannot be committed.

    ``position`` is the zero-based index of the failing item within the
    batch, when the failure can be pinned to one item.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        lot_id: Optional[uuid.UUID] = None,
    ):
        super().__init__(message)
        self.position = position
        self.lot_id = lot_id
