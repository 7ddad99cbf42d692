"""Operator-facing progress lines and the end-of-run summary."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from .ingestion import RunSummary


class OperatorReport:
    """Plain-text lines meant to be read (or grepped) by whoever runs the job.

    ``stream`` defaults to whatever ``sys.stdout`` is at write time.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def _emit(self, line: str = "") -> None:
        print(line, file=self.stream or sys.stdout, flush=True)

    def progress(self, index: int, total: int, document_id: str) -> None:
        self._emit(f"PROGRESS: Processing {index}/{total}: {document_id}")

    def skipped(self, document_id: str) -> None:
        self._emit(f"SKIPPED: invoice_id:{document_id} already processed")

    def success(self, document_id: str, item_count: int) -> None:
        self._emit(f"SUCCESS: Processed invoice_id:{document_id} - {item_count} items")

    def empty(self, document_id: str) -> None:
        self._emit(f"WARNING: No items found in invoice_id:{document_id}")

    def error(self, document_id: str, error: str) -> None:
        self._emit(f"ERROR: Failed to process invoice_id:{document_id} - {error}")

    def summary(self, summary: "RunSummary") -> None:
        self._emit()
        self._emit("=" * 60)
        self._emit("INGESTION SUMMARY")
        self._emit("=" * 60)
        self._emit(f"Documents discovered:  {summary.discovered}")
        self._emit(f"Documents processed:   {len(summary.processed)}")
        self._emit(f"Succeeded:             {len(summary.succeeded)}")
        self._emit(f"Failed:                {len(summary.failed)}")
        self._emit(f"Skipped:               {len(summary.skipped)}")
        self._emit(f"Total items extracted: {summary.total_items}")
        if summary.succeeded:
            self._emit(f"Average items per invoice: {summary.average_items:.1f}")

        if summary.succeeded:
            self._emit()
            self._emit(f"Successfully processed ({len(summary.succeeded)} invoices):")
            for outcome in summary.succeeded:
                self._emit(f"  - {outcome.document_id}: {outcome.item_count} items")

        if summary.failed:
            self._emit()
            self._emit(f"Failed/empty invoices ({len(summary.failed)}):")
            for outcome in summary.failed:
                self._emit(f"  - {outcome.document_id} ({outcome.status.value})")

        if summary.cancelled:
            self._emit()
            self._emit(
                f"[CANCELLED] {len(summary.pending)} document(s) were not visited"
            )
        if summary.dry_run:
            self._emit()
            self._emit("[DRY RUN] No changes were made to the database")
