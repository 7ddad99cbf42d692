"""Resumable batch ingestion of auction invoices.

:class:`IngestionDriver` takes one document at a time through
read -> reconstruct -> build -> persist, and records the invoice id in
the checkpoint only after its batch committed. Per-document failures
are recorded on a :class:`DocumentOutcome` and never stop the run.

The checkpoint file has a single writer: run one driver per file.
"""

from __future__ import annotations

import logging
import threading
import time
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from .errors import EmptyExtractionError, IngestError
from .lots import build_line_items
from .models import (
    DocumentOutcome,
    DocumentStatus,
    IngestionCheckpoint,
    InventoryLineItem,
    RawTextLine,
)
from .nlp import ItemClassifier
from .reconstruct import reconstruct_items
from .registry import AuctionMetadataRegistry
from .report import OperatorReport
from .sources import document_id_for
from .store import PersistenceSink
from .utils import MAX_ERROR_CHARS, load_checkpoint, save_checkpoint

log = logging.getLogger(__name__)

DEFAULT_FLUSH_EVERY = 10


@dataclass
class RunSummary:
    outcomes: list[DocumentOutcome] = field(default_factory=list)
    dry_run: bool = False
    force: bool = False
    cancelled: bool = False
    elapsed_s: float = 0.0

    def _with_status(self, *statuses: DocumentStatus) -> list[DocumentOutcome]:
        return [o for o in self.outcomes if o.status in statuses]

    @property
    def discovered(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.SUCCEEDED)

    @property
    def failed(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.FAILED_EMPTY, DocumentStatus.FAILED_ERROR)

    @property
    def skipped(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.SKIPPED)

    @property
    def pending(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.PENDING)

    @property
    def processed(self) -> list[DocumentOutcome]:
        return self.succeeded + self.failed

    @property
    def total_items(self) -> int:
        return sum(o.item_count for o in self.succeeded)

    @property
    def average_items(self) -> float:
        succeeded = self.succeeded
        return self.total_items / len(succeeded) if succeeded else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "force": self.force,
            "cancelled": self.cancelled,
            "elapsed_s": round(self.elapsed_s, 2),
            "documents_discovered": self.discovered,
            "documents_processed": len(self.processed),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "total_items": self.total_items,
            "failed_invoices": [o.document_id for o in self.failed],
            "documents": [
                {
                    "invoice_id": o.document_id,
                    "path": o.path,
                    "status": o.status.value,
                    "item_count": o.item_count,
                    "inserted_count": o.inserted_count,
                    "elapsed_s": o.elapsed_s,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


class IngestionDriver:
    def __init__(
        self,
        *,
        read_lines: Callable[[Path], list[RawTextLine]],
        registry: AuctionMetadataRegistry,
        sink: Optional[PersistenceSink],
        checkpoint_path: Path,
        classifier: Optional[ItemClassifier] = None,
        dry_run: bool = False,
        force: bool = False,
        flush_every: int = DEFAULT_FLUSH_EVERY,
        report: Optional[OperatorReport] = None,
        show_progress: bool = False,
    ):
        if sink is None and not dry_run:
            raise ValueError("a persistence sink is required unless dry_run is set")
        self.read_lines = read_lines
        self.registry = registry
        self.sink = sink
        self.checkpoint_path = checkpoint_path
        self.classifier = classifier or ItemClassifier()
        self.dry_run = dry_run
        self.force = force
        self.flush_every = max(1, flush_every)
        self.report = report or OperatorReport()
        self.show_progress = show_progress
        self.checkpoint = IngestionCheckpoint()
        self._unflushed = 0

    # ------------------------------------------------------------------
    # Per-document work
    # ------------------------------------------------------------------

    def build_items(self, path: Path, document_id: str) -> list[InventoryLineItem]:
        """Read, reconstruct and build one document's items.

        Raises:
            DocumentReadError: if the text cannot be extracted.
            EmptyExtractionError: if no line items were found.
        """
        metadata = self.registry.lookup(document_id)
        lines = self.read_lines(path)
        raw_items = reconstruct_items(lines)
        items = build_line_items(raw_items, metadata, self.classifier)
        if not items:
            raise EmptyExtractionError(f"no line items found in {path.name}")
        log.info("Extracted items: invoice=%s count=%s", document_id, len(items))
        return items

    def process_document(self, path: Path, outcome: DocumentOutcome) -> None:
        """Drive *outcome* from PROCESSING to a terminal status."""
        outcome.status = DocumentStatus.PROCESSING
        t0 = time.perf_counter()
        try:
            items = self.build_items(path, outcome.document_id)
            outcome.item_count = len(items)
            if not self.dry_run:
                outcome.inserted_count = self.sink.save_batch(items)
        except EmptyExtractionError as exc:
            outcome.status = DocumentStatus.FAILED_EMPTY
            outcome.error = str(exc)[:MAX_ERROR_CHARS]
            log.warning("No items extracted: invoice=%s", outcome.document_id)
            self.report.empty(outcome.document_id)
        except IngestError as exc:
            outcome.status = DocumentStatus.FAILED_ERROR
            outcome.error = str(exc)[:MAX_ERROR_CHARS]
            log.error("Failed to ingest invoice=%s: %s", outcome.document_id, exc)
            self.report.error(outcome.document_id, str(exc))
        except Exception as exc:
            outcome.status = DocumentStatus.FAILED_ERROR
            outcome.error = traceback.format_exc()[-MAX_ERROR_CHARS:]
            log.exception("Unexpected failure on invoice=%s", outcome.document_id)
            self.report.error(outcome.document_id, repr(exc))
        else:
            outcome.status = DocumentStatus.SUCCEEDED
            self.report.success(outcome.document_id, outcome.item_count)
            if not self.dry_run:
                self.checkpoint.mark_processed(outcome.document_id)
                self._unflushed += 1
                if self._unflushed >= self.flush_every:
                    try:
                        self.flush_checkpoint()
                    except OSError as exc:
                        # Entries stay in memory; the run-end flush retries them.
                        log.error(
                            "Checkpoint flush failed after invoice=%s: %s",
                            outcome.document_id,
                            exc,
                        )
        finally:
            outcome.elapsed_s = round(time.perf_counter() - t0, 2)

    # ------------------------------------------------------------------
    # Checkpoint
    # ------------------------------------------------------------------

    def load_checkpoint(self) -> IngestionCheckpoint:
        if self.force:
            log.info("Force mode: ignoring checkpoint %s", self.checkpoint_path)
            self.checkpoint = IngestionCheckpoint()
        else:
            self.checkpoint = load_checkpoint(self.checkpoint_path)
            log.info(
                "Checkpoint loaded: %s invoice(s) already processed",
                self.checkpoint.processed_count,
            )
        return self.checkpoint

    def flush_checkpoint(self) -> None:
        """Write the checkpoint. ``OSError`` propagates; only the run-end call is fatal."""
        if self.dry_run:
            return
        save_checkpoint(self.checkpoint_path, self.checkpoint)
        self._unflushed = 0
        log.debug(
            "Checkpoint flushed: %s (%s invoices)",
            self.checkpoint_path,
            self.checkpoint.processed_count,
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        documents: Sequence[Path],
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> RunSummary:
        """Ingest *documents* in order.

        *cancel_event* and *deadline* (a ``time.monotonic()`` value) are
        checked between documents only, never during a document's write.
        """
        t0 = time.perf_counter()
        self.load_checkpoint()
        summary = RunSummary(
            outcomes=[
                DocumentOutcome(document_id=document_id_for(path), path=str(path))
                for path in documents
            ],
            dry_run=self.dry_run,
            force=self.force,
        )
        total = len(documents)

        iterator = enumerate(zip(documents, summary.outcomes), start=1)
        if self.show_progress:
            from tqdm import tqdm

            iterator = tqdm(iterator, total=total, desc="Ingesting invoices", unit="doc")

        try:
            for index, (path, outcome) in iterator:
                if self._should_stop(cancel_event, deadline):
                    summary.cancelled = True
                    log.warning(
                        "Run cancelled before %s; %s document(s) left pending",
                        outcome.document_id,
                        total - index + 1,
                    )
                    break

                self.report.progress(index, total, outcome.document_id)
                if not self.force and outcome.document_id in self.checkpoint:
                    outcome.status = DocumentStatus.SKIPPED
                    log.info("Skipping already processed invoice=%s", outcome.document_id)
                    self.report.skipped(outcome.document_id)
                    continue

                self.process_document(path, outcome)
        finally:
            self.flush_checkpoint()
            summary.elapsed_s = time.perf_counter() - t0

        log.info(
            "Ingestion completed: discovered=%s succeeded=%s failed=%s skipped=%s "
            "items=%s cancelled=%s elapsed=%.2fs",
            summary.discovered,
            len(summary.succeeded),
            len(summary.failed),
            len(summary.skipped),
            summary.total_items,
            summary.cancelled,
            summary.elapsed_s,
        )
        self.report.summary(summary)
        return summary

    @staticmethod
    def _should_stop(
        cancel_event: Optional[threading.Event], deadline: Optional[float]
    ) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline
