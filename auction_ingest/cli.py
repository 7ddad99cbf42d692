"""CLI entrypoint for seeding the inventory from auction invoices.

Usage:
    auction-ingest
    auction-ingest --invoices ./invoices --auctions ./auctions.xlsx
    auction-ingest --dry-run --log-level debug
    auction-ingest --force --report-file ./reports/run.json
    auction-ingest --max-runtime 3600 --database-url postgresql://...
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any, Optional

from .errors import StartupError

log = logging.getLogger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error")
DATE_FMT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FMT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DETAILED_FMT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
QUIET_LOGGERS = ("docling", "sqlalchemy.engine", "PIL", "urllib3")


def _setup_logging(
    *,
    level: str,
    detailed_logging: bool,
    state_dir: Path,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(root_level)

    # Operator lines own stdout.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(
        logging.Formatter(DETAILED_FMT if detailed_logging else CONSOLE_FMT, DATE_FMT)
    )
    root_logger.addHandler(console_handler)

    if log_file is None and detailed_logging:
        log_file = state_dir / "ingest.log"
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=20 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DETAILED_FMT, DATE_FMT))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    from .utils import DEFAULT_AUCTIONS_FILE, DEFAULT_INVOICES_DIR, DEFAULT_STATE_FILE

    parser = argparse.ArgumentParser(
        description="Auction invoices -> line items -> inventory database"
    )
    parser.add_argument(
        "--invoices",
        type=Path,
        default=DEFAULT_INVOICES_DIR,
        help="Directory with invoice PDFs or text dumps (default: invoices/)",
    )
    parser.add_argument(
        "--auctions",
        type=Path,
        default=DEFAULT_AUCTIONS_FILE,
        help="Auction metadata workbook, .xlsx or .csv (default: auctions.xlsx)",
    )
    parser.add_argument(
        "--state",
        type=Path,
        default=DEFAULT_STATE_FILE,
        help="Checkpoint file (default: .seed_state.json)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy database URL (default: $DATABASE_URL or sqlite:///inventory.db)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="info",
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (thread, file/line, rotating log file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=(
            "Optional log file path "
            "(default: <state dir>/ingest.log in detailed mode)"
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Extract and classify without touching the database or checkpoint",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Reprocess invoices already recorded in the checkpoint",
    )
    parser.add_argument(
        "--flush-every",
        type=int,
        default=None,
        help="Write the checkpoint after this many successful invoices",
    )
    parser.add_argument(
        "--max-runtime",
        type=float,
        default=None,
        help="Stop starting new invoices after this many seconds",
    )
    parser.add_argument(
        "--report-file",
        type=Path,
        default=None,
        help="Write a JSON run report to this path",
    )
    parser.add_argument(
        "--disable-ocr",
        action="store_true",
        help="Disable OCR for faster conversion on text PDFs",
    )
    parser.add_argument(
        "--num-threads",
        type=int,
        default=4,
        help="Docling internal thread count (default: 4)",
    )
    return parser.parse_args(argv)


def _install_signal_handlers(cancel_event: threading.Event) -> dict[int, Any]:
    def _handler(signum, _frame):
        log.warning(
            "Received %s; finishing the current invoice before stopping",
            signal.Signals(signum).name,
        )
        cancel_event.set()

    previous: dict[int, Any] = {}
    if threading.current_thread() is not threading.main_thread():
        return previous
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _handler)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _load_registry(registry: Any, auctions_file: Path) -> None:
    if not auctions_file.exists():
        log.warning("Auctions file not found: %s; using default rates", auctions_file)
        return
    try:
        registry.load(auctions_file)
    except (OSError, ValueError) as exc:
        log.error("Cannot read auctions file %s: %s; using default rates", auctions_file, exc)


def main(argv: list[str] | None = None) -> int:
    """Run one ingestion pass; return the process exit code."""
    from .config import load_settings
    from .conversion import TextExtractor
    from .ingestion import IngestionDriver
    from .registry import AuctionMetadataRegistry
    from .report import OperatorReport
    from .sources import discover_documents
    from .store import InventoryStore
    from .utils import save_run_report

    args = parse_args(argv)
    _setup_logging(
        level=args.log_level,
        detailed_logging=args.detailed_logging,
        state_dir=args.state.parent,
        log_file=args.log_file,
    )

    try:
        settings = load_settings()
    except ValueError as exc:
        log.error("Invalid configuration: %s", exc)
        return 2

    database_url = args.database_url or settings.database_url
    flush_every = args.flush_every or settings.checkpoint_flush_every
    log.debug(
        "Settings: invoices=%s auctions=%s state=%s flush_every=%s dry_run=%s force=%s",
        args.invoices,
        args.auctions,
        args.state,
        flush_every,
        args.dry_run,
        args.force,
    )

    store: Optional[InventoryStore] = None
    try:
        documents = discover_documents(args.invoices)
        log.info("Total invoices discovered: %s", len(documents))

        if args.dry_run:
            log.info("Dry run: database and checkpoint will not be modified")
        else:
            store = InventoryStore(database_url, timeout=settings.db_timeout)
            store.ping()
            store.ensure_schema()
    except StartupError as exc:
        log.error("Startup failed: %s", exc)
        if store is not None:
            store.dispose()
        return 2

    registry = AuctionMetadataRegistry(
        settings.default_premium_percent,
        settings.default_tax_percent,
    )
    _load_registry(registry, args.auctions)

    extractor = TextExtractor(
        num_threads=max(1, args.num_threads),
        enable_ocr=not args.disable_ocr,
        document_timeout=settings.document_timeout,
    )
    driver = IngestionDriver(
        read_lines=extractor,
        registry=registry,
        sink=store,
        checkpoint_path=args.state,
        dry_run=args.dry_run,
        force=args.force,
        flush_every=flush_every,
        report=OperatorReport(),
        show_progress=sys.stderr.isatty(),
    )

    cancel_event = threading.Event()
    deadline = None
    if args.max_runtime is not None:
        deadline = time.monotonic() + max(0.0, args.max_runtime)

    previous_handlers = _install_signal_handlers(cancel_event)
    try:
        summary = driver.run(documents, cancel_event=cancel_event, deadline=deadline)
    finally:
        _restore_signal_handlers(previous_handlers)
        if store is not None:
            store.dispose()

    if args.report_file is not None:
        report_path = save_run_report(args.report_file, summary)
        log.info("Run report written: %s", report_path)

    if summary.failed:
        log.warning("Failed invoices:")
        for outcome in summary.failed:
            log.warning("  - %s: %s", outcome.document_id, (outcome.error or "unknown")[:200])
    return 0
