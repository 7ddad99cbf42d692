"""Per-invoice auction metadata (buyer's premium, sales tax, date)."""

from __future__ import annotations

import csv
import logging
import zipfile
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from .models import AuctionMetadata

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    text = _cell_text(value)
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_int(value: Any) -> int:
    text = _cell_text(value)
    try:
        return int(float(text)) if text else 0
    except ValueError:
        return 0


def _parse_percent(value: Any) -> Optional[Decimal]:
    text = _cell_text(value).rstrip("%").strip()
    if not text:
        return None
    try:
        percent = Decimal(text)
    except InvalidOperation:
        return None
    # NaN and Infinity parse but cannot price anything.
    return percent if percent.is_finite() else None


def _read_csv_rows(path: Path) -> Iterable[list[Any]]:
    with open(path, "r", encoding="utf-8", newline="") as fh:
        yield from csv.reader(fh)


def _read_xlsx_rows(path: Path) -> Iterable[list[Any]]:
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise ValueError(f"cannot open workbook {path}: {exc}") from exc
    try:
        if not workbook.worksheets:
            raise ValueError(f"no sheets found in {path}")
        for row in workbook.worksheets[0].iter_rows(values_only=True):
            yield list(row)
    finally:
        workbook.close()


class AuctionMetadataRegistry:
    """Invoice id -> :class:`AuctionMetadata`, with configured defaults on miss."""

    def __init__(
        self,
        default_premium_percent: Decimal,
        default_tax_percent: Decimal,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.default_premium_percent = default_premium_percent
        self.default_tax_percent = default_tax_percent
        self._clock = clock
        self._entries: dict[str, AuctionMetadata] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._entries

    def load(self, path: Path) -> int:
        """Load ``[invoice_id, auction_id, date, premium %, tax %]`` rows.

        The first row is a header. ``.csv`` files are read as text, any
        other suffix as an Excel workbook. Returns the number of entries
        loaded from this file.
        """
        reader = _read_csv_rows if path.suffix.lower() == ".csv" else _read_xlsx_rows
        loaded = 0
        for row_idx, row in enumerate(reader(path)):
            if row_idx == 0:
                continue
            cells = list(row) + [None] * (5 - len(row))
            document_id = _cell_text(cells[0])
            if not document_id:
                continue

            premium = _parse_percent(cells[3])
            tax = _parse_percent(cells[4])
            if premium is None or tax is None:
                log.warning(
                    "Auction row %s for %s has unreadable percentages; using defaults",
                    row_idx + 1,
                    document_id,
                )
            self._entries[document_id] = AuctionMetadata(
                document_id=document_id,
                auction_id=_parse_int(cells[1]),
                date=_parse_date(cells[2]) or self._clock(),
                premium_percent=premium if premium is not None else self.default_premium_percent,
                tax_percent=tax if tax is not None else self.default_tax_percent,
            )
            loaded += 1

        log.info("Loaded auction metadata: count=%s file=%s", loaded, path)
        return loaded

    def lookup(self, document_id: str) -> AuctionMetadata:
        entry = self._entries.get(document_id)
        if entry is not None:
            return entry
        log.info("No auction metadata for %s; using defaults", document_id)
        return AuctionMetadata(
            document_id=document_id,
            auction_id=0,
            date=self._clock(),
            premium_percent=self.default_premium_percent,
            tax_percent=self.default_tax_percent,
        )
