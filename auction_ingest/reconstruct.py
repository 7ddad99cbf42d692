"""Rebuild lot line items from the loose text lines of an invoice.

Extracted invoice text has no table structure: a lot's description may
wrap over several lines and only the last one carries the hammer price.
:class:`LineReconstructor` walks the lines once with three states:

``SEEKING_HEADER``
    Look for the column header ("LOT ... PRICE"). Items start on the
    following line. Without a header, reading starts at line 0.
``BUFFERING``
    Collect description lines until a line ends in a price, then emit
    one :class:`RawItem`.
``STOPPED``
    A footer ("SUBTOTAL", "A payment of") was seen; the rest is ignored.

A buffer still open at end of input is dropped: invoices always close
with a subtotal, so unterminated text is trailing noise.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional, Union

from .cleaning import clean_description, strip_trailing_codes
from .models import RawItem, RawTextLine

log = logging.getLogger(__name__)

HEADER_RE = re.compile(r"(LOT.*PRICE|LEAD.*ITEM.*PRICE)", re.IGNORECASE)
FOOTER_RE = re.compile(r"(A payment of|SUBTOTAL)", re.IGNORECASE)
FILLER_DASH_RE = re.compile(r"-{7,}")
PRICE_RE = re.compile(r"(?:(?<=\s)|^)\$?\s*(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}\s*$")


class ReconstructorState(str, Enum):
    SEEKING_HEADER = "seeking_header"
    BUFFERING = "buffering"
    STOPPED = "stopped"


def parse_price(raw: str) -> Decimal:
    """Parse ``"$1,234.50"`` style text into a Decimal."""
    cleaned = raw.replace("$", "").replace(",", "").strip()
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"unable to parse price from '{raw}'") from exc


def split_price(line: str) -> Optional[tuple[str, Decimal]]:
    """Return ``(fragment, price)`` if *line* ends with a price, else None."""
    match = PRICE_RE.search(line)
    if match is None:
        return None
    return line[: match.start()].strip(), parse_price(match.group(0))


class _PendingLineItem:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def __bool__(self) -> bool:
        return bool(self.lines)

    def append(self, line: str) -> None:
        self.lines.append(line)

    def join(self, fragment: str) -> str:
        return " ".join([*self.lines, fragment]).strip()

    def clear(self) -> None:
        self.lines = []


class LineReconstructor:
    """Single-use state machine turning text lines into raw items."""

    def __init__(self) -> None:
        self.state = ReconstructorState.SEEKING_HEADER
        self.items: list[RawItem] = []
        self.discarded = 0
        self._pending = _PendingLineItem()

    def run(self, lines: Iterable[Union[RawTextLine, str]]) -> list[RawItem]:
        texts = [line.text if isinstance(line, RawTextLine) else line for line in lines]

        start = self._seek_header(texts)
        for text in texts[start:]:
            self.feed(text)
            if self.state is ReconstructorState.STOPPED:
                break
        return self.finish()

    def _seek_header(self, texts: list[str]) -> int:
        start = 0
        for idx, text in enumerate(texts):
            if HEADER_RE.search(text):
                log.debug("Found item header at line %s", idx)
                start = idx + 1
                break
        else:
            log.warning("No item header found; reading from the first line")
        self.state = ReconstructorState.BUFFERING
        return start

    def feed(self, raw_line: str) -> None:
        """Consume one line while buffering."""
        if self.state is not ReconstructorState.BUFFERING:
            return

        line = raw_line.strip()
        if not line:
            return

        if FOOTER_RE.search(line):
            log.debug("Found footer, stopping: %s", line)
            self.state = ReconstructorState.STOPPED
            return

        if FILLER_DASH_RE.search(line):
            line = FILLER_DASH_RE.split(line, maxsplit=1)[0].strip()
            if not line:
                return

        priced = split_price(line)
        if priced is None:
            self._pending.append(line)
            return

        fragment, price = priced
        fragment = strip_trailing_codes(fragment)
        description = clean_description(self._pending.join(fragment))
        self._pending.clear()
        if description:
            self.items.append(RawItem(description=description, price=price))
        else:
            self.discarded += 1

    def finish(self) -> list[RawItem]:
        if self._pending:
            log.debug(
                "Discarding %s unterminated trailing line(s)",
                len(self._pending.lines),
            )
            self._pending.clear()
        self.state = ReconstructorState.STOPPED
        log.debug("Reconstructed %s raw item(s)", len(self.items))
        return self.items


def reconstruct_items(lines: Iterable[Union[RawTextLine, str]]) -> list[RawItem]:
    """Convenience wrapper running a fresh :class:`LineReconstructor`."""
    return LineReconstructor().run(lines)
