"""Shared fixtures for the ingestion test suite.

Invoices are written as ``.txt`` dumps so the Docling converter is never
loaded; persistence runs against a throwaway SQLite file.
"""

from __future__ import annotations

import logging
import sys
import types
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")

FIXED_DATE = datetime(2024, 3, 1, tzinfo=timezone.utc)

SAMPLE_INVOICE = """\
HILLSIDE AUCTION GALLERY
Invoice 10442                    Paddle 117
LOT   DESCRIPTION                                   PRICE
1 Sterling silver tea set 18488 17 $250.00
2 Antique oak dresser with
original brass hardware 131811 65 G2CG2C 1,200.00
3 Art glass vase, excellent condition 75.50
SUBTOTAL 1,525.50
A payment of $1,800.00 was received
"""

EMPTY_INVOICE = """\
HILLSIDE AUCTION GALLERY
LOT   DESCRIPTION                                   PRICE
SUBTOTAL 0.00
"""


def single_item_invoice(description: str, price: str) -> str:
    return f"LOT DESCRIPTION PRICE\n1 {description} {price}\nSUBTOTAL {price}\n"


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """``cli.main`` reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def sample_lines() -> list[str]:
    return SAMPLE_INVOICE.splitlines()


@pytest.fixture
def invoice_dir(tmp_path: Path) -> Path:
    """Three invoices: two with items and one without."""
    folder = tmp_path / "invoices"
    folder.mkdir()
    (folder / "A-100.txt").write_text(SAMPLE_INVOICE, encoding="utf-8")
    (folder / "B-200.txt").write_text(
        single_item_invoice("Lionel train set, good condition", "40.00"),
        encoding="utf-8",
    )
    (folder / "C-300.txt").write_text(EMPTY_INVOICE, encoding="utf-8")
    return folder


@pytest.fixture
def store(tmp_path: Path):
    from auction_ingest.store import InventoryStore

    s = InventoryStore(f"sqlite:///{tmp_path / 'inventory.db'}", timeout=5.0)
    s.ensure_schema()
    yield s
    s.dispose()


@pytest.fixture
def registry():
    from auction_ingest.registry import AuctionMetadataRegistry

    return AuctionMetadataRegistry(
        Decimal("18"),
        Decimal("8.625"),
        clock=lambda: FIXED_DATE,
    )


@pytest.fixture
def tqdm_stub(monkeypatch):
    stub = types.SimpleNamespace(tqdm=lambda iterable, **kwargs: iterable)
    monkeypatch.setitem(sys.modules, "tqdm", stub)
    return stub
