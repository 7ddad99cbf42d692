from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from openpyxl import Workbook

from conftest import FIXED_DATE


def test_lookup_miss_uses_configured_defaults(registry, caplog):
    with caplog.at_level("INFO", logger="auction_ingest.registry"):
        meta = registry.lookup("UNKNOWN-1")

    assert meta.document_id == "UNKNOWN-1"
    assert meta.auction_id == 0
    assert meta.premium_percent == Decimal("18")
    assert meta.tax_percent == Decimal("8.625")
    assert meta.date == FIXED_DATE
    assert "No auction metadata for UNKNOWN-1" in caplog.text


def test_load_csv(registry, tmp_path):
    path = tmp_path / "auctions.csv"
    path.write_text(
        "invoice_id,auction_id,date,premium,tax\n"
        "INV-1,42,2024-05-06,15,7%\n"
        ",99,2024-05-07,10,5\n",
        encoding="utf-8",
    )

    assert registry.load(path) == 1
    assert len(registry) == 1
    assert "INV-1" in registry

    meta = registry.lookup("INV-1")
    assert meta.auction_id == 42
    assert meta.premium_percent == Decimal("15")
    assert meta.tax_percent == Decimal("7")
    assert meta.date == datetime(2024, 5, 6, tzinfo=timezone.utc)


def test_bad_percentages_fall_back_to_defaults(registry, tmp_path, caplog):
    path = tmp_path / "auctions.csv"
    path.write_text(
        "invoice_id,auction_id,date,premium,tax\n"
        "INV-2,7,not a date,abc,\n",
        encoding="utf-8",
    )
    with caplog.at_level("WARNING", logger="auction_ingest.registry"):
        registry.load(path)

    meta = registry.lookup("INV-2")
    assert meta.premium_percent == Decimal("18")
    assert meta.tax_percent == Decimal("8.625")
    assert meta.date == FIXED_DATE
    assert "unreadable percentages" in caplog.text


@pytest.mark.parametrize("premium, tax", [("NaN", "7"), ("15", "Infinity"), ("-inf", "sNaN")])
def test_non_finite_percentages_fall_back_to_defaults(registry, tmp_path, caplog, premium, tax):
    path = tmp_path / "auctions.csv"
    path.write_text(
        "invoice_id,auction_id,date,premium,tax\n"
        f"INV-3,5,2024-01-02,{premium},{tax}\n",
        encoding="utf-8",
    )
    with caplog.at_level("WARNING", logger="auction_ingest.registry"):
        registry.load(path)

    meta = registry.lookup("INV-3")
    assert meta.premium_percent.is_finite()
    assert meta.tax_percent.is_finite()
    if premium in ("NaN", "-inf"):
        assert meta.premium_percent == Decimal("18")
    if tax in ("Infinity", "sNaN"):
        assert meta.tax_percent == Decimal("8.625")
    assert "unreadable percentages" in caplog.text


def test_corrupt_workbook_raises_value_error(registry, tmp_path):
    path = tmp_path / "auctions.xlsx"
    path.write_bytes(b"this is not a zip archive")
    with pytest.raises(ValueError, match="cannot open workbook"):
        registry.load(path)
    assert len(registry) == 0


def test_load_xlsx(registry, tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["invoice_id", "auction_id", "date", "premium", "tax"])
    ws.append(["INV-9", 3, datetime(2023, 11, 20, 14, 30), 20, 6.5])
    ws.append([None, None, None, None, None])
    path = tmp_path / "auctions.xlsx"
    wb.save(path)

    assert registry.load(path) == 1
    meta = registry.lookup("INV-9")
    assert meta.auction_id == 3
    assert meta.premium_percent == Decimal("20")
    assert meta.tax_percent == Decimal("6.5")
    assert meta.date == datetime(2023, 11, 20, 14, 30, tzinfo=timezone.utc)
