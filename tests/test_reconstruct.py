from __future__ import annotations

from decimal import Decimal

import pytest

from auction_ingest import (
    LineReconstructor,
    RawTextLine,
    ReconstructorState,
    clean_description,
    generate_item_name,
    reconstruct_items,
    strip_trailing_codes,
)
from auction_ingest.reconstruct import parse_price, split_price


# =========================================================================
# 1. Price parsing
# =========================================================================


class TestSplitPrice:
    @pytest.mark.parametrize(
        "line, expected",
        [
            ("Brass lamp 12.50", Decimal("12.50")),
            ("Brass lamp $12.50", Decimal("12.50")),
            ("Brass lamp $ 12.50   ", Decimal("12.50")),
            ("Oak dresser 1,200.00", Decimal("1200.00")),
            ("Oak dresser 1200.00", Decimal("1200.00")),
            ("Estate lot 12,345,678.90", Decimal("12345678.90")),
            ("Damaged print 0.00", Decimal("0.00")),
        ],
    )
    def test_trailing_price(self, line, expected):
        priced = split_price(line)
        assert priced is not None
        assert priced[1] == expected

    def test_fragment_is_text_before_price(self):
        assert split_price("1 Oak dresser 1,200.00") == ("1 Oak dresser", Decimal("1200.00"))

    @pytest.mark.parametrize(
        "line",
        [
            "Brass lamp",
            "Brass lamp 12",
            "Brass lamp 12.5",
            "12.50 Brass lamp",
            "Model A12.50",
        ],
    )
    def test_no_trailing_price(self, line):
        assert split_price(line) is None

    def test_parse_price_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_price("$abc")


# =========================================================================
# 2. Cleaning helpers
# =========================================================================


class TestStripTrailingCodes:
    def test_strips_lot_codes(self):
        assert strip_trailing_codes("Brass lamp 18488 17") == "Brass lamp"

    def test_strips_mixed_codes(self):
        assert strip_trailing_codes("Oak desk 131811 65 G2CG2C") == "Oak desk"

    def test_keeps_all_caps_words(self):
        assert strip_trailing_codes("STERLING SILVER BOWL") == "STERLING SILVER BOWL"

    def test_keeps_lowercase_tail(self):
        assert strip_trailing_codes("Set of 4 chairs") == "Set of 4 chairs"

    def test_strips_at_most_four_tokens(self):
        assert strip_trailing_codes("Vase 11 22 33 44 55") == "Vase 11"

    def test_single_char_token_cannot_open_run(self):
        assert strip_trailing_codes("Chairs A 12") == "Chairs A"


class TestCleanDescription:
    def test_removes_leading_lot_number(self):
        assert clean_description("12 Brass lamp") == "Brass lamp"

    def test_removes_embedded_id(self):
        assert clean_description("Brass 18488 17 AB lamp") == "Brass lamp"

    def test_collapses_whitespace_and_dashes(self):
        assert clean_description("  Brass ---- lamp\t shade ") == "Brass lamp shade"

    def test_removes_trailing_long_number(self):
        assert clean_description("Brass lamp 184881") == "Brass lamp"


class TestGenerateItemName:
    def test_title_cases_words(self):
        assert generate_item_name("STERLING silver tea set") == "Sterling Silver Tea Set"

    def test_cuts_long_description_at_first_dot(self):
        description = "Oak dresser. With six drawers, original brass pulls and a beveled mirror"
        assert generate_item_name(description) == "Oak Dresser"

    def test_truncates_long_description_without_dot(self):
        description = "word " * 20
        name = generate_item_name(description)
        assert len(name) <= 60
        assert name.startswith("Word Word")

    def test_strips_leading_number(self):
        assert generate_item_name("7 brass bookends") == "Brass Bookends"

    def test_empty_is_unknown(self):
        assert generate_item_name("   ") == "Unknown Item"


# =========================================================================
# 3. Line reconstruction
# =========================================================================


class TestReconstructItems:
    def test_sample_invoice(self, sample_lines):
        items = reconstruct_items(sample_lines)
        assert [(i.description, i.price) for i in items] == [
            ("Sterling silver tea set", Decimal("250.00")),
            ("Antique oak dresser with original brass hardware", Decimal("1200.00")),
            ("Art glass vase, excellent condition", Decimal("75.50")),
        ]

    def test_single_line_item(self):
        items = reconstruct_items(["Victorian tea set 150.00"])
        assert [(i.description, i.price) for i in items] == [("Victorian tea set", Decimal("150.00"))]

    def test_multi_line_item_with_bare_price(self):
        items = reconstruct_items(["Mahogany table", "with six chairs", "1200.00"])
        assert [(i.description, i.price) for i in items] == [
            ("Mahogany table with six chairs", Decimal("1200.00"))
        ]

    def test_unterminated_document_yields_nothing(self):
        assert reconstruct_items(["Unidentified lot", "more notes"]) == []

    def test_accepts_raw_text_lines(self, sample_lines):
        lines = [RawTextLine(page=1, line_no=i, text=t) for i, t in enumerate(sample_lines)]
        assert len(reconstruct_items(lines)) == 3

    def test_footer_stops_reading(self):
        lines = [
            "LOT DESCRIPTION PRICE",
            "1 Brass lamp 10.00",
            "SUBTOTAL 10.00",
            "2 Oak chair 20.00",
        ]
        assert [i.description for i in reconstruct_items(lines)] == ["Brass lamp"]

    def test_payment_line_is_a_footer(self):
        lines = ["LOT PRICE", "1 Brass lamp 10.00", "A payment of 10.00", "2 Chair 5.00"]
        assert len(reconstruct_items(lines)) == 1

    def test_zero_price_item_is_kept(self):
        items = reconstruct_items(["LOT PRICE", "1 Damaged print 0.00", "SUBTOTAL"])
        assert items[0].price == Decimal("0.00")

    def test_trailing_unpriced_lines_are_discarded(self):
        lines = ["LOT PRICE", "1 Brass lamp 10.00", "Pickup by Friday"]
        items = reconstruct_items(lines)
        assert [i.description for i in items] == ["Brass lamp"]

    def test_missing_header_reads_from_start(self, caplog):
        lines = ["1 Brass lamp 10.00", "2 Oak chair 20.00"]
        with caplog.at_level("WARNING", logger="auction_ingest.reconstruct"):
            items = reconstruct_items(lines)
        assert len(items) == 2
        assert "No item header" in caplog.text

    def test_lead_item_header_variant(self):
        lines = ["Invoice 1", "LEAD  ITEM  DESCRIPTION  PRICE", "1 Oak chair 20.00"]
        assert len(reconstruct_items(lines)) == 1

    def test_dash_filler_truncates_line(self):
        lines = ["LOT PRICE", "1 Brass lamp 10.00 ---------- continued overleaf"]
        items = reconstruct_items(lines)
        assert [(i.description, i.price) for i in items] == [("Brass lamp", Decimal("10.00"))]

    def test_dash_filler_before_price(self):
        lines = ["LOT PRICE", "1 Oak chair", "----------", "with cushion 20.00"]
        items = reconstruct_items(lines)
        assert [i.description for i in items] == ["Oak chair with cushion"]

    def test_blank_lines_are_ignored(self):
        lines = ["LOT PRICE", "", "1 Oak chair", "   ", "with cushion 20.00"]
        assert reconstruct_items(lines)[0].description == "Oak chair with cushion"

    def test_price_only_line_is_counted_as_discarded(self):
        rec = LineReconstructor()
        items = rec.run(["LOT PRICE", "17 5.00", "1 Oak chair 20.00"])
        assert [i.description for i in items] == ["Oak chair"]
        assert rec.discarded == 1
        assert rec.state is ReconstructorState.STOPPED
