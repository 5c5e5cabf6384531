"""
Tests for item extraction from logical rows
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from item_extractor import extract_item, extract_items, normalize_item_unit
from line_stitcher import LogicalLine
from name_normalizer import NAME_NORMALIZER_VERSION, normalize_name
from produce_detector import detect_produce


def _item(text, **kwargs):
    return extract_item(LogicalLine(text, **kwargs))


def test_barcode_and_flags_removed_from_name():
    item = _item("GV MILK 007874235186 F 3.48 N")

    assert item.name == "GV MILK"
    assert item.barcode == "007874235186"
    assert item.vendor_sku is None
    assert item.line_total == Decimal("3.48")
    assert item.unit_price == Decimal("3.48")
    assert item.original_quantity == Decimal("1")
    assert item.raw_line_text == "GV MILK 007874235186 F 3.48 N"


def test_leading_sku():
    item = _item("512515 ORG BANANA 1.99 N")

    assert item.vendor_sku == "512515"
    assert item.name == "ORG BANANA"
    assert item.normalized_name == "ORG BANANA"


@pytest.mark.parametrize("text, unit", [
    ("CHEERIOS 18 OZ 4.99", "oz"),
    ("EGGS 12 CT 2.99", "each"),
    ("WATER 24 PK 5.49", "pack"),
    ("MILK 3.49", None),
])
def test_unit_from_name(text, unit):
    assert _item(text).original_unit == unit


def test_normalize_item_unit():
    assert normalize_item_unit("LBS") == "lb"
    assert normalize_item_unit("Each") == "each"


def test_only_the_chosen_token_is_removed():
    assert _item("RATE @ 0.54 0.54").name == "RATE @ 0.54"


def test_non_items():
    assert _item("TOTAL 9.48") is None
    assert _item("VISA 9.48") is None
    assert _item("MILK") is None
    assert _item("   ") is None


def test_discount_rows():
    item = _item("DISCOUNT 1207907 7.80-")
    assert item.name == "DISCOUNT 1207907"
    assert item.line_total == Decimal("-7.80")

    bare = _item("DISCOUNT")
    assert bare.name == "DISCOUNT"
    assert bare.line_total is None


def test_rate_only_row_has_unit_price_but_no_total():
    item = _item("APPLES 0.69/lb")
    assert item.unit_price == Decimal("0.69")
    assert item.line_total is None


def test_produce_row_uses_weight_and_rate():
    text = "BANANAS 3.04 lb @ 0.54 1.64"
    item = _item(text, produce_meta=detect_produce(text))

    assert item.name == "BANANAS"
    assert item.original_quantity == Decimal("3.04")
    assert item.original_unit == "lb"
    assert item.weight == Decimal("3.04")
    assert item.unit == "lb"
    assert item.unit_price == Decimal("0.54")
    assert item.line_total == Decimal("1.64")
    assert item.produce_meta.math_validated


def test_produce_total_before_weight_stays_out_of_name():
    text = "BANANAS 1.64 N 3.04 lb @ 0.54 /lb"
    item = _item(text, produce_meta=detect_produce(text))

    assert item.name == "BANANAS"
    assert item.line_total == Decimal("1.64")
    assert item.unit_price == Decimal("0.54")
    assert item.weight == Decimal("3.04")


def test_items_carry_normalizer_hash():
    item = _item("GV MILK 3.48")

    assert item.name_normalizer_version == NAME_NORMALIZER_VERSION
    assert item.name_hash == normalize_name("GV MILK").hash
    assert len(item.name_hash) == 64


def test_extract_items_counts_priced_rows():
    lines = [
        LogicalLine("MILK 3.49"),
        LogicalLine("TOTAL 3.49"),
        LogicalLine("350276 /"),
        LogicalLine("DISCOUNT 7.80-"),
        LogicalLine("007874235186 3.48"),
    ]
    items, priced = extract_items(lines)

    assert [i.name for i in items] == ["MILK", "DISCOUNT"]
    # the barcode-only row is priced but yields no name
    assert priced == 3
