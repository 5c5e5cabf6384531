"""
Tests for produce detection and multi-row produce merging
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from line_stitcher import LogicalLine
from produce_detector import (
    annotate_produce,
    detect_produce,
    has_produce_signals,
    looks_like_produce_detail,
    merge_produce_lines,
    normalize_unit,
)


def test_full_produce_row_validates_math():
    meta = detect_produce("BANANAS 3.04 lb @ 0.54 1.64")

    assert meta.weight == Decimal("3.04")
    assert meta.unit == "lb"
    assert meta.unit_price == Decimal("0.54")
    assert meta.line_total == Decimal("1.64")
    assert meta.name_part == "BANANAS"
    assert meta.math_validated
    assert meta.confidence_score == 1.0
    assert meta.reason == "produce:full+mathOK"


def test_total_printed_before_weight():
    meta = detect_produce("BANANAS 1.64 N 3.04 lb @ 0.54 /lb")

    assert meta.line_total == Decimal("1.64")
    assert meta.weight == Decimal("3.04")
    assert meta.unit_price == Decimal("0.54")
    assert meta.name_part == "BANANAS N"
    assert meta.math_validated


def test_math_mismatch_lowers_confidence():
    meta = detect_produce("BANANAS 3.04 lb @ 0.54 2.50")

    assert not meta.math_validated
    assert meta.line_total == Decimal("2.50")
    assert meta.confidence_score == pytest.approx(0.85)
    assert meta.reason == "produce:full+mathMismatch"


def test_tolerance_is_configurable():
    assert not detect_produce("BANANAS 3.04 lb @ 0.54 1.70").math_validated
    assert detect_produce("BANANAS 3.04 lb @ 0.54 1.70", Decimal("0.10")).math_validated


def test_rate_only_row_has_no_line_total():
    meta = detect_produce("BANANAS 3.04 lb @ 0.54")

    assert meta.line_total is None
    assert meta.unit_price == Decimal("0.54")
    assert meta.confidence_score == pytest.approx(0.8)
    assert meta.reason == "produce:partial missing=lineTotal"


def test_count_priced_row():
    meta = detect_produce("LIMES 2 ea @ 1 / 0.50 1.00")

    assert meta.weight == Decimal("2")
    assert meta.unit == "ea"
    assert meta.unit_price == Decimal("0.50")
    assert meta.line_total == Decimal("1.00")
    assert meta.math_validated


def test_rows_without_signals():
    assert detect_produce("MILK 3.49") is None
    assert detect_produce("") is None
    assert not has_produce_signals("EGGS 12 CT 2.99")


def test_normalize_unit():
    assert normalize_unit("LBS") == "lb"
    assert normalize_unit("pounds") == "lb"
    assert normalize_unit("each") == "ea"
    assert normalize_unit("xyz") is None
    assert normalize_unit(None) is None


def test_merge_name_detail_and_total_rows():
    lines = [LogicalLine("BANANAS"), LogicalLine("3.04 lb @ 0.54"), LogicalLine("1.64"), LogicalLine("MILK 3.49")]
    out = merge_produce_lines(lines)

    assert [l.text for l in out] == ["BANANAS 3.04 lb @ 0.54 1.64", "MILK 3.49"]
    assert out[0].produce_merged and out[0].merged
    assert out[1] is lines[3]


def test_merge_without_money_row():
    out = merge_produce_lines([LogicalLine("GALA APPLES"), LogicalLine("2.10 lb @ 1.29/lb"), LogicalLine("EGGS 2.99")])
    assert [l.text for l in out] == ["GALA APPLES 2.10 lb @ 1.29/lb", "EGGS 2.99"]


def test_produce_detail_requires_unit():
    assert looks_like_produce_detail("3.04 lb @ 0.54")
    assert not looks_like_produce_detail("3.04 @ 0.54")


def test_annotate_produce_marks_merged_rows():
    merged = merge_produce_lines([LogicalLine("BANANAS"), LogicalLine("3.04 lb @ 0.54"), LogicalLine("1.64")])
    out = annotate_produce(merged + [LogicalLine("MILK 3.49")])

    assert out[0].produce_meta.merge_applied
    assert out[0].produce_meta.math_validated
    assert out[1].produce_meta is None
