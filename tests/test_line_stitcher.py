"""
Tests for logical line stitching
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from line_stitcher import (
    LogicalLine,
    StitchState,
    has_weight_or_rate,
    is_discount_ref_row,
    is_standalone_marker,
    is_totals_or_tender,
    looks_like_continuation,
    split_multi_sku_lines,
    stitch_logical_lines,
)


def _texts(lines):
    return [l.text for l in lines]


# ─── Classifiers ──────────────────────────────────────────────────────────────

def test_classifiers():
    assert is_totals_or_tender("SUBTOTAL 8.98")
    assert is_totals_or_tender("VISA 9.48")
    assert is_totals_or_tender("CASH 20.00")
    assert not is_totals_or_tender("MILK 3.49")

    assert is_standalone_marker("CUSTOMER COPY")
    assert is_standalone_marker("Thank you for shopping")

    assert is_discount_ref_row("351935 /847909 4.00-")
    assert not is_discount_ref_row("7.80-")
    assert not is_discount_ref_row("COUPON 1.00-")

    assert has_weight_or_rate("3.04 lb")
    assert has_weight_or_rate("0.69/lb")
    assert has_weight_or_rate("@ 0.54")

    assert looks_like_continuation("007874235186")
    assert looks_like_continuation("F")
    assert not looks_like_continuation("bananas")


# ─── Stitching ────────────────────────────────────────────────────────────────

def test_produce_fragments_become_one_row():
    out = stitch_logical_lines(["BANANAS", "3.04 lb @ 0.54", "1.64"])

    assert _texts(out) == ["BANANAS 3.04 lb @ 0.54 1.64"]
    assert out[0].merged


def test_discount_reference_joins_its_amount():
    out = stitch_logical_lines(["350276 /1207907", "7.80-"])
    assert _texts(out) == ["350276 /1207907 7.80-"]


def test_totals_and_tender_stay_standalone():
    out = stitch_logical_lines(["MILK", "TOTAL 3.49", "VISA 3.49"])

    assert _texts(out) == ["MILK", "TOTAL 3.49", "VISA 3.49"]
    assert not any(l.merged for l in out)


def test_inline_discount_reference_is_standalone():
    out = stitch_logical_lines(["EGGS", "351935 /847909 4.00-"])
    assert _texts(out) == ["EGGS", "351935 /847909 4.00-"]


def test_continuation_attaches_to_previous_row():
    out = stitch_logical_lines(["MILK 3.49", "007874235186"])

    assert _texts(out) == ["MILK 3.49 007874235186"]
    assert out[0].merged


def test_name_rows_flush_pending():
    out = stitch_logical_lines(["MILK", "EGGS", "2.99"])

    assert _texts(out) == ["MILK", "EGGS 2.99"]
    assert [l.merged for l in out] == [False, True]


def test_trailing_pending_is_flushed():
    assert _texts(stitch_logical_lines(["MILK 3.49", "BREAD"])) == ["MILK 3.49", "BREAD"]
    assert _texts(stitch_logical_lines(["007874235186"])) == ["007874235186"]


@pytest.mark.parametrize("raw", [
    ["BANANAS", "3.04 lb @ 0.54", "1.64", "TOTAL 1.64"],
    ["CUSTOMER COPY", "MILK", "EGGS", "2.99", "350276 /1207907", "7.80-", "F", "VISA 5.00"],
    ["A", "B", "C"],
    [],
])
def test_no_words_lost_or_reordered(raw):
    out = _texts(stitch_logical_lines(raw))
    assert " ".join(out).split() == " ".join(raw).split()


def test_blank_rows_are_ignored():
    assert _texts(stitch_logical_lines(["", "  ", "MILK 3.49"])) == ["MILK 3.49"]


def test_state_transitions_return_new_states():
    empty = StitchState()
    pending = empty.start_pending("BANANAS")
    extended = pending.extend_pending("3.04 lb")

    assert empty.pending is None
    assert pending.pending == "BANANAS"
    assert extended.pending == "BANANAS 3.04 lb"
    assert extended.pending_parts == 2

    flushed = extended.flush()
    assert flushed.pending is None
    assert flushed.logical == (LogicalLine("BANANAS 3.04 lb", merged=True),)


# ─── Multi-SKU splitting ──────────────────────────────────────────────────────

def test_split_multi_sku_lines():
    lines = [LogicalLine("350276 /1207907 7.80-", merged=True), LogicalLine("512515 ORG BANANA 1.99")]
    out = split_multi_sku_lines(lines)

    assert _texts(out) == ["350276 /", "1207907 7.80-", "512515 ORG BANANA 1.99"]
    assert out[0].merged and out[1].merged
    assert out[2] is lines[1]
