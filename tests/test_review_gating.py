"""
Tests for confidence scoring and the review gate
"""

import itertools
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_gating import (
    HAS_SUSPICIOUS_LINES,
    LOW_CONFIDENCE,
    MISSING_TOTAL,
    MISSING_VENDOR,
    TOO_FEW_ITEMS,
    clamp01,
    compute_review,
    has_suspicious_lines,
    review_diagnostics,
    score_confidence,
)


def test_complete_small_receipt():
    # 0.20 + 0.20 + 0.25 + 3/40 + min(0.15, 1.0 * 0.25)
    assert score_confidence(True, True, True, 3, 3) == pytest.approx(0.875)


def test_line_contributions_are_capped():
    assert score_confidence(True, True, True, 80, 80) == pytest.approx(1.0)
    assert score_confidence(False, False, False, 8, 4) == pytest.approx(0.325)


def test_no_lines():
    assert score_confidence(False, False, False, 0, 0) == 0.0
    assert score_confidence(True, False, False, 0, 5) == pytest.approx(0.2)


def test_clamp01():
    assert clamp01(-1) == 0.0
    assert clamp01(2) == 1.0
    assert clamp01(float("nan")) == 0.0


def test_review_reasons_in_order():
    decision = compute_review(0.1, 0, False)

    assert decision.needs_review
    assert decision.reasons == [LOW_CONFIDENCE, TOO_FEW_ITEMS, MISSING_TOTAL]


def test_passing_receipt_needs_no_review():
    decision = compute_review(0.875, 3, True)

    assert not decision.needs_review
    assert decision.reasons == []
    assert decision.confidence == 0.875


def test_min_confidence_is_configurable():
    assert compute_review(0.875, 3, True, min_confidence=0.9).reasons == [LOW_CONFIDENCE]
    assert compute_review(0.85, 3, True).reasons == []


@pytest.mark.parametrize("lines, priced", [(0, 0), (3, 3), (8, 4), (80, 80)])
def test_header_signals_never_lower_confidence(lines, priced):
    for flags in itertools.product([False, True], repeat=3):
        base = score_confidence(*flags, lines, priced)
        for i, flag in enumerate(flags):
            if flag:
                continue
            raised = list(flags)
            raised[i] = True
            assert score_confidence(*raised, lines, priced) >= base


def test_diagnostics():
    assert review_diagnostics(False, []) == [MISSING_VENDOR, HAS_SUSPICIOUS_LINES]
    assert review_diagnostics(True, [("MILK 3.49", "MILK")]) == []
    assert review_diagnostics(False, [("MILK 3.49", "MILK")]) == [MISSING_VENDOR]


def test_suspicious_lines():
    assert has_suspicious_lines([("MILK 3.49", "MILK"), ("A1", "A")])
    assert has_suspicious_lines([("3.49", ""), ("2.99", None)])
    assert not has_suspicious_lines([("MILK 3.49", "MILK"), ("EGGS 2.99", "EGGS"), ("7.80-", "DISCOUNT")])


def test_diagnostics_leave_review_alone():
    decision = compute_review(0.875, 3, True)

    assert review_diagnostics(False, []) == [MISSING_VENDOR, HAS_SUSPICIOUS_LINES]
    assert not decision.needs_review
    assert decision.reasons == []
