"""
Tests for OCR source selection
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from source_selector import EMPTY_SCORE, choose_ocr_text, score_receipt_text


def test_score_counts_money_totals_and_structure():
    # 2 money × 6 + 1 total × 8 + 2 lines × 0.5
    assert score_receipt_text("MILK 3.49\nTOTAL 3.49") == pytest.approx(21.0)


def test_score_penalises_urls():
    assert score_receipt_text("https://x.com") == pytest.approx(-9.5)


def test_score_barcodes_and_skus():
    # barcode ×4; the 12-digit run is not a 4-7 digit SKU
    assert score_receipt_text("007874235186") == pytest.approx(4.5)
    assert score_receipt_text("512515") == pytest.approx(2.5)


def test_blank_text_scores_empty():
    assert score_receipt_text("") == EMPTY_SCORE
    assert score_receipt_text("   \n  ") == EMPTY_SCORE
    assert score_receipt_text(None) == EMPTY_SCORE


def test_text_mode_always_uses_linear_text():
    choice = choose_ocr_text("MILK 3.49", "MILK 3.49\nTOTAL 3.49\nTAX 0.10", mode="text")
    assert choice.mode == "text"
    assert choice.text == "MILK 3.49"


def test_geo_mode_uses_geometry_when_present():
    choice = choose_ocr_text("MILK 3.49", "BANANAS 1.64", mode="geo")
    assert choice.mode == "geo"
    assert choice.text == "BANANAS 1.64"


def test_geo_mode_falls_back_without_geometry():
    choice = choose_ocr_text("MILK 3.49", None, mode="geo")
    assert choice.mode == "text"
    assert choice.scores["geo"] == EMPTY_SCORE


def test_auto_requires_margin():
    text = "MILK 3.49"                      # 6.5
    geo = "MILK 3.49\nTOTAL 3.49"           # 21.0

    assert choose_ocr_text(text, geo, mode="auto").mode == "geo"
    assert choose_ocr_text(text, geo, mode="auto", margin=20).mode == "text"


def test_auto_ties_keep_linear_text():
    choice = choose_ocr_text("MILK 3.49", "MILK 3.49")
    assert choice.mode == "text"
    assert choice.scores == {"text": pytest.approx(6.5), "geo": pytest.approx(6.5)}
