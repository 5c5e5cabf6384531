"""
Source Selector
===============
Chooses between the provider's linear text and the geometry-reconstructed
text for one receipt.

Scoring heuristic (higher = more receipt-like)
──────────────────────────────────────────────
  money tokens        × 6     "12.99"  "3,07"
  barcode runs        × 4     11-14 digits
  SKU runs            × 2     4-7 digits
  totals keywords     × 8     subtotal | total | tax | change due
  structure           × 0.5   non-empty lines, capped at 120
  URLs                × -10

Selection policy
────────────────
  'geo'   geometry text when present, else linear text
  'text'  linear text
  'auto'  geometry only when it beats linear text by more than the margin
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from loguru import logger


EMPTY_SCORE = -1e9
DEFAULT_MARGIN = 5.0
_MAX_STRUCTURE_LINES = 120

# ─── Patterns ─────────────────────────────────────────────────────────────────

_MONEY   = re.compile(r'\b\d{1,7}[.,]\d{2}\b')
_BARCODE = re.compile(r'\b\d{11,14}\b')
_SKU     = re.compile(r'\b\d{4,7}\b')
_TOTALS  = re.compile(r'\b(subtotal|total|tax|change\s+due)\b', re.IGNORECASE)
_URL     = re.compile(r'https?://', re.IGNORECASE)


@dataclass(frozen=True)
class SourceChoice:
    """The chosen text, which source it came from, and both scores."""
    text: str
    mode: str                         # 'text' | 'geo'
    scores: Dict[str, float] = field(default_factory=dict)


def score_receipt_text(text: Optional[str]) -> float:
    """Receipt-likeness score.  Blank text scores EMPTY_SCORE."""
    t = (text or "").replace("\r", "")
    if not t.strip():
        return EMPTY_SCORE

    lines = [l.strip() for l in re.split(r'\n+', t) if l.strip()]

    return (
        len(_MONEY.findall(t)) * 6
        + len(_BARCODE.findall(t)) * 4
        + len(_SKU.findall(t)) * 2
        + len(_TOTALS.findall(t)) * 8
        + min(len(lines), _MAX_STRUCTURE_LINES) * 0.5
        - len(_URL.findall(t)) * 10
    )


def choose_ocr_text(
    text: Optional[str],
    geo_text: Optional[str] = None,
    mode: str = "auto",
    margin: float = DEFAULT_MARGIN,
) -> SourceChoice:
    """
    Pick the representation to parse.

    Args:
        text:     linear text from the OCR provider
        geo_text: text rebuilt from word geometry (may be None)
        mode:     'text' | 'geo' | 'auto'
        margin:   auto-mode lead geometry must exceed

    Returns:
        SourceChoice
    """
    text = text or ""
    score_text = score_receipt_text(text)
    score_geo = score_receipt_text(geo_text) if geo_text else EMPTY_SCORE
    scores = {"text": score_text, "geo": score_geo}

    if mode == "geo" and geo_text:
        choice = SourceChoice(text=geo_text, mode="geo", scores=scores)
    elif mode == "text":
        choice = SourceChoice(text=text, mode="text", scores=scores)
    elif geo_text and score_geo > score_text + margin:
        choice = SourceChoice(text=geo_text, mode="geo", scores=scores)
    else:
        choice = SourceChoice(text=text, mode="text", scores=scores)

    logger.debug(
        f"[SourceSelector] mode={mode} → {choice.mode} "
        f"(text={score_text:.1f}, geo={score_geo:.1f})"
    )
    return choice
