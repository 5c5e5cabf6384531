"""
Confidence Scorer / Review Gate
===============================
Structural-completeness confidence (0-1, not a probability) and the
advisory needs-review flag surfaced to downstream review workflows.

    0.20  vendor resolved
    0.20  purchase date found
    0.25  total found
    min(0.20, items / 40)
    min(0.15, priced / items × 0.25)

Review reasons
──────────────
  LOW_CONFIDENCE   score below the configured minimum (default 0.85)
  TOO_FEW_ITEMS    fewer than 3 items extracted
  MISSING_TOTAL    no receipt total found

Diagnostics (advisory, never change needs_review)
─────────────────────────────────────────────────
  MISSING_VENDOR        no vendor resolved
  HAS_SUSPICIOUS_LINES  no items, more than 25% of items from rows of at
                        most 2 characters, or more than 60% without a name
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from loguru import logger


DEFAULT_MIN_CONFIDENCE = 0.85
MIN_ITEMS = 3

LOW_CONFIDENCE = "LOW_CONFIDENCE"
TOO_FEW_ITEMS = "TOO_FEW_ITEMS"
MISSING_TOTAL = "MISSING_TOTAL"

MISSING_VENDOR = "MISSING_VENDOR"
HAS_SUSPICIOUS_LINES = "HAS_SUSPICIOUS_LINES"

_SHORT_LINE_LEN = 2
_MAX_SHORT_RATIO = 0.25
_MAX_NAMELESS_RATIO = 0.6


@dataclass(frozen=True)
class ReviewDecision:
    confidence: float
    needs_review: bool
    reasons: List[str] = field(default_factory=list)


def clamp01(n: float) -> float:
    if n != n:
        return 0.0
    return max(0.0, min(1.0, n))


def score_confidence(
    has_vendor: bool,
    has_date: bool,
    has_total: bool,
    line_count: int,
    priced_line_count: int,
) -> float:
    score = 0.0
    if has_vendor:
        score += 0.20
    if has_date:
        score += 0.20
    if has_total:
        score += 0.25
    score += min(0.20, line_count / 40)

    priced_ratio = priced_line_count / line_count if line_count > 0 else 0.0
    score += min(0.15, priced_ratio * 0.25)

    return round(clamp01(score), 4)


def compute_review(
    confidence: float,
    item_count: int,
    has_total: bool,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> ReviewDecision:
    """Gate a scored receipt.  needs_review is True exactly when reasons exist."""
    reasons: List[str] = []
    if confidence < min_confidence:
        reasons.append(LOW_CONFIDENCE)
    if item_count < MIN_ITEMS:
        reasons.append(TOO_FEW_ITEMS)
    if not has_total:
        reasons.append(MISSING_TOTAL)

    if reasons:
        logger.debug(f"[ReviewGate] needs review: {', '.join(reasons)} (confidence={confidence:.2f})")
    return ReviewDecision(confidence=confidence, needs_review=bool(reasons), reasons=reasons)


def has_suspicious_lines(lines: Sequence[Tuple[str, Optional[str]]]) -> bool:
    """lines: (raw_line_text, name) per extracted item."""
    if not lines:
        return True
    short = sum(1 for raw, _ in lines if len((raw or "").strip()) <= _SHORT_LINE_LEN)
    nameless = sum(1 for _, name in lines if not (name or "").strip())
    return short / len(lines) > _MAX_SHORT_RATIO or nameless / len(lines) > _MAX_NAMELESS_RATIO


def review_diagnostics(has_vendor: bool, lines: Sequence[Tuple[str, Optional[str]]]) -> List[str]:
    diagnostics: List[str] = []
    if not has_vendor:
        diagnostics.append(MISSING_VENDOR)
    if has_suspicious_lines(lines):
        diagnostics.append(HAS_SUSPICIOUS_LINES)
    return diagnostics
