"""
Logical Line Stitcher
=====================
Merges OCR-fragmented rows into one logical row per purchased item.

OCR regularly breaks a single item across rows:

    BANANAS                 ← name only
    3.04 lb @ 0.54          ← weight / rate (no line total)
    1.64                    ← line total

    350276 /1207907         ← discount reference
    7.80-                   ← amount

The stitcher is a fold over raw rows with an explicit StitchState carrying
the emitted logical rows and a single pending fragment.

Classification per row (first match wins)
─────────────────────────────────────────
  1. totals / tender / cash / header noise   flush pending, emit standalone
  2. discount reference ("351935 /847909 4.00-")  flush pending, emit standalone
  3. has a line-total money token            pending + row → emit, else emit row
  4. continuation (5-13 digit code, 1-2 letter flag, weight or rate)
                                             append to pending, else to the
                                             previous logical row, else
                                             becomes pending
  5. name-like                               flush pending, row becomes pending

Pending is flushed at the end of input, so no row is ever lost.
"""

import re
from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from money_tokens import pick_line_total_token, split_tail_amount
from receipt_models import ProduceMeta


# ─── Row classification patterns ──────────────────────────────────────────────

TOTALS_RE = re.compile(r'\b(subtotal|tax|total|amount due|balance due|change)\b', re.IGNORECASE)
TENDER_RE = re.compile(r'\b(visa|mastercard|amex|debit|credit)\b', re.IGNORECASE)
CASH_RE   = re.compile(r'\bcash\b', re.IGNORECASE)

HEADER_NOISE_RE = re.compile(
    r'\b(orders\s*&\s*purchases|member|approved|purchase|thank\s*you|customer\s*copy|'
    r'order\s*summary|order\s*details|delivered|your\s*package\s+was\s+left|'
    r'sold\s+by|supplied\s+by|return\s+items?)\b',
    re.IGNORECASE,
)

_SKU_OR_CODE = re.compile(r'^\d{5,13}\b')
_FLAG_PREFIX = re.compile(r'^([A-Z]{1,2})\b')
_WEIGHT      = re.compile(r'\b\d+(?:\.\d+)?\s*(lb|lbs|kg|g|oz)\b', re.IGNORECASE)
_PER_UNIT    = re.compile(r'/\s*(lb|lbs|kg|g|oz)\b', re.IGNORECASE)
_LETTER      = re.compile(r'[A-Za-z]')
_SKU_BOUNDARY = re.compile(r'\b\d{5,8}\b')


@dataclass(frozen=True)
class LogicalLine:
    """One reconstructed row representing a single purchasable entry."""
    text: str
    merged: bool = False
    produce_merged: bool = False
    produce_meta: Optional[ProduceMeta] = None


@dataclass(frozen=True)
class StitchState:
    """Fold accumulator: emitted rows plus the single pending fragment."""
    logical: Tuple[LogicalLine, ...] = ()
    pending: Optional[str] = None
    pending_parts: int = 0

    def emit(self, text: str, merged: bool = False) -> "StitchState":
        return replace(self, logical=self.logical + (LogicalLine(_collapse(text), merged),))

    def flush(self) -> "StitchState":
        if not self.pending:
            return self
        line = LogicalLine(_collapse(self.pending), merged=self.pending_parts > 1)
        return StitchState(logical=self.logical + (line,))

    def start_pending(self, text: str) -> "StitchState":
        return replace(self, pending=text, pending_parts=1)

    def extend_pending(self, text: str) -> "StitchState":
        return replace(
            self,
            pending=_collapse(f"{self.pending} {text}"),
            pending_parts=self.pending_parts + 1,
        )

    def extend_last(self, text: str) -> "StitchState":
        last = self.logical[-1]
        joined = LogicalLine(_collapse(f"{last.text} {text}"), merged=True)
        return replace(self, logical=self.logical[:-1] + (joined,))


def _collapse(text: str) -> str:
    return re.sub(r'\s{2,}', ' ', text).strip()


# ─── Classifiers (shared with the item extractor) ─────────────────────────────

def is_totals_or_tender(line: str) -> bool:
    return bool(TOTALS_RE.search(line) or TENDER_RE.search(line) or CASH_RE.search(line))


def is_standalone_marker(line: str) -> bool:
    """Totals, tender, cash and header-noise rows are never merged."""
    return is_totals_or_tender(line) or bool(HEADER_NOISE_RE.search(line))


def is_discount_ref_row(line: str) -> bool:
    """Trailing negative amount after a prefix with no letters."""
    tail = split_tail_amount(line)
    if tail is None or tail.value is None or tail.value >= 0:
        return False
    return bool(tail.prefix) and not _LETTER.search(tail.prefix)


def has_weight_or_rate(line: str) -> bool:
    return bool(_WEIGHT.search(line) or "@" in line or _PER_UNIT.search(line))


def looks_like_continuation(line: str) -> bool:
    return bool(_SKU_OR_CODE.match(line) or _FLAG_PREFIX.match(line) or has_weight_or_rate(line))


# ─── Fold ─────────────────────────────────────────────────────────────────────

def stitch_step(state: StitchState, raw_line: str) -> StitchState:
    """Consume one raw row."""
    line = (raw_line or "").strip()
    if not line:
        return state

    if is_standalone_marker(line) or is_discount_ref_row(line):
        return state.flush().emit(line)

    token = pick_line_total_token(line)
    if token is not None and not token.per_unit:
        if state.pending:
            joined = f"{state.pending} {line}"
            return StitchState(logical=state.logical).emit(joined, merged=True)
        return state.emit(line)

    if looks_like_continuation(line):
        if state.pending:
            return state.extend_pending(line)
        if state.logical:
            return state.extend_last(line)
        return state.start_pending(line)

    return state.flush().start_pending(line)


def stitch_logical_lines(raw_lines: Iterable[str]) -> List[LogicalLine]:
    """
    Fold raw rows into logical rows.

    Args:
        raw_lines: cleaned rows in reading order

    Returns:
        Logical rows; every non-blank input row is represented exactly once
    """
    raw_lines = list(raw_lines)
    state = reduce(stitch_step, raw_lines, StitchState()).flush()
    logical = list(state.logical)

    merged = sum(1 for l in logical if l.merged)
    logger.debug(f"[Stitcher] {len(raw_lines)} raw → {len(logical)} logical ({merged} merged)")
    return logical


def split_multi_sku_lines(lines: Iterable[LogicalLine]) -> List[LogicalLine]:
    """
    Split a row holding more than one 5-8 digit SKU at each SKU boundary.

    "350276 /1207907 7.80-" → "350276 /", "1207907 7.80-"
    """
    out: List[LogicalLine] = []
    for line in lines:
        if len(_SKU_BOUNDARY.findall(line.text)) <= 1:
            out.append(line)
            continue
        parts = [p.strip() for p in re.split(r'(?=\b\d{5,8}\b)', line.text)]
        out.extend(replace(line, text=p) for p in parts if p)
    return out
