"""
Produce Detector & Merger
=========================
Weight/rate-priced items (bananas, deli, bulk) are printed as:

    BANANAS 3.04 lb @ 0.54 /lb        1.64
    APPLES GALA  2.10 lb @ 1.29       2.71
    LIMES        @ 1 / 0.50           0.50

and OCR often spreads them over two or three rows.

Pass 1: merge
──────────────
  name-only row  +  detail row (digits, unit token, weight or rate marker)
                 +  optional money-only row
  → one row, tagged produce_merged

Pass 2: detect
───────────────
  weight + unit   "3.04 lb", "2 ea"
  unit price      "@ 1 / 0.50"  >  "@ 0.54"  >  "0.69/lb"
  line total      last money token that is not bound to a rate or weight
  name part       text before the weight token

Confidence = 0.35 (weight+unit) + 0.35 (unit price) + 0.20 (line total)
           + 0.10 (name has letters); when every part is present the weight ×
unit-price math shifts it by ±0.15 (floor 0.2, cap 1.0).  A math mismatch
lowers confidence; the row is still reported.
"""

import re
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional

from loguru import logger

from line_stitcher import LogicalLine
from money_tokens import has_money, is_money_only_line, parse_money, pick_line_total_token
from receipt_models import ProduceMeta


DEFAULT_TOLERANCE = Decimal("0.02")

# ─── Units ────────────────────────────────────────────────────────────────────

UNIT_ALIASES = {
    "lb": "lb", "lbs": "lb", "pound": "lb", "pounds": "lb",
    "kg": "kg", "kilogram": "kg", "kilograms": "kg",
    "g": "g", "gram": "g", "grams": "g",
    "oz": "oz", "ounce": "oz", "ounces": "oz",
    "ea": "ea", "each": "ea",
    "ct": "ct", "count": "ct",
    "pc": "pc", "pcs": "pc", "piece": "pc", "pieces": "pc",
}

# ─── Patterns ─────────────────────────────────────────────────────────────────

_UNIT_TOKEN    = re.compile(r'\b(lb|lbs|kg|g|oz|ea|ct|pc|pcs|each)\b', re.IGNORECASE)
_WEIGHT_DEC    = re.compile(r'\b\d+(?:\.\d+)?\s*(lb|lbs|kg|g|oz)\b', re.IGNORECASE)
_RATE_MARKER   = re.compile(r'@|/\s*(lb|kg|g|oz)\b', re.IGNORECASE)
_WEIGHT_UNIT   = re.compile(r'\b(\d+(?:\.\d+)?)\s*(lb|lbs|kg|g|oz|ea|ct|pc|pcs|each)\b', re.IGNORECASE)

_UNIT_PRICE_PATTERNS = [
    re.compile(r'@\s*\d+(?:\.\d+)?\s*/\s*\$?(\d+(?:\.\d{2})?)\b', re.IGNORECASE),  # @ 1 / 0.50
    re.compile(r'@\s*\$?(\d+(?:\.\d{2})?)\b', re.IGNORECASE),                       # @ 0.54
    re.compile(r'\$?(\d+(?:\.\d{2})?)\s*/\s*(?:lb|lbs|kg|g|oz)\b', re.IGNORECASE),  # 0.69/lb
]

_NAME_TAIL = re.compile(r'[@\-\s]+$')
_LETTER    = re.compile(r'[A-Za-z]')


def normalize_unit(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    return UNIT_ALIASES.get(raw.lower().replace(".", "").strip())


def has_produce_signals(line: str) -> bool:
    """Unit token with a rate marker, or a decimal weight with a rate marker."""
    has_rate = bool(_RATE_MARKER.search(line))
    if _UNIT_TOKEN.search(line) and has_rate:
        return True
    return bool(_WEIGHT_DEC.search(line)) and has_rate


def _unit_price(line: str) -> Optional[Decimal]:
    for pattern in _UNIT_PRICE_PATTERNS:
        m = pattern.search(line)
        if m:
            return parse_money(m.group(1))
    return None


# ─── Detection ────────────────────────────────────────────────────────────────

def detect_produce(line_raw: str, tolerance: Decimal = DEFAULT_TOLERANCE) -> Optional[ProduceMeta]:
    """
    Structured produce annotation for one row, or None when the row shows
    no weight/rate signals.

    Args:
        line_raw:  logical row text
        tolerance: absolute money tolerance for weight × unit price

    Returns:
        ProduceMeta (possibly partial; see reason)
    """
    line = " ".join((line_raw or "").split())
    if not line or not has_produce_signals(line):
        return None

    total_token = pick_line_total_token(line)
    line_total = total_token.value if total_token and not total_token.per_unit else None

    wm = _WEIGHT_UNIT.search(line)
    weight = Decimal(wm.group(1)) if wm else None
    unit = normalize_unit(wm.group(2)) if wm else None

    unit_price = _unit_price(line)

    if wm:
        head = line[:wm.start()]
        # "BANANAS 1.64 N 3.04 lb @ 0.54": the total printed before the weight
        if line_total is not None and total_token.end <= wm.start():
            head = head[:total_token.start] + head[total_token.end:]
        name_part = _NAME_TAIL.sub("", " ".join(head.split())).strip()
    elif total_token is not None:
        name_part = line[:total_token.start].strip()
    else:
        name_part = ""

    has_all = weight is not None and unit is not None and unit_price is not None and line_total is not None
    math_validated = False
    if has_all:
        expected = weight * unit_price
        math_validated = abs(expected - line_total) <= max(Decimal(str(tolerance)), DEFAULT_TOLERANCE)

    confidence = 0.0
    missing = []
    if weight is not None and unit:
        confidence += 0.35
    else:
        missing.append("weight")
    if unit_price is not None:
        confidence += 0.35
    else:
        missing.append("unitPrice")
    if line_total is not None:
        confidence += 0.2
    else:
        missing.append("lineTotal")
    if name_part and _LETTER.search(name_part):
        confidence += 0.1
    else:
        missing.append("name")

    if has_all and math_validated:
        confidence = min(1.0, confidence + 0.15)
    elif has_all:
        confidence = max(0.2, confidence - 0.15)

    if has_all:
        reason = "produce:full+mathOK" if math_validated else "produce:full+mathMismatch"
    else:
        reason = f"produce:partial missing={','.join(missing)}"

    return ProduceMeta(
        weight=weight,
        unit=unit,
        unit_price=unit_price,
        line_total=line_total,
        name_part=name_part or None,
        confidence_score=round(max(0.0, min(1.0, confidence)), 4),
        math_validated=math_validated,
        reason=reason,
    )


# ─── Merging ──────────────────────────────────────────────────────────────────

def looks_like_produce_detail(line: str) -> bool:
    has_unit = bool(_UNIT_TOKEN.search(line))
    has_weight = bool(_WEIGHT_DEC.search(line))
    has_rate = bool(_RATE_MARKER.search(line))
    return bool(re.search(r'\d', line)) and has_unit and (has_weight or has_rate)


def has_letters_no_money(line: str) -> bool:
    line = (line or "").strip()
    return bool(line) and bool(_LETTER.search(line)) and not has_money(line)


def merge_produce_lines(lines: Iterable[LogicalLine]) -> List[LogicalLine]:
    """Fold name-only + produce-detail (+ money-only) rows into one row."""
    src = [l for l in lines if l.text.strip()]
    out: List[LogicalLine] = []

    i = 0
    while i < len(src):
        a = src[i]
        b = src[i + 1] if i + 1 < len(src) else None
        c = src[i + 2] if i + 2 < len(src) else None

        if b is not None and has_letters_no_money(a.text) and looks_like_produce_detail(b.text):
            parts = [a.text, b.text]
            consumed = 2
            if c is not None and is_money_only_line(c.text):
                parts.append(c.text)
                consumed = 3
            out.append(LogicalLine(
                text=" ".join(" ".join(parts).split()),
                merged=True,
                produce_merged=True,
            ))
            i += consumed
            continue

        out.append(a)
        i += 1

    merged = sum(1 for l in out if l.produce_merged)
    if merged:
        logger.debug(f"[Produce] merged {merged} multi-row produce item(s)")
    return out


def annotate_produce(lines: Iterable[LogicalLine], tolerance: Decimal = DEFAULT_TOLERANCE) -> List[LogicalLine]:
    """Attach ProduceMeta to every row where detection succeeds."""
    out: List[LogicalLine] = []
    for line in lines:
        meta = detect_produce(line.text, tolerance)
        if meta is not None:
            meta = meta.model_copy(update={"merge_applied": line.produce_merged})
        out.append(replace(line, produce_meta=meta))

    found = sum(1 for l in out if l.produce_meta is not None)
    logger.debug(f"[Produce] {found} produce row(s) detected")
    return out
