"""
Semantic Repair
===============
Post-merge cleanup of logical rows.

  "E E" / "F F F"           rendering artefacts, dropped
  "7.80-"                   → "DISCOUNT 7.80-"
  "351935 /847909 4.00-"    → "DISCOUNT 351935 /847909 4.00-"   (reference kept)
  "COUPON MILK 1.00-"       → "DISCOUNT COUPON MILK 1.00-"

Every negative-amount row therefore becomes an explicit discount item and
never bleeds into a neighbouring product name.  Totals and tender rows keep
their text ("CHANGE DUE -0.00" stays as printed).
"""

import re
from dataclasses import replace
from typing import Iterable, List

from loguru import logger

from line_stitcher import LogicalLine, is_totals_or_tender
from money_tokens import split_tail_amount


_REPEATED_LETTER = re.compile(r'^([A-Z])(?:\s+\1)+$')
_DISCOUNT_PREFIX = re.compile(r'^discount\b', re.IGNORECASE)
_LETTER = re.compile(r'[A-Za-z]')


def repair_line_text(text: str) -> str:
    """Discount labelling for a single row; other rows are returned unchanged."""
    tail = split_tail_amount(text)
    if tail is None or tail.value is None or tail.value >= 0:
        return text

    if not tail.prefix:
        return f"DISCOUNT {tail.amount}"

    if not _LETTER.search(tail.prefix):
        return " ".join(f"DISCOUNT {tail.prefix} {tail.amount}".split())

    if is_totals_or_tender(text) or _DISCOUNT_PREFIX.match(text):
        return text
    return " ".join(f"DISCOUNT {tail.prefix} {tail.amount}".split())


def semantic_repair(lines: Iterable[LogicalLine]) -> List[LogicalLine]:
    """Drop artefact rows and label negative rows as discounts."""
    out: List[LogicalLine] = []
    dropped = relabelled = 0

    for line in lines:
        text = line.text.strip()
        if not text:
            continue
        if _REPEATED_LETTER.match(text):
            dropped += 1
            continue

        repaired = repair_line_text(text)
        if repaired != text:
            relabelled += 1
            out.append(replace(line, text=repaired, produce_meta=None))
        else:
            out.append(line)

    logger.debug(f"[SemanticRepair] dropped={dropped} discounts={relabelled}")
    return out
