"""
Receipt-level fields: purchase date, currency, total and tax.
"""

import re
from decimal import Decimal
from typing import List, Optional, Tuple

from money_tokens import last_money_token


_DATE_PATTERNS = [
    # 2026-02-28  2026/2/28
    re.compile(r'\b(20\d{2})[-/](0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])\b'),
    # 02/28/2026
    re.compile(r'\b(0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])[-/](20\d{2})\b'),
    # 02/28/26
    re.compile(r'\b(0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])[-/](\d{2})\b'),
]

_CURRENCY_MARKERS = [
    ("CAD", re.compile(r'\bCAD\b|C\$')),
    ("EUR", re.compile(r'\bEUR\b|€')),
    ("GBP", re.compile(r'\bGBP\b|£')),
    ("USD", re.compile(r'\bUSD\b|\$')),
]

_TAX   = re.compile(r'\btax\b', re.IGNORECASE)
_TOTAL = re.compile(r'\b(total|amount due|balance due)\b', re.IGNORECASE)


def extract_purchase_date(text: str) -> Optional[str]:
    """First date found, as YYYY-MM-DD."""
    for idx, pattern in enumerate(_DATE_PATTERNS):
        m = pattern.search(text or "")
        if not m:
            continue
        if idx == 0:
            yyyy, mm, dd = m.group(1), m.group(2), m.group(3)
        elif idx == 1:
            mm, dd, yyyy = m.group(1), m.group(2), m.group(3)
        else:
            mm, dd, yyyy = m.group(1), m.group(2), f"20{m.group(3)}"
        return f"{yyyy}-{int(mm):02d}-{int(dd):02d}"
    return None


def detect_currency(text: str) -> Optional[str]:
    """First currency whose marker appears; "C$" is checked before "$"."""
    up = (text or "").upper()
    for code, pattern in _CURRENCY_MARKERS:
        if pattern.search(up):
            return code
    return None


def extract_totals(lines: List[str], window: int = 60) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Bottom-up scan of the last `window` rows.

    Returns
    -------
    (total, tax): the lowest total / tax row carrying an amount wins;
    the scan continues past the total so a TAX row printed above it is found
    """
    total: Optional[Decimal] = None
    tax: Optional[Decimal] = None

    for line in reversed(lines[-window:] if window > 0 else []):
        if tax is None and _TAX.search(line):
            token = last_money_token(line)
            if token is not None:
                tax = token.value

        if total is None and _TOTAL.search(line):
            token = last_money_token(line)
            if token is not None:
                total = token.value

        if total is not None and tax is not None:
            break

    return total, tax
