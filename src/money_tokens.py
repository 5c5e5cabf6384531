"""
Money Tokens
============
Shared money-token parsing used by the stitcher, the produce detector, the
semantic repair pass and the item extractor.

A single receipt row can carry several money-like tokens:

    "BANANAS 3.04 lb @ 0.54 1.64"

Only one of them is the line total.  Tokens bound to a rate or a weight
("@ 0.54", "0.69/lb", "3.04 lb", "@ 1 / 0.50") are never totals, and the
LAST unbound token wins.  Callers get the exact token span back so they can
cut precisely that token out of the row (not merely the last occurrence of
the same digits).

All amounts are Decimal.  Trailing-minus ("7.80-"), parenthesised ("($3.00)")
and unicode-minus negatives are understood.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional


CENT = Decimal("0.01")

# ─── Patterns ─────────────────────────────────────────────────────────────────

MONEY_TOKEN_RE = re.compile(r'(?<![\d.])-?\$?(?:\d{1,3}(?:,\d{3})+|\d{1,7})(?:[.,]\d{2})(?!\d)-?')

_MONEY_ONLY = re.compile(r'^-?\$?\d{1,7}(?:[.,]\d{2})-?\s*[A-Z]{0,2}\s*$', re.IGNORECASE)

# "ONION ... 3.04"  /  "351935 /847909 4.00-"  /  "7.80-"  /  "12.99 Y"
_TAIL_AMOUNT = re.compile(r'^(.*?)(-?\$?\d{1,7}(?:[.,]\d{2})-?)(?:\s+([A-Z]{1,3}))?\s*$')

# Rate / weight binding around a token
_PER_UNIT_AFTER = re.compile(r'\s*/\s*(?:lb|lbs|kg|g|oz|ea|ct|pc|pcs)\b', re.IGNORECASE)
_WEIGHT_AFTER   = re.compile(r'\s*(?:lb|lbs|kg|g|oz)\b', re.IGNORECASE)
_RATE_BEFORE    = re.compile(r'@\s*(?:\d+(?:\.\d+)?\s*/\s*)?\$?$')

_COMMA_DECIMAL = re.compile(r'^-?\d+,\d{2}-?$')


@dataclass(frozen=True)
class MoneyToken:
    """One money-like token with its exact span inside the source row."""
    raw: str
    value: Decimal
    start: int
    end: int
    per_unit: bool = False


@dataclass(frozen=True)
class TailAmount:
    """A row split into <prefix> <amount> [<flag>]."""
    prefix: str
    amount: str
    flag: str
    value: Optional[Decimal]


# ─── Parsing ──────────────────────────────────────────────────────────────────

def parse_money(raw: Optional[str]) -> Optional[Decimal]:
    """
    Parse a money-ish string into a Decimal.

    "2.40-" → -2.40, "($3.00)" → -3.00, "3,07" → 3.07, "1,234.50" → 1234.50
    Returns None when nothing numeric survives.
    """
    if not raw:
        return None

    s = str(raw).strip()

    negative = False
    if re.match(r'^\(\s*.*\s*\)$', s):
        negative = True
        s = s[1:-1].strip()

    s = s.replace('\u2212', '-')
    cleaned = re.sub(r'[^0-9.,\-]', '', s)
    if not cleaned:
        return None

    if _COMMA_DECIMAL.match(cleaned):
        cleaned = cleaned.replace(',', '.')
    else:
        cleaned = cleaned.replace(',', '')

    if cleaned.endswith('-') and not cleaned.startswith('-'):
        cleaned = '-' + cleaned[:-1]

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None

    if not value.is_finite():
        return None
    return -abs(value) if negative else value


def to_money(value) -> Optional[Decimal]:
    """Quantize to cents (half-up).  Accepts Decimal, str, int or float."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            return None
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ─── Token scanning ───────────────────────────────────────────────────────────

def _is_rate_bound(line: str, start: int, end: int) -> bool:
    if _PER_UNIT_AFTER.match(line, end):
        return True
    if _WEIGHT_AFTER.match(line, end):
        return True
    return bool(_RATE_BEFORE.search(line[:start]))


def find_money_tokens(line: str) -> List[MoneyToken]:
    """Every money-like token in reading order, each flagged if rate-bound."""
    tokens: List[MoneyToken] = []
    for m in MONEY_TOKEN_RE.finditer(line or ''):
        value = parse_money(m.group(0))
        if value is None:
            continue
        tokens.append(MoneyToken(
            raw=m.group(0),
            value=value,
            start=m.start(),
            end=m.end(),
            per_unit=_is_rate_bound(line, m.start(), m.end()),
        ))
    return tokens


def pick_line_total_token(line: str) -> Optional[MoneyToken]:
    """
    The token that represents this row's line total.

    Last non-rate-bound token; if every token is rate-bound the last one is
    returned (still flagged per_unit so callers can tell).
    """
    tokens = find_money_tokens(line)
    if not tokens:
        return None
    for tok in reversed(tokens):
        if not tok.per_unit:
            return tok
    return tokens[-1]


def last_money_token(line: str) -> Optional[MoneyToken]:
    """The last money-like token regardless of binding."""
    tokens = find_money_tokens(line)
    return tokens[-1] if tokens else None


def remove_token(line: str, token: MoneyToken) -> str:
    """Cut exactly the token span out of the row."""
    return (line[:token.start] + line[token.end:]).strip()


def split_tail_amount(line: str) -> Optional[TailAmount]:
    """Split a row into its text prefix, trailing amount and optional flag."""
    m = _TAIL_AMOUNT.match((line or '').strip())
    if not m:
        return None
    amount = (m.group(2) or '').strip()
    return TailAmount(
        prefix=(m.group(1) or '').strip(),
        amount=amount,
        flag=(m.group(3) or '').strip(),
        value=parse_money(amount),
    )


def has_money(line: str) -> bool:
    return bool(MONEY_TOKEN_RE.search(line or ''))


def is_money_only_line(line: str) -> bool:
    """Rows that are nothing but an amount and a flag: "1.64", "3.00-", "12.99 Y"."""
    return bool(_MONEY_ONLY.match((line or '').strip()))
