"""
Item Extractor
==============
Turns logical rows into ParsedLineItems.

Per row
───────
  1. skip totals / tender / cash rows
  2. line total = last money token not bound to a rate or weight
     (rows with no amount survive only when discount-labelled)
  3. cut EXACTLY that token's span out of the row (an earlier "@ 0.54" rate
     with the same digits must survive)
  4. strip a trailing payment/tax flag ("Y", "N", "TX")
  5. produce rows use the detector's name part (flag stripped too)
  6. 11-14 digit run → barcode; leading 5-8 digit run → vendor SKU
  7. unit from the name (oz lb g kg ml l ct pk pack each), produce rows use
     weight + unit as quantity

Each item comes from exactly one logical row; rows may be dropped, never
split.
"""

import re
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from line_stitcher import LogicalLine, is_totals_or_tender
from money_tokens import pick_line_total_token, remove_token
from name_normalizer import normalize_name
from receipt_models import ParsedLineItem


# ─── Patterns ─────────────────────────────────────────────────────────────────

_DISCOUNT_HINT  = re.compile(r'\b(discount|savings|coupon|promo|instant\s+savings)\b', re.IGNORECASE)
_DISCOUNT_LABEL = re.compile(r'^discount\b', re.IGNORECASE)
_TRAILING_FLAG  = re.compile(r'(?<!\d)\s+[A-Z]{1,2}\s*$')     # "18 OZ" is a size, not a flag
_BARCODE        = re.compile(r'\b(\d{11,14})\b')
_SKU_PREFIX     = re.compile(r'^(\d{5,8})\b\s*(.*)$')
_UNIT           = re.compile(r'\b(oz|lb|lbs|g|kg|ml|l|ct|pk|pack|each)\b', re.IGNORECASE)

_UNIT_NORMAL = {"lbs": "lb", "ct": "each", "pk": "pack"}


def normalize_item_unit(raw: str) -> str:
    low = raw.lower()
    return _UNIT_NORMAL.get(low, low)


def _strip_flag(text: str) -> str:
    return _TRAILING_FLAG.sub("", text).strip()


def _split_barcode(text: str) -> Tuple[str, Optional[str]]:
    m = _BARCODE.search(text)
    if not m:
        return text, None
    rest = " ".join((text[:m.start()] + " " + text[m.end():]).split())
    return _strip_flag(rest), m.group(1)


def extract_item(line: LogicalLine) -> Optional[ParsedLineItem]:
    """One logical row → ParsedLineItem, or None when the row is not an item."""
    text = line.text.strip()
    if not text or is_totals_or_tender(text):
        return None

    token = pick_line_total_token(text)
    discountish = bool(_DISCOUNT_HINT.search(text) or _DISCOUNT_LABEL.match(text))
    if token is None and not discountish:
        return None

    produce = line.produce_meta

    no_price = remove_token(text, token) if token is not None else text
    no_price = _strip_flag(no_price)
    preferred = _strip_flag(produce.name_part) if produce is not None and produce.name_part else no_price

    preferred, barcode = _split_barcode(preferred)

    m = _SKU_PREFIX.match(preferred)
    vendor_sku = m.group(1) if m else None
    name = " ".join((m.group(2) if m else preferred).split())

    if not name and _DISCOUNT_LABEL.match(text):
        name = "DISCOUNT"
    if not name:
        return None

    # Per-unit-only rows carry a rate, not an extended amount
    line_total: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    if token is not None:
        if token.per_unit:
            unit_price = token.value
        else:
            line_total = token.value
            unit_price = token.value
    if produce is not None and produce.unit_price is not None:
        unit_price = produce.unit_price

    quantity: Optional[Decimal] = Decimal("1")
    unit: Optional[str] = None
    um = _UNIT.search(name)
    if um:
        unit = normalize_item_unit(um.group(1))
    if produce is not None and produce.weight is not None:
        quantity = produce.weight
        unit = produce.unit

    normalized = normalize_name(name)
    item = ParsedLineItem(
        raw_line_text=text,
        name=name,
        display_name=normalized.display_name,
        normalized_name=normalized.normalized_name,
        name_normalizer_version=normalized.version,
        name_hash=normalized.hash,
        vendor_sku=vendor_sku,
        barcode=barcode,
        original_quantity=quantity,
        original_unit=unit,
        unit_price=unit_price,
        line_total=line_total,
        weight=produce.weight if produce is not None else None,
        unit=produce.unit if produce is not None else None,
        produce_meta=produce,
    )
    return item


def extract_items(lines: Iterable[LogicalLine]) -> Tuple[List[ParsedLineItem], int]:
    """
    Extract items from logical rows.

    Returns
    -------
    (items, priced_line_count): priced rows carried an amount or a discount
    label, including rows later dropped for having no name
    """
    lines = list(lines)
    items: List[ParsedLineItem] = []
    priced = 0

    for line in lines:
        text = line.text.strip()
        if not text or is_totals_or_tender(text):
            continue
        has_amount = pick_line_total_token(text) is not None
        if has_amount or _DISCOUNT_HINT.search(text) or _DISCOUNT_LABEL.match(text):
            priced += 1

        result = extract_item(line)
        if result is not None:
            items.append(result)

    logger.debug(f"[ItemExtractor] {len(lines)} logical → {len(items)} items ({priced} priced)")
    return items, priced
