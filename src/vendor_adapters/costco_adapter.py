"""
Costco Adapter
==============
Costco warehouse receipts are SKU-first with a trailing tax flag:

    E   512515 ORG BANANA        1.99 N
        1207907 KS WATER         3.99 Y
        350276 /1207907          1.00-

OCR quirks handled here:
  - warehouse header rows and stray "E" / "F" margin markers are dropped
  - SKU + description followed by a price-only row → merged
  - SKU + short token ("512515 ORG") followed by a priced, non-SKU row → merged
  - price shift: an unpriced SKU row followed by a row that STARTS with a
    price and then the next SKU → the price moves back to the row above
  - residual Y/N/F/E flags are trimmed from item names
"""

import re
from typing import List

from loguru import logger

from money_tokens import has_money
from name_normalizer import normalize_name
from receipt_models import ParsedLineItem
from vendor_adapters.base_adapter import VendorAdapter


_DETECT          = re.compile(r'\b(costco|wholesale)\b', re.IGNORECASE)
_MARKER_ONLY     = re.compile(r'^[A-Z]{1,2}$')
_STARTS_WITH_SKU = re.compile(r'^\d{5,8}\b')
_SKU_DESC        = re.compile(r'^\d{5,8}\s+[A-Z0-9].+')
_SKU_SHORT_DESC  = re.compile(r'^\d{5,8}\s+[A-Z]{2,5}$')
_PRICE_ONLY      = re.compile(r'^-?\$?\d{1,7}(?:[.,]\d{2})-?\s*[A-Z]?\s*$')
_LEADING_PRICE   = re.compile(r'^(-?\$?\d{1,7}(?:[.,]\d{2})-?(?:\s+[A-Z])?)\s+(\d{5,8}\b.*)$')
_NAME_FLAG       = re.compile(r'\s+[YNFE]\s*$', re.IGNORECASE)


def _join(a: str, b: str) -> str:
    return " ".join(f"{a} {b}".split())


def merge_safe_pairs(lines: List[str]) -> List[str]:
    """Only adjacent, unambiguous pairs are merged."""
    out: List[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        nxt = lines[i + 1] if i + 1 < len(lines) else None

        if nxt is not None and not _STARTS_WITH_SKU.match(nxt):
            if _SKU_DESC.match(line) and _PRICE_ONLY.match(nxt):
                out.append(_join(line, nxt))
                i += 2
                continue
            if _SKU_SHORT_DESC.match(line) and has_money(nxt):
                out.append(_join(line, nxt))
                i += 2
                continue

        out.append(line)
        i += 1
    return out


def repair_shifted_prices(lines: List[str]) -> List[str]:
    """
    "1207907 KS WATER" + "3.99 Y 350276 EGGS 4.99"
        → "1207907 KS WATER 3.99 Y" + "350276 EGGS 4.99"
    """
    out = list(lines)
    for i in range(len(out) - 1):
        cur, nxt = out[i], out[i + 1]
        if not _SKU_DESC.match(cur) or has_money(cur):
            continue
        m = _LEADING_PRICE.match(nxt)
        if not m:
            continue
        out[i] = _join(cur, m.group(1))
        out[i + 1] = m.group(2).strip()
    return out


class CostcoAdapter(VendorAdapter):

    key = "costco"
    display_name = "Costco"
    detect_patterns = (_DETECT,)

    def preprocess_raw_lines(self, raw_lines: List[str]) -> List[str]:
        return [
            l for l in raw_lines
            if not _MARKER_ONLY.match(l.strip()) and not _DETECT.search(l)
        ]

    def preprocess_logical_lines(self, lines: List[str]) -> List[str]:
        merged = merge_safe_pairs(lines)
        repaired = repair_shifted_prices(merged)
        logger.debug(f"[Costco] logical rows {len(lines)} → {len(repaired)}")
        return repaired

    def postprocess_items(self, items: List[ParsedLineItem]) -> List[ParsedLineItem]:
        out: List[ParsedLineItem] = []
        for item in items:
            name = _NAME_FLAG.sub("", item.name).strip()
            if name == item.name:
                out.append(item)
                continue
            normalized = normalize_name(name)
            out.append(item.model_copy(update={
                "name": name,
                "display_name": normalized.display_name,
                "normalized_name": normalized.normalized_name,
                "name_normalizer_version": normalized.version,
                "name_hash": normalized.hash,
            }))
        return out
