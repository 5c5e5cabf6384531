"""
Walmart Adapter
===============
Walmart receipts print a long store/operator header (ST# OP# TE# TR#) and
put a 12-digit UPC next to every item:

    GV WHL MLK  007874235186 F   3.48 N
    BANANAS     000000004011 F   1.64 N

Line-level quirks handled here:
  - header/operator rows and barcode-only rows are dropped before stitching
  - a logical row holding several UPCs (two items fused by OCR) is split
    after each UPC; text after the last UPC stays with the last segment
"""

import re
from typing import List

from loguru import logger

from vendor_adapters.base_adapter import VendorAdapter


_HEADER = re.compile(
    r'(walmart|wal\*mart|save money|live better|mgr\.|st#|op#|te#|tr#|tc#|items sold)',
    re.IGNORECASE,
)
_BARCODE_ONLY = re.compile(r'^\s*\d{11,18}\s*$')
_UPC = re.compile(r'\b\d{11,14}\b')


def split_on_barcodes(line: str) -> List[str]:
    """
    Split a row after each UPC when it carries more than one.

    "MILK 007874235186 3.48 EGGS 060538871459 2.12"
        → ["MILK 007874235186", "3.48 EGGS 060538871459 2.12"]
    """
    matches = list(_UPC.finditer(line))
    if len(matches) <= 1:
        return [line]

    out: List[str] = []
    cursor = 0
    for m in matches:
        seg = line[cursor:m.end()].strip()
        if seg:
            out.append(seg)
        cursor = m.end()

    tail = line[cursor:].strip()
    if tail and out:
        out[-1] = " ".join(f"{out[-1]} {tail}".split())

    return out or [line]


class WalmartAdapter(VendorAdapter):

    key = "walmart"
    display_name = "Walmart"
    detect_patterns = (_HEADER,)

    def preprocess_raw_lines(self, raw_lines: List[str]) -> List[str]:
        out = [
            l.strip() for l in raw_lines
            if l.strip() and not _HEADER.search(l) and not _BARCODE_ONLY.match(l)
        ]
        logger.debug(f"[Walmart] raw rows {len(raw_lines)} → {len(out)}")
        return out

    def preprocess_logical_lines(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        for line in lines:
            out.extend(split_on_barcodes(line))
        if len(out) != len(lines):
            logger.debug(f"[Walmart] split multi-UPC rows: {len(lines)} → {len(out)}")
        return out
