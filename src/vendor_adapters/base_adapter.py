"""
Base Vendor Adapter
===================
Shared detection scoring and no-op hooks.

Subclasses set:
  key              short rule-set id ('walmart', 'costco', ...)
  display_name     vendor name reported on the receipt header
  detect_patterns  compiled regexes that identify the retailer

and override only the hooks they need:
  preprocess_raw_lines      before stitching
  preprocess_logical_lines  after stitching and SKU splitting
  postprocess_items         after item extraction

Every hook returns a NEW list; inputs are never modified in place.
"""

import re
from typing import List, Sequence

from receipt_models import ParsedLineItem


class VendorAdapter:
    """Rule set for one retailer.  Instances are stateless and shareable."""

    key: str = ""
    display_name: str = ""
    detect_patterns: Sequence[re.Pattern] = ()

    # A header hit is far more reliable than a hit anywhere in the body
    HEADER_SCORE = 5.0
    ANYWHERE_SCORE = 2.0

    # ── Detection ─────────────────────────────────────────────────────────────

    def detect(self, raw_lines: List[str], header_text: str, full_text: str) -> float:
        """
        Score how strongly the receipt belongs to this retailer.

        Returns
        -------
        HEADER_SCORE for a header match, ANYWHERE_SCORE for a body match,
        0 when the retailer is not present.
        """
        if any(p.search(header_text or "") for p in self.detect_patterns):
            return self.HEADER_SCORE
        if any(p.search(full_text or "") for p in self.detect_patterns):
            return self.ANYWHERE_SCORE
        return 0.0

    # ── Hooks ─────────────────────────────────────────────────────────────────

    def preprocess_raw_lines(self, raw_lines: List[str]) -> List[str]:
        return list(raw_lines)

    def preprocess_logical_lines(self, lines: List[str]) -> List[str]:
        return list(lines)

    def postprocess_items(self, items: List[ParsedLineItem]) -> List[ParsedLineItem]:
        return list(items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"
