"""
Vendor Resolver
===============
Identifies the retailer from the receipt header and picks its rule set.

Resolution order
────────────────
  1. Registered adapters   every adapter scores the receipt; the strictly
                           highest positive score wins, ties keep
                           registration order (Walmart, Costco, Amazon)
  2. Known retailers       name-only match in the header (Kroger, Target,
                           Whole Foods, H-E-B, Aldi); no rule set applied
  3. Generic fallback      first header line with at least 3 letters that
                           is not boilerplate ("thank you", "member", ...)

Usage
-----
    resolver   = VendorResolver()
    resolution = resolver.resolve(raw_lines)
    resolution.adapter   # VendorAdapter or None
    resolution.vendor    # "Costco", "Kroger", "JOE'S DELI" or None
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from loguru import logger

from vendor_adapters.amazon_adapter import AmazonAdapter
from vendor_adapters.base_adapter import VendorAdapter
from vendor_adapters.costco_adapter import CostcoAdapter
from vendor_adapters.walmart_adapter import WalmartAdapter


DEFAULT_HEADER_LINES = 25

# ── Known retailers without a dedicated rule set ──────────────────────────────
_KNOWN_RETAILERS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r'\bkroger\b', re.IGNORECASE),       "Kroger"),
    (re.compile(r'\btarget\b', re.IGNORECASE),       "Target"),
    (re.compile(r'\bwhole\s+foods\b', re.IGNORECASE), "Whole Foods"),
    (re.compile(r'\bh-?e-?b\b', re.IGNORECASE),      "H-E-B"),
    (re.compile(r'\baldi\b', re.IGNORECASE),         "Aldi"),
)

_IGNORE_PHRASES = ("welcome", "receipt", "thank you", "customer copy", "member", "orders & purchases")
_LETTER = re.compile(r'[A-Za-z]')


@dataclass(frozen=True)
class VendorResolution:
    """Outcome of vendor resolution for one receipt."""
    adapter: Optional[VendorAdapter]
    vendor: Optional[str]
    score: float = 0.0

    @property
    def key(self) -> Optional[str]:
        return self.adapter.key if self.adapter else None


def fallback_vendor_name(header_lines: List[str]) -> Optional[str]:
    """First non-boilerplate header line with at least 3 letters."""
    for line in header_lines:
        low = line.lower()
        if len(low) < 2:
            continue
        if any(phrase in low for phrase in _IGNORE_PHRASES):
            continue
        if len(_LETTER.findall(line)) >= 3:
            return line.strip()
    return None


class VendorResolver:
    """
    Closed, statically-registered set of vendor rule sets.

    The adapters are stateless, so one resolver can serve any number of
    receipts (and threads).
    """

    # ── Registration order is the tie-break order ─────────────────────────────
    _REGISTRY = (WalmartAdapter, CostcoAdapter, AmazonAdapter)

    def __init__(self, header_line_count: int = DEFAULT_HEADER_LINES):
        self.header_line_count = header_line_count
        self._adapters: Tuple[VendorAdapter, ...] = tuple(cls() for cls in self._REGISTRY)

    @property
    def adapters(self) -> Tuple[VendorAdapter, ...]:
        return self._adapters

    def detect_adapter(self, raw_lines: List[str]) -> Tuple[Optional[VendorAdapter], float]:
        header_text = "\n".join(raw_lines[:self.header_line_count])
        full_text = "\n".join(raw_lines)

        best: Optional[VendorAdapter] = None
        best_score = 0.0
        for adapter in self._adapters:
            score = float(adapter.detect(raw_lines, header_text, full_text) or 0)
            if score > best_score:
                best, best_score = adapter, score
        return best, best_score

    def resolve(self, raw_lines: List[str]) -> VendorResolution:
        """Resolve adapter and vendor name for the cleaned raw lines."""
        adapter, score = self.detect_adapter(raw_lines)
        if adapter is not None:
            logger.debug(f"[VendorResolver] adapter={adapter.key} score={score}")
            return VendorResolution(adapter=adapter, vendor=adapter.display_name, score=score)

        header = raw_lines[:self.header_line_count]
        header_text = "\n".join(header)
        for pattern, name in _KNOWN_RETAILERS:
            if pattern.search(header_text):
                logger.debug(f"[VendorResolver] known retailer '{name}' (no rule set)")
                return VendorResolution(adapter=None, vendor=name)

        vendor = fallback_vendor_name(header)
        if vendor:
            logger.debug(f"[VendorResolver] generic fallback vendor '{vendor}'")
        else:
            logger.debug("[VendorResolver] no vendor found")
        return VendorResolution(adapter=None, vendor=vendor)
