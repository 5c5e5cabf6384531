"""
Amazon Adapter
==============
Amazon order summaries (printed or PDF) mix item rows with delivery,
seller and payment boilerplate.  That boilerplate is removed twice: raw
rows before stitching, and logical rows that still start with a shipping
or rewards phrase afterwards.
"""

import re
from typing import List

from vendor_adapters.base_adapter import VendorAdapter


_DETECT = re.compile(r'\bamazon\b', re.IGNORECASE)

_RAW_BOILERPLATE = (
    "delivered",
    "return window",
    "sold by",
    "supplied by",
    "eligible through",
    "view related transactions",
    "order summary",
    "payment method",
    "grand total",
    "estimated tax",
    "shipping & handling",
    "free shipping",
)

_LOGICAL_PREFIXES = ("shipping", "free shipping", "delivered", "earn")


class AmazonAdapter(VendorAdapter):

    key = "amazon"
    display_name = "Amazon"
    detect_patterns = (_DETECT,)

    def preprocess_raw_lines(self, raw_lines: List[str]) -> List[str]:
        return [
            l for l in raw_lines
            if not any(phrase in l.lower() for phrase in _RAW_BOILERPLATE)
        ]

    def preprocess_logical_lines(self, lines: List[str]) -> List[str]:
        return [l for l in lines if not l.lower().startswith(_LOGICAL_PREFIXES)]
