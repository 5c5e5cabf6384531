"""
Name Normalizer
===============
Two views of an item name:

  display name     UI-friendly:  "12) MILK 2% Y"  → "MILK 2%"
  normalized name  matching:     "MILK & EGGS!"   → "MILK AND EGGS"

plus a stable, versioned SHA-256 of the normalized name so downstream
matching can tell which normalizer produced it.
"""

import hashlib
import re
from dataclasses import dataclass
from typing import Optional


NAME_NORMALIZER_VERSION = "nameNorm@2026-02-27"

_LEADING_LINE_NO = re.compile(r'^\s*\d+\s*[\)\.\-:]?\s+')
_TRAILING_FLAG   = re.compile(r'\s+[YN]\s*$', re.IGNORECASE)
_NON_ALNUM       = re.compile(r'[^A-Z0-9 ]+')


@dataclass(frozen=True)
class NormalizedName:
    name_raw: str
    display_name: str
    normalized_name: str
    version: str
    hash: str


def compute_display_name(name_raw: Optional[str]) -> str:
    s = str(name_raw or "").strip()
    s = _LEADING_LINE_NO.sub("", s)
    s = _TRAILING_FLAG.sub("", s)
    return " ".join(s.split())


def compute_normalized_name(display_name: Optional[str]) -> str:
    s = str(display_name or "").strip().upper()
    s = s.replace("&", " AND ")
    s = _NON_ALNUM.sub(" ", s)
    return " ".join(s.split())


def normalize_name(name_raw: Optional[str]) -> NormalizedName:
    display = compute_display_name(name_raw)
    normalized = compute_normalized_name(display)
    digest = hashlib.sha256(f"{NAME_NORMALIZER_VERSION}|{normalized}".encode("utf-8")).hexdigest()
    return NormalizedName(
        name_raw=name_raw or "",
        display_name=display,
        normalized_name=normalized,
        version=NAME_NORMALIZER_VERSION,
        hash=digest,
    )
