"""
Raw Line Cleaner
================
Text normalisation and noise filtering ahead of stitching.

Dropped rows:
  - no alphanumeric character at all       "-----", "* * *"
  - URL markers                            "www.walmart.com", "https://..."
  - page counters                          "1/2", "2 / 2"  (not "350276 /1207907")

Order is preserved and nothing is merged here.
"""

import re
from typing import Iterable, List, Optional

from loguru import logger


_ALNUM       = re.compile(r'[A-Za-z0-9]')
_PAGE_NUMBER = re.compile(r'^\d{1,3}\s*/\s*\d{1,3}$')
_URL_MARKERS = ("http://", "https://", "www.")


def normalize_receipt_text(text: Optional[str]) -> str:
    """CR → LF, NBSP → space, unicode minus → '-'."""
    return (
        (text or "")
        .replace("\r", "\n")
        .replace("\u00a0", " ")
        .replace("\u2212", "-")
    )


def split_raw_lines(text: Optional[str]) -> List[str]:
    """Normalised text → trimmed, non-empty rows."""
    return [l.strip() for l in normalize_receipt_text(text).split("\n") if l.strip()]


def is_noise_line(line: str) -> bool:
    low = line.lower()
    if not _ALNUM.search(line):
        return True
    if any(marker in low for marker in _URL_MARKERS):
        return True
    return bool(_PAGE_NUMBER.match(line.strip()))


def clean_raw_lines(lines: Iterable[str]) -> List[str]:
    """Trim rows and drop the noise patterns listed above."""
    trimmed = [(l or "").strip() for l in lines]
    kept = [l for l in trimmed if l and not is_noise_line(l)]

    dropped = len(trimmed) - len(kept)
    if dropped:
        logger.debug(f"[RawLineCleaner] dropped {dropped} noise row(s), kept {len(kept)}")
    return kept
