"""
Geometry Line Reconstructor
===========================
Turns word-level bounding boxes into ordered text rows.

OCR providers emit words grouped by their own block/paragraph model, which
is NOT reading order on a receipt: the price column is often a separate
block read after (or before) the item names.  Rebuilding rows from geometry
puts "BANANAS" and "1.64" back on the same line.

Algorithm
---------
  1. Per word: vertical center, left edge and height from the polygon
  2. Merge threshold = max(3, median_height * y_merge_multiplier)
  3. Sort words by (center, left edge)
  4. For each word scan rows newest → oldest, track the nearest center, stop
     once a row sits more than 2 × threshold above the word
  5. Nearest row within threshold → attach and average its center,
     otherwise open a new row
  6. Sort each row's tokens left → right and join with single spaces

Centers are rounded to a fixed precision so row assignment does not depend
on platform float noise.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from receipt_models import Vertex, Word


_CENTER_PRECISION = 3
_FALLBACK_HEIGHT = 10.0
_MIN_THRESHOLD = 3.0


@dataclass(frozen=True)
class TextRow:
    """One reconstructed row: running-average center, x-sorted tokens, text."""
    vertical_center: float
    tokens: Tuple[Tuple[float, str], ...]
    text: str


@dataclass
class _RowBucket:
    center: float
    tokens: List[Tuple[float, str]]


# ─── Vision annotation flattening ─────────────────────────────────────────────

def extract_geo_words(full_text_annotation: Dict[str, Any]) -> List[Word]:
    """
    Flatten a Vision-style fullTextAnnotation into Words.

    Structure: pages → blocks → paragraphs → words; word text is the join of
    its symbols' text (or a plain 'text' key when symbols are absent).
    """
    words: List[Word] = []
    pages = (full_text_annotation or {}).get("pages") or []

    for p, page in enumerate(pages):
        for b, block in enumerate((page or {}).get("blocks") or []):
            for pa, para in enumerate((block or {}).get("paragraphs") or []):
                for w, word in enumerate((para or {}).get("words") or []):
                    word = word or {}
                    symbols = word.get("symbols") or []
                    if symbols:
                        text = "".join(str((s or {}).get("text") or "") for s in symbols)
                    else:
                        text = str(word.get("text") or "")

                    vertices = ((word.get("boundingBox") or word.get("bounding_box") or {})
                                .get("vertices") or [])
                    confidence = word.get("confidence")
                    if not isinstance(confidence, (int, float)):
                        confidence = None

                    words.append(Word(
                        text=text.strip(),
                        bounding_box=[Vertex(**(v or {})) for v in vertices],
                        page_index=p,
                        block_index=b,
                        paragraph_index=pa,
                        word_index=w,
                        confidence=confidence,
                    ))

    logger.debug(f"[GeoLines] extracted {len(words)} words from {len(pages)} page(s)")
    return words


# ─── Row building ─────────────────────────────────────────────────────────────

def _metrics(word: Word) -> Tuple[float, float, float]:
    """(left_x, center_y, height) for a word's polygon."""
    if not word.bounding_box:
        return 0.0, 0.0, 0.0
    xs = [v.x for v in word.bounding_box]
    ys = [v.y for v in word.bounding_box]
    min_y, max_y = min(ys), max(ys)
    center = round((min_y + max_y) / 2, _CENTER_PRECISION)
    return min(xs), center, max(0.0, max_y - min_y)


def merge_threshold(heights: Sequence[float], multiplier: float) -> float:
    positive = [h for h in heights if h > 0]
    med = float(np.median(positive)) if positive else _FALLBACK_HEIGHT
    return max(_MIN_THRESHOLD, med * multiplier)


def build_geo_line_objects(
    words_or_annotation: Union[Sequence[Word], Dict[str, Any]],
    y_merge_multiplier: float = 0.65,
    min_word_len: int = 1,
) -> List[TextRow]:
    """
    Build ordered TextRows from Words or a Vision-style annotation dict.

    Args:
        words_or_annotation: list of Word, or a fullTextAnnotation mapping
        y_merge_multiplier:  row merge aggressiveness (× median word height)
        min_word_len:        words shorter than this are dropped

    Returns:
        Rows top → bottom; rows whose text is empty are discarded
    """
    if isinstance(words_or_annotation, dict):
        words = extract_geo_words(words_or_annotation)
    else:
        words = list(words_or_annotation or [])

    enriched = []
    for w in words:
        if len(w.text or "") < min_word_len:
            continue
        x, cy, h = _metrics(w)
        enriched.append((cy, x, h, w.text))

    if not enriched:
        return []

    threshold = merge_threshold([e[2] for e in enriched], y_merge_multiplier)
    enriched.sort(key=lambda e: (e[0], e[1]))

    rows: List[_RowBucket] = []
    for cy, x, _h, text in enriched:
        best_idx = -1
        best_dist = float("inf")
        for i in range(len(rows) - 1, -1, -1):
            dist = abs(rows[i].center - cy)
            if dist < best_dist:
                best_dist = dist
                best_idx = i
            if rows[i].center < cy - threshold * 2:
                break

        if best_idx >= 0 and best_dist <= threshold:
            row = rows[best_idx]
            row.center = round((row.center + cy) / 2, _CENTER_PRECISION)
            row.tokens.append((x, text))
        else:
            rows.append(_RowBucket(center=cy, tokens=[(x, text)]))

    out: List[TextRow] = []
    for row in rows:
        tokens = sorted(row.tokens, key=lambda t: t[0])
        text = " ".join(t[1] for t in tokens)
        text = " ".join(text.split())
        if text:
            out.append(TextRow(vertical_center=row.center, tokens=tuple(tokens), text=text))

    logger.debug(
        f"[GeoLines] {len(enriched)} words → {len(out)} rows "
        f"(threshold={threshold:.2f})"
    )
    return out


def build_geo_lines(
    words_or_annotation: Union[Sequence[Word], Dict[str, Any]],
    y_merge_multiplier: float = 0.65,
    min_word_len: int = 1,
) -> List[str]:
    """Row texts only."""
    return [row.text for row in build_geo_line_objects(words_or_annotation, y_merge_multiplier, min_word_len)]
