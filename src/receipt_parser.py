"""
Receipt Line Parsing Pipeline
=============================
Turns OCR text and/or word geometry for ONE receipt into an ExtractResult.

Workflow
────────
  1. Rebuild rows from word geometry (when supplied)
  2. Choose linear text vs geometry text
  3. Normalise and clean raw rows
  4. Resolve vendor + rule set; vendor raw-row hook
  5. Stitch logical rows, split multi-SKU rows; vendor logical-row hook
  6. Merge multi-row produce
  7. Semantic repair (artefacts, discounts); produce annotation
  8. Receipt fields and item extraction; vendor item hook
  9. Confidence score and review gate

The pipeline is pure and synchronous: no I/O, no shared mutable state.
One ReceiptParser may serve many receipts, from many threads.

Usage
-----
    parser = ReceiptParser(load_parser_config())
    result = parser.parse(text=ocr_text, geometry=vision_annotation)
    print(result.model_dump_json(indent=2))
"""

import time
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError

from geo_lines import build_geo_lines
from item_extractor import extract_items
from line_stitcher import LogicalLine, split_multi_sku_lines, stitch_logical_lines
from parser_config import ParserConfig
from parser_utils import format_processing_time
from produce_detector import annotate_produce, merge_produce_lines
from raw_line_cleaner import clean_raw_lines, normalize_receipt_text, split_raw_lines
from receipt_fields import detect_currency, extract_purchase_date, extract_totals
from receipt_models import ExtractResult, ReceiptHeader, Word
from review_gating import (
    HAS_SUSPICIOUS_LINES,
    LOW_CONFIDENCE,
    MISSING_TOTAL,
    MISSING_VENDOR,
    TOO_FEW_ITEMS,
    compute_review,
    review_diagnostics,
    score_confidence,
)
from semantic_repair import semantic_repair
from source_selector import choose_ocr_text
from vendor_adapters import VendorResolver


Geometry = Union[Dict[str, Any], Sequence[Word], Sequence[Dict[str, Any]]]


def empty_result() -> ExtractResult:
    """Worst-case result: no items, zero confidence, routed to review."""
    return ExtractResult(
        confidence=0.0,
        needs_review=True,
        review_reasons=[LOW_CONFIDENCE, TOO_FEW_ITEMS, MISSING_TOTAL],
        review_diagnostics=[MISSING_VENDOR, HAS_SUSPICIOUS_LINES],
    )


class ReceiptParser:
    """
    End-to-end receipt line parser.

    Holds only its immutable config and the vendor registry.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.resolver = VendorResolver(header_line_count=self.config.header_line_count)
        logger.debug(
            f"[ReceiptParser] ready (mode={self.config.ocr_mode}, "
            f"min_confidence={self.config.min_confidence})"
        )

    # ── Public entry point ────────────────────────────────────────────────────

    def parse(self, text: Optional[str] = None, geometry: Optional[Geometry] = None) -> ExtractResult:
        """
        Parse one receipt.

        Args:
            text:     linear OCR text
            geometry: Vision-style annotation dict (a full response with
                      'fullTextAnnotation' is accepted too), a list of Word,
                      or a list of word dicts

        Returns:
            ExtractResult; malformed input degrades to an empty result, it
            never raises
        """
        start = time.time()
        try:
            result = self._run(text, geometry)
        except Exception:
            logger.exception("[ReceiptParser] parsing failed, returning empty result")
            return empty_result()

        elapsed_ms = int((time.time() - start) * 1000)
        logger.info(
            f"[ReceiptParser] vendor={result.receipt.vendor!r} items={len(result.lines)} "
            f"confidence={result.confidence:.2f} review={result.needs_review} "
            f"source={result.source_mode} in {format_processing_time(elapsed_ms)}"
        )
        return result

    # ── Pipeline ──────────────────────────────────────────────────────────────

    def _run(self, text: Optional[str], geometry: Optional[Geometry]) -> ExtractResult:
        cfg = self.config

        # ── Step 1: Geometry rows ─────────────────────────────────────────────
        geo_text = None
        annotation_text = None
        if geometry:
            try:
                source, annotation_text = self._geometry_source(geometry)
                rows = build_geo_lines(source, cfg.y_merge_multiplier, cfg.min_word_len)
                geo_text = "\n".join(rows) or None
            except Exception as e:
                logger.warning(f"[ReceiptParser] unusable geometry, continuing with text: {e}")
                geo_text = None

        if not text and annotation_text:
            text = annotation_text

        # ── Step 2: Source selection ──────────────────────────────────────────
        choice = choose_ocr_text(text or "", geo_text, cfg.ocr_mode, cfg.auto_margin)

        # ── Step 3: Raw rows ──────────────────────────────────────────────────
        normalized = normalize_receipt_text(choice.text)
        raw_lines = clean_raw_lines(split_raw_lines(normalized))
        if not raw_lines:
            logger.warning("[ReceiptParser] no usable rows in OCR input")
            result = empty_result()
            return result.model_copy(update={"source_mode": choice.mode, "source_scores": choice.scores})

        # ── Step 4: Vendor ────────────────────────────────────────────────────
        resolution = self.resolver.resolve(raw_lines)
        adapter = resolution.adapter
        purchase_date = extract_purchase_date(normalized)
        currency = detect_currency(normalized)

        if adapter is not None:
            raw_lines = adapter.preprocess_raw_lines(raw_lines)

        # ── Step 5: Logical rows ──────────────────────────────────────────────
        logical = split_multi_sku_lines(stitch_logical_lines(raw_lines))
        if adapter is not None:
            logical = self._apply_logical_hook(adapter, logical)

        # ── Step 6-7: Produce merge, repair, produce annotation ───────────────
        logical = merge_produce_lines(logical)
        logical = semantic_repair(logical)
        logical = annotate_produce(logical, cfg.produce_tolerance)

        # ── Step 8: Fields + items ────────────────────────────────────────────
        total, tax = extract_totals([l.text for l in logical], cfg.totals_scan_window)
        items, priced = extract_items(logical)
        if adapter is not None:
            items = adapter.postprocess_items(items)

        # ── Step 9: Confidence + review ───────────────────────────────────────
        confidence = score_confidence(
            has_vendor=bool(resolution.vendor),
            has_date=purchase_date is not None,
            has_total=total is not None,
            line_count=len(items),
            priced_line_count=priced,
        )
        decision = compute_review(confidence, len(items), total is not None, cfg.min_confidence)
        diagnostics = review_diagnostics(
            bool(resolution.vendor), [(i.raw_line_text, i.name) for i in items]
        )

        return ExtractResult(
            receipt=ReceiptHeader(
                vendor=resolution.vendor,
                purchase_date=purchase_date,
                currency=currency,
                total=total,
                tax=tax,
            ),
            lines=items,
            confidence=confidence,
            needs_review=decision.needs_review,
            review_reasons=decision.reasons,
            review_diagnostics=diagnostics,
            vendor_key=resolution.key,
            source_mode=choice.mode,
            source_scores=choice.scores,
        )

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _geometry_source(geometry: Geometry):
        """(words-or-annotation, annotation text) for build_geo_lines."""
        if isinstance(geometry, dict):
            annotation = geometry.get("fullTextAnnotation") or geometry
            return annotation, annotation.get("text")

        words: List[Word] = []
        skipped = 0
        for w in geometry:
            if isinstance(w, Word):
                words.append(w)
                continue
            try:
                words.append(Word.model_validate(w))
            except ValidationError:
                skipped += 1
        if skipped:
            logger.warning(f"[ReceiptParser] skipped {skipped} malformed geometry word(s)")
        return words, None

    @staticmethod
    def _apply_logical_hook(adapter, logical: List[LogicalLine]) -> List[LogicalLine]:
        by_text = {l.text: l for l in logical}
        texts = adapter.preprocess_logical_lines([l.text for l in logical])
        return [by_text.get(t) or LogicalLine(text=t) for t in texts]
