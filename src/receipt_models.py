"""
Receipt Models: input and output schemas
Using Pydantic for validation and JSON serialization

Input side
----------
  Vertex / Word          - word-level geometry supplied by the OCR collaborator

Output side
-----------
  ProduceMeta            - weight/rate annotation for produce rows
  ParsedLineItem         - one purchasable line
  ReceiptHeader          - vendor, purchase date, currency, total, tax
  ExtractResult          - the contract returned to receipt-ingestion callers

Money fields are Decimal, quantized to cents and serialized as two-decimal
strings ("1.64", "-7.80").
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from money_tokens import to_money


# ─── Geometry (input) ─────────────────────────────────────────────────────────

class Vertex(BaseModel):
    """A bounding-polygon corner.  Missing coordinates read as 0."""
    model_config = ConfigDict(frozen=True)

    x: float = Field(0.0, description="Horizontal coordinate")
    y: float = Field(0.0, description="Vertical coordinate")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _coerce_coordinate(cls, v):
        if v is None:
            return 0.0
        try:
            f = float(v)
        except (TypeError, ValueError):
            return 0.0
        return f if f == f and abs(f) != float("inf") else 0.0


class Word(BaseModel):
    """One recognised word with its bounding polygon."""
    model_config = ConfigDict(frozen=True)

    text: str              = Field(...,  description="Recognised text")
    bounding_box: List[Vertex] = Field(default_factory=list, description="Polygon vertices (usually 4)")
    page_index: int        = Field(0,    description="Page position in the recognition result")
    block_index: int       = Field(0,    description="Block position within the page")
    paragraph_index: int   = Field(0,    description="Paragraph position within the block")
    word_index: int        = Field(0,    description="Word position within the paragraph")
    confidence: Optional[float] = Field(None, description="Provider confidence (0-1)")


# ─── Parsed output ────────────────────────────────────────────────────────────

class ProduceMeta(BaseModel):
    """Weight/rate annotation for a produce row."""
    weight: Optional[Decimal]     = Field(None, description="Weight or count, e.g. 3.04")
    unit: Optional[str]           = Field(None, description="lb | kg | g | oz | ea | ct | pc")
    unit_price: Optional[Decimal] = Field(None, description="Price per unit")
    line_total: Optional[Decimal] = Field(None, description="Last money token on the row")
    name_part: Optional[str]      = Field(None, description="Description with the produce tail removed")
    confidence_score: float       = Field(0.0, ge=0, le=1, description="0-1 structural confidence")
    math_validated: bool          = Field(False, description="weight x unit_price ~= line_total")
    reason: Optional[str]         = Field(None, description="Short diagnostic string")
    merge_applied: bool           = Field(False, description="Row was assembled by the produce merger")

    @field_validator("unit_price", "line_total", mode="after")
    @classmethod
    def _quantize(cls, v):
        return to_money(v)


class ParsedLineItem(BaseModel):
    """One purchasable entry reconstructed from a logical line."""
    raw_line_text: str                 = Field(...,  description="Logical line the item came from")
    name: str                          = Field(...,  description="Item name as printed")
    display_name: Optional[str]        = Field(None, description="UI-friendly name")
    normalized_name: Optional[str]     = Field(None, description="Matching-friendly name")
    name_normalizer_version: Optional[str] = Field(None, description="Normalizer that produced normalized_name")
    name_hash: Optional[str]           = Field(None, description="SHA-256 of version + normalized_name")
    vendor_sku: Optional[str]          = Field(None, description="Leading 5-8 digit item number")
    barcode: Optional[str]             = Field(None, description="11-14 digit UPC/EAN")
    original_quantity: Optional[Decimal] = Field(Decimal("1"), description="Quantity or weight")
    original_unit: Optional[str]       = Field(None, description="Unit of original_quantity")
    unit_price: Optional[Decimal]      = Field(None, description="Price per unit")
    line_total: Optional[Decimal]      = Field(None, description="Extended line amount")
    weight: Optional[Decimal]          = Field(None, description="Produce weight")
    unit: Optional[str]                = Field(None, description="Produce unit")
    produce_meta: Optional[ProduceMeta] = Field(None, description="Produce annotation")

    @field_validator("unit_price", "line_total", mode="after")
    @classmethod
    def _quantize(cls, v):
        return to_money(v)


class ReceiptHeader(BaseModel):
    """Receipt-level fields."""
    vendor: Optional[str]        = Field(None, description="Resolved vendor name")
    purchase_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    currency: Optional[str]      = Field(None, description="USD | CAD | EUR | GBP")
    total: Optional[Decimal]     = Field(None, description="Receipt total")
    tax: Optional[Decimal]       = Field(None, description="Tax amount")

    @field_validator("total", "tax", mode="after")
    @classmethod
    def _quantize(cls, v):
        return to_money(v)


class ExtractResult(BaseModel):
    """Structured result for one receipt.  Always populated, never raised."""
    receipt: ReceiptHeader      = Field(default_factory=ReceiptHeader)
    lines: List[ParsedLineItem] = Field(default_factory=list)
    confidence: float           = Field(0.0, ge=0, le=1, description="Structural completeness 0-1")
    needs_review: bool          = Field(True, description="Route to manual review")
    review_reasons: List[str]   = Field(default_factory=list, description="Why review is needed")
    review_diagnostics: List[str] = Field(default_factory=list, description="Advisory hints; do not affect needs_review")
    vendor_key: Optional[str]   = Field(None, description="Rule set applied, if any")
    source_mode: Optional[str]  = Field(None, description="'text' or 'geo'")
    source_scores: Dict[str, float] = Field(default_factory=dict, description="Source selector scores")
