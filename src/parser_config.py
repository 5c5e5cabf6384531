"""
Parser Configuration
====================
Tunables consumed by the parsing pipeline.  The pipeline itself never reads
files or the environment: callers build a ParserConfig (directly, or from
YAML through load_parser_config) and hand it to ReceiptParser.

YAML layout (config/parser_config.yaml)
---------------------------------------
parser:
  y_merge_multiplier: 0.65
  ocr_mode: auto
  min_confidence: 0.85
  produce_tolerance: 0.02
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Dict, Literal, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


OcrMode = Literal["text", "geo", "auto"]


class ParserConfig(BaseModel):
    """Immutable parsing parameters.  Out-of-range values raise ValidationError."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Geometry row merging: threshold = max(3, median_word_height * multiplier)
    y_merge_multiplier: float = Field(0.65, gt=0)
    min_word_len: int         = Field(1, ge=0)

    # Source selection
    ocr_mode: OcrMode   = "auto"
    auto_margin: float  = Field(5.0, ge=0)

    # Review gate
    min_confidence: float = Field(0.85, ge=0, le=1)

    # Produce math: |weight * unit_price - line_total| <= max(tolerance, 0.02)
    produce_tolerance: Decimal = Field(Decimal("0.02"), ge=0)

    # Scan windows
    header_line_count: int  = Field(25, gt=0)
    totals_scan_window: int = Field(60, gt=0)


def _default_config() -> Dict:
    """Return default configuration"""
    return {"parser": ParserConfig().model_dump()}


def load_parser_config(config_path: Optional[str] = None) -> ParserConfig:
    """
    Load a ParserConfig from YAML.

    Args:
        config_path: YAML file path (default: config/parser_config.yaml)

    Returns:
        ParserConfig, or defaults when the file is missing or has no 'parser' section
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "parser_config.yaml"

    if not os.path.exists(config_path):
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return ParserConfig(**_default_config()["parser"])

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    section = config.get("parser") or {}
    logger.debug(f"[ParserConfig] loaded {sorted(section)} from {config_path}")
    return ParserConfig(**section)
