"""
Receipt Line Parser - Command Line
Parses OCR output for one receipt and prints the ExtractResult as JSON

Run with:
    python main.py receipt.txt
    python main.py receipt.txt --geometry vision.json --mode auto
    python main.py --geometry vision.json --log-level DEBUG
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from loguru import logger

from parser_config import load_parser_config
from parser_utils import setup_logging
from receipt_parser import ReceiptParser


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconstruct structured line items from receipt OCR output"
    )
    parser.add_argument("text_file", nargs="?", help="Plain OCR text for the receipt")
    parser.add_argument("--geometry", help="Vision-style word geometry JSON")
    parser.add_argument("--mode", choices=["auto", "text", "geo"], help="Override source selection mode")
    parser.add_argument("--config", help="Parser YAML config (default: config/parser_config.yaml)")
    parser.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-file", help="Optional rotating log file")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level.upper(), args.log_file)

    if not args.text_file and not args.geometry:
        logger.error("Provide a text file, --geometry, or both")
        return 2

    config = load_parser_config(args.config)
    if args.mode:
        config = config.model_copy(update={"ocr_mode": args.mode})

    text = None
    if args.text_file:
        text = Path(args.text_file).read_text(encoding="utf-8")

    geometry = None
    if args.geometry:
        with open(args.geometry, "r", encoding="utf-8") as f:
            geometry = json.load(f)

    result = ReceiptParser(config).parse(text=text, geometry=geometry)
    print(result.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
