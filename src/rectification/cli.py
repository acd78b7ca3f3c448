"""
Command-line entry point for manual rectification runs.

Usage:
    python -m src.rectification.cli photo.jpg -o scanned.jpg --debug --debug-dir debug/
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from src.rectification.config_loader import get_default_config, load_config
from src.rectification.decoder import decode_image
from src.rectification.encoder import decode_data_url
from src.rectification.processor import DocumentScanner
from src.rectification.types import DecodeError
from src.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flatten a photographed document into a rectangular scan"
    )
    parser.add_argument("input", type=str, help="Input image file")
    parser.add_argument(
        "--output", "-o", type=str, default=None, help="Write rectified JPEG here"
    )
    debug_group = parser.add_mutually_exclusive_group()
    debug_group.add_argument(
        "--debug", dest="debug", action="store_true", default=None,
        help="Capture intermediate stage snapshots",
    )
    debug_group.add_argument(
        "--no-debug", dest="debug", action="store_false",
        help="Disable snapshots even if IMAGE_SCAN_DEBUG is set",
    )
    parser.add_argument(
        "--debug-dir", type=str, default=None,
        help="Directory for debug snapshots (<stage>.jpg)",
    )
    parser.add_argument("--config", type=str, default=None, help="Configuration YAML")
    parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON on stdout"
    )
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser


def _write_data_url(data_url: str, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(decode_data_url(data_url))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"Input file not found: {input_path}")
        return EXIT_INPUT_ERROR

    try:
        config = load_config(Path(args.config)) if args.config else get_default_config()
    except (FileNotFoundError, yaml.YAMLError, ValidationError) as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        return EXIT_INPUT_ERROR
    debug = True if args.debug_dir and args.debug is None else args.debug

    # The scanner reports undecodable input as internal_error; check it here
    # so a bad input file gets its own exit code.
    buffer = input_path.read_bytes()
    try:
        decode_image(buffer)
    except DecodeError as e:
        logger.error(f"Cannot read image {input_path}: {e}")
        return EXIT_INPUT_ERROR

    scanner = DocumentScanner(config=config)
    result = scanner.scan(buffer, debug=debug)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))

    if result.debug_images and args.debug_dir:
        debug_dir = Path(args.debug_dir)
        for stage, data_url in result.debug_images.items():
            _write_data_url(data_url, debug_dir / f"{stage}.jpg")
        logger.info(f"Wrote {len(result.debug_images)} debug images to {debug_dir}")

    if not result.success:
        logger.error(f"Rectification failed: {result.reason.value}")
        return EXIT_FAILED

    if args.output:
        _write_data_url(result.scanned_image, Path(args.output))
        logger.info(f"Saved rectified image to {args.output}")

    logger.info(f"Corners (TL, TR, BR, BL): {result.corner_list()}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
