"""
Affix Engine - Audit CLI
Parses a file of description cells (one per line) and prints a JSON
report, so a designer can see which rows an importer would flag.

Usage:
    python main.py affixes.txt                 # Parse each line as one clause
    python main.py affixes.txt --effects       # Split multi-effect cells first
    python main.py affixes.txt --tier 3        # Explicit tier for every row
    python main.py - --review-only < rows.txt  # Read stdin, show flagged rows only
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from config import LOG_LEVEL, LOG_FILE
from modifier_types import ParseHints, ParseStatus
from affix_engine import parse_batch, parse_effect, summarize

logger = logging.getLogger("affix-audit")


def setup_logging(debug: bool = False):
    """Configure logging.

    Console gets INFO+ on stderr so the JSON report on stdout stays clean.
    File (AFFIX_LOG_FILE) gets DEBUG when --debug is used.
    """
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else LOG_LEVEL)
    console.setFormatter(logging.Formatter(
        "%(asctime)s %(message)s",
        datefmt="%H:%M:%S"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else LOG_LEVEL)
    root_logger.addHandler(console)

    if LOG_FILE is not None:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))
        root_logger.addHandler(file_handler)


def read_descriptions(source: str) -> List[str]:
    """One description per non-blank line; '-' reads stdin."""
    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        lines = Path(source).read_text(encoding="utf-8").splitlines()
    return [line for line in lines if line.strip()]


def build_report(descriptions: List[str], hints: ParseHints, effects: bool,
                 workers: Optional[int], review_only: bool) -> dict:
    if effects:
        results = [r for text in descriptions for r in parse_effect(text, hints)]
    else:
        results = parse_batch(descriptions, hints, workers=workers)

    shown = results
    if review_only:
        shown = [r for r in results if r.status is not ParseStatus.MATCHED]
    return {
        "summary": summarize(results),
        "results": [r.to_dict() for r in shown],
    }


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Affix Engine - description audit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py affixes.txt                    # Parse every line
  python main.py affixes.txt --effects --debug  # Split cells, trace each rule
        """
    )
    parser.add_argument("input", help="File with one description per line ('-' for stdin)")
    parser.add_argument("--tier", "-t", help="Explicit tier (1-9) applied to every row")
    parser.add_argument("--item-level", "-l", type=int, help="Required level applied to every row")
    parser.add_argument(
        "--effects", "-e",
        action="store_true",
        help="Split each line into clauses on sentence punctuation"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Thread pool size for batch parsing (default: AFFIX_BATCH_WORKERS)"
    )
    parser.add_argument(
        "--review-only", "-r",
        action="store_true",
        help="Only list rows that need review or failed"
    )
    parser.add_argument("--output", "-o", help="Write the report here instead of stdout")
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    try:
        descriptions = read_descriptions(args.input)
        hints = ParseHints(explicit_tier=args.tier, item_level=args.item_level)
        report = build_report(descriptions, hints, args.effects, args.workers, args.review_only)
        text = json.dumps(report, indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(text + "\n", encoding="utf-8")
            logger.info(f"Report written to {args.output}")
        else:
            print(text)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
