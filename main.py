"""
Bingo Scanner - Entry Point

Scans ticket photos into number grids and manages stored plates.

Example:
    python main.py scan ticket1.jpg ticket2.jpg --save
    python main.py score 5 17 42 63
    python main.py plates
    python main.py generate --count 10
"""

import sys
import logging
import argparse
from typing import List, Optional

from bingo_scanner.settings import load_settings
from bingo_scanner.scanner import (
    RecognizerLoadError,
    ScanResult,
    TicketScanner,
    create_recognizer,
    summarize,
)
from bingo_scanner.plates import Plate, PlateStore, generate_plates


logger = logging.getLogger(__name__)


def setup_logging(debug: bool) -> None:
    """Configure logging - output to both console and file."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(),  # Console output
            logging.FileHandler("scanner.log", mode='w', encoding='utf-8')  # File output
        ]
    )


class ConsoleProgress:
    """Prints batch progress to stdout."""

    def on_progress(self, index: int, total: int, label: str) -> None:
        print(f"[{index}/{total}] {label}")


def format_grid(result: ScanResult) -> str:
    """Render a scan grid, '.' for empty and '?' for unresolved cells."""
    lines = []
    for row_idx, row in enumerate(result.grid):
        cells = []
        for col_idx, value in enumerate(row):
            if value is not None:
                cells.append(f"{value:>2}")
            elif result.cell_results[row_idx * result.cols + col_idx].empty:
                cells.append(" .")
            else:
                cells.append(" ?")
        lines.append(" ".join(cells))
    return "\n".join(lines)


def cmd_scan(args, settings) -> int:
    """Scan ticket images and optionally store them as plates."""
    recognizer = create_recognizer(
        settings["recognizer"],
        language=settings.get("language"),
        tesseract_cmd=settings.get("tesseract_cmd"),
    )
    scanner = TicketScanner(recognizer)

    try:
        results = scanner.scan_batch(args.images, rows=args.rows, cols=args.cols,
                                     listener=ConsoleProgress())
    except RecognizerLoadError as e:
        logger.error(f"Could not load recognizer: {e}")
        return 2

    for result in results:
        print(f"\n{result.label}" + ("" if result.quad_found else " (no border found)"))
        print(format_grid(result))

    filled, empty, unresolved = summarize(results)
    print(f"\n{len(results)}/{len(args.images)} scanned: "
          f"{filled} numbers, {empty} empty, {unresolved} unresolved")

    if args.save and results:
        store = PlateStore(settings["plates_file"])
        plates = store.add(Plate.from_grid(r.grid) for r in results)
        print(f"Saved {len(results)} plates ({len(plates)} stored)")

    return 0 if len(results) == len(args.images) else 1


def cmd_plates(args, settings) -> int:
    """List stored plates."""
    plates = PlateStore(settings["plates_file"]).load()
    if not plates:
        print("No plates stored")
        return 0

    for plate in plates:
        print(f"\n{plate.id}")
        print(plate.format())
    return 0


def cmd_score(args, settings) -> int:
    """Score stored plates against called numbers, best first."""
    plates = PlateStore(settings["plates_file"]).load()
    called = set(args.numbers)

    ranked = sorted(plates, key=lambda p: p.score_against(called), reverse=True)
    for plate in ranked:
        print(f"{plate.score_against(called):>2}/{len(plate.numbers())}  {plate.id}")
    return 0


def cmd_generate(args, settings) -> int:
    """Generate random plates into the store."""
    plates = PlateStore(settings["plates_file"]).add(generate_plates(args.count))
    print(f"Generated {args.count} plates ({len(plates)} stored)")
    return 0


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Bingo Scanner - digitize bingo tickets from photos"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Settings file (default: config.json)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan ticket images")
    scan.add_argument("images", nargs="+", help="Ticket image files")
    scan.add_argument("--rows", type=int, default=None, help="Ticket rows (default from settings)")
    scan.add_argument("--cols", type=int, default=None, help="Ticket columns (default from settings)")
    scan.add_argument("--save", action="store_true", help="Store scanned grids as plates")
    scan.set_defaults(func=cmd_scan)

    plates = sub.add_parser("plates", help="List stored plates")
    plates.set_defaults(func=cmd_plates)

    score = sub.add_parser("score", help="Score stored plates against called numbers")
    score.add_argument("numbers", nargs="+", type=int, help="Called numbers")
    score.set_defaults(func=cmd_score)

    generate = sub.add_parser("generate", help="Generate random plates")
    generate.add_argument("--count", type=int, default=30, help="Number of plates (default: 30)")
    generate.set_defaults(func=cmd_generate)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Run the Bingo Scanner command line."""
    args = parse_args(argv)

    # Logging first so settings warnings reach scanner.log
    setup_logging(args.debug)
    settings = load_settings(args.config)
    if settings.get("debug_enabled", False) and not args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # Grid size: CLI flag overrides saved setting
    if args.command == "scan":
        if args.rows is None:
            args.rows = settings["rows"]
        if args.cols is None:
            args.cols = settings["cols"]

    sys.exit(args.func(args, settings))


if __name__ == "__main__":
    main()
