#!/usr/bin/env python3
"""
SELL Analyzer - command line

    python main.py screenshot.png
    python main.py screenshot.png --engine tesseract --year 2024 --show-text
    python main.py --text transcript.txt      (use '-' for stdin)
    python main.py --gui
"""
import argparse
import sys

import config
from analyzer import SellAnalyzer, format_report
from ocr_engines import ENGINES, ImageLoadError, get_engine_info

EXIT_OK = 0
EXIT_NO_TRADES = 1
EXIT_ERROR = 2


def build_parser():
    parser = argparse.ArgumentParser(description="Find SELL trades in a trading bot screenshot.")
    parser.add_argument("image", nargs="?", help="screenshot file (png/jpg)")
    parser.add_argument("--text", metavar="FILE", help="parse a saved OCR transcript instead of an image ('-' = stdin)")
    parser.add_argument("--engine", choices=("auto",) + ENGINES, default="auto", help="OCR engine (default: config)")
    parser.add_argument("--year", type=int, default=None, help=f"year for MM-DD dates (default: {config.TRADE_YEAR})")
    parser.add_argument("--show-text", action="store_true", help="print the OCR transcript")
    parser.add_argument("--debug", action="store_true", help="write parse diagnostics to the OCR log")
    parser.add_argument("--gui", action="store_true", help="open the window")
    return parser


def _read_transcript(path):
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _format_engine_info(info):
    return ", ".join(
        f"{name}=" + ("ready" if state["initialized"] else "available" if state["available"] else "missing")
        for name, state in info.items()
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.gui:
        from gui import start_gui
        start_gui()
        return EXIT_OK

    if not args.image and not args.text:
        parser.print_usage(sys.stderr)
        print("error: give a screenshot, --text FILE or --gui", file=sys.stderr)
        return EXIT_ERROR

    try:
        analyzer = SellAnalyzer(year=args.year, engine=args.engine, debug=args.debug or None)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        if args.text:
            source = "<stdin>" if args.text == "-" else args.text
            result = analyzer.analyze_text(_read_transcript(args.text), source=source)
        else:
            def _progress(fraction, status):
                if args.debug:
                    print(f"[{int(fraction * 100):3d}%] {status}", file=sys.stderr)

            result = analyzer.analyze_image(args.image, progress=_progress)
            if args.debug:
                print(f"engines: {_format_engine_info(get_engine_info())}", file=sys.stderr)
    except ImageLoadError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"error: cannot read transcript: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.show_text:
        print(result.transcript)
        print("-" * 40)

    print(format_report(result))

    if result.ocr_failed:
        return EXIT_ERROR
    return EXIT_OK if result.trades else EXIT_NO_TRADES


if __name__ == "__main__":
    sys.exit(main())
