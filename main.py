#!/usr/bin/env python3
"""
cardprobe — Single-file debug entry point.

Usage:
    python main.py clip.mp4                 # dimensions + DJI marker
    python main.py -v DCIM/*.MP4            # per-file results + majority vote
    python main.py --markers-only clip.mov
"""

APP_VERSION = "1.0.0"

import os
import sys
import logging
import argparse

from cardprobe.atoms import iter_atoms
from cardprobe.markers import (
    MarkerResult, MarkerTally, classify, is_marker_candidate,
)
from cardprobe.probe import probe
from cardprobe.window_reader import (
    DIMENSION_WINDOW_CAP, MARKER_WINDOW_CAP, MiB, load_windows,
)


def _fmt(n):
    s = float(n)
    for u in ("B", "KB", "MB", "GB"):
        if s < 1024:
            return f"{s:.1f} {u}"
        s /= 1024
    return f"{s:.1f} TB"


def _print_top_level(path):
    """List top-level boxes of the head window (MOV/MP4 only)."""
    windows = load_windows(path, DIMENSION_WINDOW_CAP, order="head")
    if not windows:
        return
    boxes = list(iter_atoms(windows[0].data, 0, windows[0].length))
    if not boxes:
        return
    print("  Top-level boxes:")
    for tag, start, end in boxes:
        name = tag.decode("latin-1")
        print(f"    {name!r:8s} payload @{start:<10d} {_fmt(end - start):>10s}")


def check_file(path, args):
    detected = None
    print(f"File:       {path}")
    try:
        print(f"Size:       {_fmt(os.path.getsize(path))}")
    except OSError as e:
        print(f"Size:       unreadable ({e})")

    if not args.markers_only:
        report = probe(path, cap=args.dimension_cap)
        print(f"Dimensions: {report.summary}")
        if args.verbose and report.container == "isobmff":
            _print_top_level(path)

    if not args.dimensions_only:
        detected = classify(path, cap=args.marker_cap)
        print(f"Detected:   {detected.display_name} ({detected.folder_name})")
        if detected is MarkerResult.UNKNOWN:
            print("  No pb_file:dvtm_* marker found. "
                  "Try searching the file for 'dvtm_' or 'pb_file'.")
    print()
    return detected


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect MOV/MP4/AVI footage: frame size and DJI marker.")
    parser.add_argument("paths", nargs="+", help="Video file(s) to inspect")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging and top-level box listing")
    only = parser.add_mutually_exclusive_group()
    only.add_argument("--markers-only", action="store_true",
                      help="Skip the dimension probe")
    only.add_argument("--dimensions-only", action="store_true",
                      help="Skip the marker scan")
    parser.add_argument("--dimension-cap", type=float,
                        default=DIMENSION_WINDOW_CAP / MiB, metavar="MIB",
                        help="Window size for the dimension probe (MiB)")
    parser.add_argument("--marker-cap", type=float,
                        default=MARKER_WINDOW_CAP / MiB, metavar="MIB",
                        help="Window size for the marker scan (MiB)")
    parser.add_argument("--version", action="version",
                        version=f"cardprobe {APP_VERSION}")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    args.dimension_cap = max(1, int(args.dimension_cap * MiB))
    args.marker_cap = max(1, int(args.marker_cap * MiB))

    status = 0
    counts = MarkerTally()
    for path in args.paths:
        if not os.path.exists(path):
            print(f"File not found: {path}")
            print()
            status = 2
            continue
        detected = check_file(path, args)
        if not is_marker_candidate(path):
            counts.skipped += 1
        elif detected is not None:
            counts.add(detected)

    if len(args.paths) > 1 and not args.dimensions_only:
        verdict = counts.verdict
        print("=" * 60)
        print(f"  Flip: {counts.flip}   O4 Pro: {counts.o4_pro}   "
              f"Unknown: {counts.unknown}   Skipped: {counts.skipped}")
        print(f"  Majority: {verdict.display_name} ({verdict.folder_name})")
        print("=" * 60)

    return status


if __name__ == "__main__":
    sys.exit(main())
