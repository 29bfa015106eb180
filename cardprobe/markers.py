"""
Vendor Marker Scanner — tell DJI Flip footage from DJI O4 Pro footage.

Both cameras embed the name of their protobuf telemetry schema in the
metadata boxes of every clip:

  DJI Flip    — pb_file:dvtm_flip.proto
  DJI O4 Pro  — pb_file:dvtm_O4P.proto

The metadata can sit at either end of the file, so the first and the last
10 MB are searched.  Matching runs in two tiers:

  1. raw bytes     — case-insensitive substring search on the window bytes
  2. text fallback — decode as UTF-8, strip NULs, look for shorter fragments
                     (survives framing bytes interleaved inside the string)

O4 Pro is checked before Flip in every tier.
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .window_reader import MARKER_WINDOW_CAP, load_windows

logger = logging.getLogger(__name__)

MARKER_EXTENSIONS = (".mp4", ".mov", ".m4v")


class MarkerResult(Enum):
    UNKNOWN = "unknown"
    FLIP = "flip"
    O4_PRO = "o4_pro"

    @property
    def display_name(self) -> str:
        names = {
            MarkerResult.FLIP: "DJI Flip",
            MarkerResult.O4_PRO: "DJI O4 Pro",
        }
        return names.get(self, "Unknown Device")

    @property
    def folder_name(self) -> str:
        folders = {
            MarkerResult.FLIP: "DJIFlip",
            MarkerResult.O4_PRO: "DJI04",
        }
        return folders.get(self, "Unknown")


# (vendor, full marker, text-tier fragments), in match order
VENDOR_MARKERS = (
    (MarkerResult.O4_PRO, b"pb_file:dvtm_O4P.proto", ("dvtm_O4P", "O4P.proto")),
    (MarkerResult.FLIP, b"pb_file:dvtm_flip.proto", ("dvtm_flip", "flip.proto")),
)


def _raw_contains(lowered: list[bytes], marker: bytes) -> bool:
    needle = marker.lower()
    return any(needle in buf for buf in lowered)


def _text_contains(texts: list[str], fragments: tuple[str, ...]) -> bool:
    return any(frag.casefold() in text
               for frag in fragments for text in texts)


def classify_buffers(buffers: Iterable[bytes]) -> MarkerResult:
    """Classify already-loaded windows.  Pure; never touches the disk."""
    buffers = [bytes(b) for b in buffers if b]
    if not buffers:
        return MarkerResult.UNKNOWN

    # bytes.lower() only folds ASCII letters, like the markers themselves
    lowered = [buf.lower() for buf in buffers]
    for vendor, marker, _fragments in VENDOR_MARKERS:
        if _raw_contains(lowered, marker):
            return vendor

    texts = [
        buf.decode("utf-8", errors="replace").replace("\x00", "").casefold()
        for buf in buffers
    ]
    for vendor, _marker, fragments in VENDOR_MARKERS:
        if _text_contains(texts, fragments):
            logger.debug("marker for %s found by text fallback", vendor.name)
            return vendor

    return MarkerResult.UNKNOWN


def classify(path, cap: int = MARKER_WINDOW_CAP) -> MarkerResult:
    """Classify one file by its head and tail windows."""
    try:
        windows = load_windows(path, cap, order="head_and_tail")
        return classify_buffers(w.data for w in windows)
    except Exception as e:
        logger.error("marker scan failed for %s: %s", path, e, exc_info=True)
        return MarkerResult.UNKNOWN


@dataclass
class MarkerTally:
    """Per-vendor hit counts over a set of files."""
    flip: int = 0
    o4_pro: int = 0
    unknown: int = 0
    skipped: int = 0        # not a recognised video container

    @property
    def scanned(self) -> int:
        return self.flip + self.o4_pro + self.unknown

    @property
    def verdict(self) -> MarkerResult:
        if self.flip > self.o4_pro:
            return MarkerResult.FLIP
        if self.o4_pro > self.flip:
            return MarkerResult.O4_PRO
        return MarkerResult.UNKNOWN

    def add(self, result: MarkerResult):
        if result is MarkerResult.FLIP:
            self.flip += 1
        elif result is MarkerResult.O4_PRO:
            self.o4_pro += 1
        else:
            self.unknown += 1


def is_marker_candidate(path) -> bool:
    try:
        ext = os.path.splitext(os.fspath(path))[1].lower()
    except TypeError:
        return False
    return ext in MARKER_EXTENSIONS


def tally(paths: Iterable, cap: int = MARKER_WINDOW_CAP) -> MarkerTally:
    """Classify every video container in `paths` independently."""
    counts = MarkerTally()
    for path in paths:
        if not is_marker_candidate(path):
            counts.skipped += 1
            continue
        counts.add(classify(path, cap=cap))
    logger.debug("marker tally: flip=%d o4_pro=%d unknown=%d skipped=%d",
                 counts.flip, counts.o4_pro, counts.unknown, counts.skipped)
    return counts


def classify_many(paths: Iterable, cap: int = MARKER_WINDOW_CAP) -> MarkerResult:
    """Strict-majority vendor over `paths`; ties give UNKNOWN."""
    try:
        return tally(paths, cap=cap).verdict
    except Exception as e:
        logger.error("marker tally failed: %s", e, exc_info=True)
        return MarkerResult.UNKNOWN
