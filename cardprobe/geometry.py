"""
Frame geometry — width/height of the first usable video track.

ISO BMFF (MOV / MP4 / M4V)
──────────────────────────
moov → trak → tkhd.  The track header stores width and height as 16.16
fixed point at the end of the box; the version byte decides where:

  version 0 — 32-bit times,  width @ payload+76, height @ payload+80
  version 1 — 64-bit times,  width @ payload+84, height @ payload+88

Audio tracks carry 0×0, so every trak is tried in order.

AVI (RIFF)
──────────
RIFF "AVI " → LIST hdrl → LIST strl → strf.  For a video stream strf holds
a BITMAPINFOHEADER: biWidth @4, biHeight @8, both signed little-endian.  A
negative biHeight only means the bitmap is stored top-down.

Both paths share the same sanity bound: 1..8192 pixels per side.
"""

from __future__ import annotations

import struct
import logging
from dataclasses import dataclass
from typing import Optional

from .atoms import find_atom, iter_atom_candidates
from .issues import ProbeIssue, note
from .riff import find_chunk, is_avi

logger = logging.getLogger(__name__)

MAX_DIMENSION = 8192

TKHD_MIN_PAYLOAD = 88
TKHD_WIDTH_OFFSET_V0 = 76
TKHD_WIDTH_OFFSET_V1 = 84

BITMAPINFOHEADER_PREFIX = 12


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return self.width, self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def plausible(width: int, height: int) -> bool:
    return 0 < width <= MAX_DIMENSION and 0 < height <= MAX_DIMENSION


# ══════════════════════════════════════════════════════════════
#  ISO BMFF
# ══════════════════════════════════════════════════════════════

def tkhd_dimensions(data: bytes, start: int, end: int) -> Optional[Dimensions]:
    """Decode width/height from a tkhd payload range, if plausible."""
    if end - start < TKHD_MIN_PAYLOAD:
        return None
    version = data[start]
    off = start + (TKHD_WIDTH_OFFSET_V0 if version == 0 else TKHD_WIDTH_OFFSET_V1)
    if off + 8 > end:
        # v1 box cut down to the v0 minimum
        return None
    w_fixed, h_fixed = struct.unpack_from(">II", data, off)
    width, height = w_fixed >> 16, h_fixed >> 16
    if not plausible(width, height):
        logger.debug("tkhd v%d @%d: rejected %dx%d", version, start, width, height)
        return None
    return Dimensions(width, height)


def moov_dimensions(data: bytes, start: int, end: int,
                    issues=None) -> Optional[Dimensions]:
    """Try each trak inside one moov payload; first plausible track wins."""
    pos = start
    while pos < end:
        trak = find_atom(data, pos, end, b"trak", issues)
        if trak is None:
            break
        tkhd = find_atom(data, trak[0], trak[1], b"tkhd", issues)
        if tkhd is not None:
            dims = tkhd_dimensions(data, tkhd[0], tkhd[1])
            if dims is not None:
                return dims
        pos = trak[1]
    return None


def first_track_dimensions(data: bytes, issues=None) -> Optional[Dimensions]:
    """Width/height of the first usable track of any moov in `data`."""
    seen_moov = False
    for moov_start, moov_end in iter_atom_candidates(data, b"moov"):
        seen_moov = True
        dims = moov_dimensions(data, moov_start, moov_end, issues)
        if dims is not None:
            return dims
    note(issues, ProbeIssue.NOT_FOUND)
    if not seen_moov:
        logger.debug("no moov box in %d-byte buffer", len(data))
    return None


# ══════════════════════════════════════════════════════════════
#  AVI
# ══════════════════════════════════════════════════════════════

def bitmap_dimensions(data: bytes, start: int, end: int) -> Optional[Dimensions]:
    """Decode a BITMAPINFOHEADER prefix from an strf payload range."""
    if end - start < BITMAPINFOHEADER_PREFIX:
        return None
    width, height = struct.unpack_from("<ii", data, start + 4)
    height = abs(height)  # negative = top-down rows
    if not plausible(width, height):
        logger.debug("strf @%d: rejected %dx%d", start, width, height)
        return None
    return Dimensions(width, height)


def _stream_type(data: bytes, start: int, end: int) -> Optional[bytes]:
    strh = find_chunk(data, start, end, b"strh")
    if strh is None or strh[1] - strh[0] < 4:
        return None
    return data[strh[0]:strh[0] + 4]


def avi_dimensions(data: bytes, issues=None) -> Optional[Dimensions]:
    """Width/height from the first video stream list of an AVI header."""
    if not is_avi(data):
        note(issues, ProbeIssue.MALFORMED)
        return None

    hdrl = find_chunk(data, 12, len(data), b"LIST", b"hdrl", issues)
    if hdrl is None:
        note(issues, ProbeIssue.NOT_FOUND)
        return None

    pos, end = hdrl
    while pos < end:
        strl = find_chunk(data, pos, end, b"LIST", b"strl", issues)
        if strl is None:
            break
        # Audio streams keep a WAVEFORMATEX in strf
        if _stream_type(data, strl[0], strl[1]) not in (None, b"vids"):
            logger.debug("strl @%d: not a video stream", strl[0])
        else:
            strf = find_chunk(data, strl[0], strl[1], b"strf", issues=issues)
            if strf is not None:
                dims = bitmap_dimensions(data, strf[0], strf[1])
                if dims is not None:
                    return dims
        pos = strl[1] + (strl[1] & 1)

    note(issues, ProbeIssue.NOT_FOUND)
    return None
