"""
ISO Base Media box walker (MP4 / MOV / M4V).

Box header layout (big-endian):
  [0:4]   size  — total box length including the header
  [4:8]   type  — four ASCII characters ("moov", "trak", "tkhd", ...)
  [8:16]  64-bit size, only when size == 1

find_atom() scans ONE level of siblings.  Callers descend by feeding the
returned payload range back in (moov → trak → tkhd), so there is no
recursion and no shared cursor.  Malformed input only ever ends a scan;
nothing here raises.
"""

from __future__ import annotations

import struct
import logging
from typing import Iterator, Optional

from .issues import ProbeIssue, note

logger = logging.getLogger(__name__)

BOX_HEADER = 8
EXTENDED_BOX_HEADER = 16
MAX_EXTENDED_SIZE = 2 ** 63 - 1


def _box_at(data: bytes, i: int, end: int,
            issues=None) -> Optional[tuple[bytes, int, int]]:
    """Decode the box header at `i` → (tag, payload_start, box_end)."""
    if i >= end:
        return None
    if i + BOX_HEADER > end:
        note(issues, ProbeIssue.TRUNCATED)
        return None

    size, tag = struct.unpack_from(">I4s", data, i)
    payload_start = i + BOX_HEADER

    if size == 1:
        if i + EXTENDED_BOX_HEADER > end:
            note(issues, ProbeIssue.TRUNCATED)
            return None
        size = struct.unpack_from(">Q", data, i + 8)[0]
        if size < EXTENDED_BOX_HEADER or size > MAX_EXTENDED_SIZE:
            logger.debug("box %r @%d: bad extended size %d", tag, i, size)
            note(issues, ProbeIssue.MALFORMED)
            return None
        payload_start = i + EXTENDED_BOX_HEADER
    elif size < BOX_HEADER:
        # size 0 ("runs to end of file") is not honoured either
        logger.debug("box %r @%d: size %d below header length", tag, i, size)
        note(issues, ProbeIssue.MALFORMED)
        return None

    box_end = i + size
    if box_end > end:
        logger.debug("box %r @%d: size %d overruns range end %d",
                     tag, i, size, end)
        note(issues, ProbeIssue.TRUNCATED)
        return None

    return tag, payload_start, box_end


def iter_atoms(data: bytes, start: int, end: int,
               issues=None) -> Iterator[tuple[bytes, int, int]]:
    """Yield (tag, payload_start, box_end) for each sibling in [start, end)."""
    end = min(end, len(data))
    i = start
    while True:
        box = _box_at(data, i, end, issues)
        if box is None:
            return
        yield box
        i = box[2]


def find_atom(data: bytes, start: int, end: int, tag: bytes,
              issues=None) -> Optional[tuple[int, int]]:
    """
    Find the first sibling box of type `tag` in data[start:end].

    Returns the payload range (payload_start, box_end), or None when the
    box is absent or the scan hit a truncated / malformed header first.
    """
    for box_tag, payload_start, box_end in iter_atoms(data, start, end, issues):
        if box_tag == tag:
            return payload_start, box_end
    return None


def iter_atom_candidates(data: bytes, tag: bytes) -> Iterator[tuple[int, int]]:
    """
    Yield payload ranges of every plausible `tag` box anywhere in `data`.

    A tail window usually starts in the middle of mdat, so a sibling walk
    from offset 0 is meaningless there.  Instead every occurrence of the
    four tag bytes is checked for a box header around it that fits the
    buffer, in file order.  The top-level walk is tried first.
    """
    top = find_atom(data, 0, len(data), tag)
    if top is not None:
        yield top

    idx = 0
    while idx < len(data):
        pos = data.find(tag, idx)
        if pos == -1:
            return
        idx = pos + 1
        if pos < 4:
            continue
        box = _box_at(data, pos - 4, len(data))
        if box is None or box[0] != tag:
            continue
        rng = (box[1], box[2])
        if rng != top:
            yield rng
