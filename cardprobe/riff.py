"""
RIFF chunk walker (AVI).

Chunk header layout (little-endian):
  [0:4]   fourCC  — "LIST" for a list, otherwise the data chunk id
  [4:8]   size    — payload length, excluding header and pad byte
A LIST payload starts with its 4-byte list type ("hdrl", "strl", ...).
Chunks start on even offsets: an odd-sized chunk is followed by one pad
byte that its size field does not count.
"""

from __future__ import annotations

import struct
import logging
from typing import Optional

from .issues import ProbeIssue, note

logger = logging.getLogger(__name__)

CHUNK_HEADER = 8
LIST_ID = b"LIST"


def is_avi(data: bytes) -> bool:
    """RIFF header with the "AVI " form type (note the trailing space)."""
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"AVI "


def find_chunk(data: bytes, start: int, end: int, fourcc: bytes,
               list_type: Optional[bytes] = None,
               issues=None) -> Optional[tuple[int, int]]:
    """
    Scan one level of chunks in data[start:end].

    With `list_type` set, return the contents of the first LIST of that
    type (the range just past the list-type field).  Without it, return
    the payload of the first plain chunk whose id is `fourcc`; LISTs are
    skipped in that mode.
    """
    end = min(end, len(data))
    i = start
    while True:
        if i >= end:
            return None
        if i + CHUNK_HEADER > end:
            note(issues, ProbeIssue.TRUNCATED)
            return None

        chunk_id = data[i:i + 4]
        size = struct.unpack_from("<I", data, i + 4)[0]
        payload_start = i + CHUNK_HEADER
        chunk_end = payload_start + size
        if chunk_end > end:
            logger.debug("chunk %r @%d: size %d overruns range end %d",
                         chunk_id, i, size, end)
            note(issues, ProbeIssue.TRUNCATED)
            return None

        is_list = chunk_id == LIST_ID
        if is_list and list_type is not None:
            if size >= 4 and \
                    data[payload_start:payload_start + 4] == list_type:
                return payload_start + 4, chunk_end
        elif not is_list and list_type is None and chunk_id == fourcc:
            return payload_start, chunk_end

        i = chunk_end
        if i & 1:
            i += 1  # pad byte
