"""
Probe — public entry points for frame geometry.

  dimensions(path)            → Dimensions | None
  is_exactly(path, w, h)      → bool
  is_skyzone_dvr(path)        → bool   (SkyZone analog goggles record 640×480)
  probe(path)                 → ProbeReport (same lookup, with diagnostics)

Every entry point is total: a missing, foreign, truncated or corrupt file
gives "no result", never an exception, so callers can sweep a whole card.
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from typing import Optional

from .geometry import Dimensions, avi_dimensions, first_track_dimensions
from .issues import ProbeIssue, note
from .window_reader import DIMENSION_WINDOW_CAP, iter_windows

logger = logging.getLogger(__name__)

ISO_BMFF_EXTENSIONS = (".mov", ".mp4", ".m4v")
AVI_EXTENSIONS = (".avi",)

SKYZONE_WIDTH = 640
SKYZONE_HEIGHT = 480


@dataclass
class ProbeReport:
    """How a dimension probe of one file ended."""
    path: str
    container: str = ""                 # "isobmff", "avi" or ""
    dimensions: Optional[Dimensions] = None
    window: str = ""                    # window label that produced the hit
    windows_read: int = 0
    issues: list[ProbeIssue] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.dimensions is not None

    @property
    def summary(self) -> str:
        if self.found:
            return f"{self.dimensions} ({self.container}, {self.window} window)"
        if not self.issues:
            return "no dimensions"
        return "no dimensions: " + ", ".join(i.value for i in self.issues)


def _container_for(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext in ISO_BMFF_EXTENSIONS:
        return "isobmff"
    if ext in AVI_EXTENSIONS:
        return "avi"
    return ""


def _probe(report: ProbeReport, cap: int):
    report.container = _container_for(report.path)
    if not report.container:
        note(report.issues, ProbeIssue.UNSUPPORTED_EXTENSION)
        return

    if report.container == "avi":
        order, extract = "head", avi_dimensions
    else:
        order, extract = "tail_first", first_track_dimensions

    for win in iter_windows(report.path, cap, order):
        report.windows_read += 1
        dims = extract(win.data, report.issues)
        if dims is not None:
            report.dimensions = dims
            report.window = win.label
            return

    if report.windows_read == 0:
        note(report.issues, ProbeIssue.IO_ERROR)


def probe(path, cap: int = DIMENSION_WINDOW_CAP) -> ProbeReport:
    """Look up the frame geometry of `path`, keeping the diagnostics."""
    try:
        report = ProbeReport(path=os.fspath(path))
    except TypeError:
        report = ProbeReport(path=str(path))
        note(report.issues, ProbeIssue.UNSUPPORTED_EXTENSION)
        return report

    try:
        _probe(report, cap)
    except Exception as e:
        logger.error("dimension probe failed for %s: %s", report.path, e,
                     exc_info=True)
        report.dimensions = None
        note(report.issues, ProbeIssue.MALFORMED)

    logger.debug("%s: %s", report.path, report.summary)
    return report


def dimensions(path, cap: int = DIMENSION_WINDOW_CAP) -> Optional[Dimensions]:
    """(width, height) of the first usable video track, or None."""
    return probe(path, cap=cap).dimensions


def is_exactly(path, width: int, height: int,
               cap: int = DIMENSION_WINDOW_CAP) -> bool:
    dims = dimensions(path, cap=cap)
    return dims is not None and dims.as_tuple() == (width, height)


def is_skyzone_dvr(path, cap: int = DIMENSION_WINDOW_CAP) -> bool:
    """True for 640×480 footage, the SkyZone goggle DVR resolution."""
    return is_exactly(path, SKYZONE_WIDTH, SKYZONE_HEIGHT, cap=cap)
