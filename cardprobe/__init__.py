# cardprobe — Raw container inspection for SD-card footage imports.
# Pure-Python ISO BMFF / RIFF walking, no container library.
#
# Architecture (bottom → top):
#   window_reader  — Bounded head/tail windows (mmap or plain reads)
#   atoms          — Single-level ISO BMFF box scan (MOV/MP4/M4V)
#   riff           — Single-level RIFF chunk/list scan (AVI)
#   geometry       — moov/trak/tkhd and hdrl/strl/strf frame size
#   markers        — DJI proto-marker fingerprinting
#   probe          — Public dimension entry points + diagnostics

from .geometry import Dimensions, MAX_DIMENSION
from .issues import ProbeIssue
from .markers import MarkerResult, MarkerTally, classify, classify_many, tally
from .probe import ProbeReport, dimensions, is_exactly, is_skyzone_dvr, probe

__version__ = "1.0.0"

__all__ = [
    "Dimensions",
    "MAX_DIMENSION",
    "ProbeIssue",
    "MarkerResult",
    "MarkerTally",
    "classify",
    "classify_many",
    "tally",
    "ProbeReport",
    "dimensions",
    "is_exactly",
    "is_skyzone_dvr",
    "probe",
]
