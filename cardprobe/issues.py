"""
Probe issues — why a lookup came back empty.

Every public operation collapses these to a plain "no result" value; they
are kept only so diagnostics (ProbeReport, the debug CLI, DEBUG logs) can
say *why* nothing was found.
"""

from enum import Enum


class ProbeIssue(str, Enum):
    TRUNCATED = "truncated"                    # header would read past the window
    MALFORMED = "malformed"                    # size below minimum / overflows
    UNSUPPORTED_EXTENSION = "unsupported_extension"
    NOT_FOUND = "not_found"                    # tree is fine, target is absent
    IO_ERROR = "io_error"                      # open / stat / seek / read failed


def note(issues, issue: ProbeIssue):
    """Append *issue* to an optional caller-supplied list (no duplicates)."""
    if issues is not None and issue not in issues:
        issues.append(issue)
