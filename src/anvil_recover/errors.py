"""Exception types raised while recovering region files."""

from __future__ import annotations


class RecoveryError(Exception):
    """Base class for failures that stop recovery of a single region file."""


class InvariantViolation(RecoveryError):
    """
    The region file (or the recovery logic) is in a state that cannot be
    reasoned about safely.

    Raised for more than one current entry per header slot, a header write
    that does not read back, or a candidate the resolution partition cannot
    classify. Processing of the affected file stops; nothing is written.
    """


class RegionNameError(RecoveryError, ValueError):
    """The file name does not follow the ``r.<x>.<z>.mca`` convention."""


class ResolutionError(RecoveryError, ValueError):
    """
    An ambiguous header slot could not be settled: no chooser, no answer
    left (end of input), or an entry ordinal outside ``1..n``.
    """


__all__ = ["RecoveryError", "InvariantViolation", "RegionNameError", "ResolutionError"]
