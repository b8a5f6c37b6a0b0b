"""
The result of matching a delimiter against a finite window of text.

Offsets are character offsets into the text that was classified.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NoMatch:
    """
    No position in the text starts a delimiter, not even as a prefix
    that more input could complete.
    """

    pass


@dataclass(frozen=True)
class ConclusiveMatch:
    """
    A delimiter spans [start, end) and more input can not change that.
    """

    start: int
    end: int


@dataclass(frozen=True)
class InconclusiveAtBoundary:
    """
    A candidate delimiter starts at start but runs to the end of the
    text, so more input could extend, shrink or break it.
    """

    start: int


NO_MATCH = NoMatch()
