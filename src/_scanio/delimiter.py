"""
Delimiter patterns and boundary safe matching.

A delimiter is matched against a finite window of a longer stream. A match
found in the window is only final when more input could not change it,
which is decided conservatively: any candidate that runs into the end of
the window is inconclusive until the end of the stream has been reached.
Candidates that are merely a prefix of a possible match (eg. "aaaa" for the
pattern "a+b") are found with the partial matching of the regex package.
"""

import re
from dataclasses import dataclass

import regex

from _scanio.errors import DelimiterError
from _scanio.match_outcome import (
    NO_MATCH,
    ConclusiveMatch,
    InconclusiveAtBoundary,
)

DEFAULT_DELIMITER = r"\s+"

# The flag values of re and regex differ
_RE_FLAGS = {
    re.ASCII: regex.ASCII,
    re.IGNORECASE: regex.IGNORECASE,
    re.LOCALE: regex.LOCALE,
    re.MULTILINE: regex.MULTILINE,
    re.DOTALL: regex.DOTALL,
    re.UNICODE: regex.UNICODE,
    re.VERBOSE: regex.VERBOSE,
}


@dataclass(frozen=True)
class Delimiter:
    """
    A compiled delimiter pattern together with the text it was compiled
    from.
    """

    source: str
    pattern: regex.Pattern

    @classmethod
    def compile(cls, pattern):
        """
        :param pattern: Either pattern text, a compiled regex pattern or
            a compiled re pattern (recompiled with the same flags).
        :returns: The Delimiter for that pattern.
        """
        if isinstance(pattern, re.Pattern):
            flags = 0
            for re_flag, regex_flag in _RE_FLAGS.items():
                if pattern.flags & re_flag:
                    flags |= regex_flag
            pattern = cls._compile(pattern.pattern, flags)
        elif not isinstance(pattern, regex.Pattern):
            pattern = cls._compile(pattern)

        if not isinstance(pattern.pattern, str):
            raise DelimiterError(
                f"Delimiter has to be a text pattern, got {pattern.pattern!r}"
            )
        if pattern.fullmatch("") is not None:
            raise DelimiterError(
                f"Delimiter {pattern.pattern!r} matches the empty string"
            )
        return cls(pattern.pattern, pattern)

    @classmethod
    def literal(cls, text):
        """
        The delimiter matching exactly the given text, metacharacters
        included.
        """
        return cls.compile(regex.escape(text))

    @staticmethod
    def _compile(source, flags=0):
        try:
            return regex.compile(source, flags)
        except (regex.error, TypeError) as err:
            raise DelimiterError(f"Invalid delimiter {source!r}: {err}") from err

    def classify(self, text, at_end, anchored=False, pos=0):
        """
        Match the delimiter against text, which is the currently available
        part of the stream.

        :param text: The text to search.
        :param at_end: Whether text runs up to the end of the stream.
        :param anchored: Only consider a delimiter starting at pos.
        :param pos: Where in text to start searching.
        :returns: NO_MATCH, ConclusiveMatch or InconclusiveAtBoundary.
        """
        find = self.pattern.match if anchored else self.pattern.search
        found = find(text, pos, partial=not at_end)
        if found is None:
            return NO_MATCH
        if found.partial:
            return InconclusiveAtBoundary(found.start())
        if not at_end:
            if found.end() == len(text):
                return InconclusiveAtBoundary(found.start())
            if not anchored:
                earlier = self._candidate_before(text, pos, found.start())
                if earlier is not None:
                    return InconclusiveAtBoundary(earlier)
        return ConclusiveMatch(found.start(), found.end())

    def _candidate_before(self, text, pos, end):
        """
        The regex package prefers a complete match to a partial one, even
        when the partial one starts earlier.

        Every candidate is matched from its own start, so text with many
        overlapping candidates, eg. "aaaa...b" for "a+z|b", takes time
        quadratic in its length. The text is at most one buffer window,
        which max_buffer_size bounds.

        :returns: The first position in [pos, end) where a match could
            start that runs past the end of text, or None.
        """
        while pos < end:
            found = self.pattern.search(text, pos, endpos=end, partial=True)
            if found is None:
                return None
            if found.partial:
                candidate = self.pattern.match(text, found.start(), partial=True)
                if candidate is not None and candidate.partial:
                    return found.start()
            pos = found.start() + 1
        return None

    def __str__(self):
        return self.source
