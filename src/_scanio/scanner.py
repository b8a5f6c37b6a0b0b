"""
The scanner splits a binary stream into tokens separated by a delimiter
pattern, and reads tokens as numbers or the stream line by line.

The stream is read through an ElasticBuffer. A delimiter found near the end
of the buffered window may not be final: "aaaa" could be the start of
"aaaab" for the delimiter "a+b", and the greedy "a[ab]*b" matching "aaab"
could extend to "aaabb" once more bytes are read. Such outcomes are
resolved by stretching the buffer and matching again, never by committing
to the first match that touches the end of the window.

Tokens stay in the buffer until they are complete, so nothing is consumed
when the input fails to decode or a token does not fit in the maximum
buffer size.
"""

import codecs
import functools
import warnings

import numpy as np

from _scanio.delimiter import DEFAULT_DELIMITER, Delimiter
from _scanio.elastic_buffer import DEFAULT_CAPACITY, DEFAULT_MAX_SIZE, ElasticBuffer
from _scanio.match_outcome import ConclusiveMatch, InconclusiveAtBoundary, NoMatch
from _scanio.numeric import parse_float, parse_integer, strip_grouping, valid_radix

DEFAULT_RADIX = 10

# Number of window bytes decoded for the first search, doubled until the
# outcome is conclusive or the whole window is decoded.
INITIAL_VIEW = 256


# Codecs that shift between character sets, so the bytes of a piece of
# text depend on the text before it
_SHIFTING_ENCODINGS = {"utf-7", "hz"}


def stateless_encoding(encoding):
    """
    The normalized name of encoding, which has to encode every piece of
    text to the same bytes wherever it occurs in the stream.

    :raises ValueError: If the encoding writes a byte order mark or shifts
        between character sets, eg. "utf-16" or "iso2022_jp" ("utf-16-le"
        is fine).
    """
    name = codecs.lookup(encoding).name
    if (
        name in _SHIFTING_ENCODINGS
        or name.startswith("iso2022")
        or "\n\n".encode(name) != 2 * "\n".encode(name)
    ):
        raise ValueError(
            f"Unsupported encoding {encoding!r}: byte order marks and "
            "shifting encodings can not be scanned"
        )
    return name


def operation(default=None):
    """
    Decorator for the reading operations of Scanner.

    A failed read from the stream ends only the operation it happened in,
    and input which does not decode is reported with a warning and the
    operation returning default.
    """

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            self._buffer.clear_failure()
            try:
                return method(self, *args, **kwargs)
            except UnicodeDecodeError as err:
                warnings.warn(f"Could not decode input as {self.encoding}: {err}")
                return default

        return wrapper

    return decorator


class Scanner:
    """
    Reads tokens, numbers and lines from a binary stream.

    >>> import io
    >>> scanner = Scanner(io.BytesIO(b"11010 2,048 lines\\nfollow"))
    >>> scanner.next_int(radix=2, dtype=int)
    26
    >>> scanner.next_int(dtype=int)
    2048
    >>> scanner.next()
    'lines'
    >>> scanner.next_line()
    ''
    >>> scanner.next_line()
    'follow'

    """

    def __init__(
        self,
        stream,
        capacity=DEFAULT_CAPACITY,
        encoding="utf-8",
        max_buffer_size=DEFAULT_MAX_SIZE,
    ):
        """
        :param stream: A byte stream, eg. a file opened in binary mode.
        :param capacity: The number of bytes buffered from the stream.
        :param encoding: The encoding of the text in the stream, see
            stateless_encoding.
        :param max_buffer_size: The most bytes the buffer may hold in order
            to complete a token, a line or a delimiter, None for no limit.
        """
        self._buffer = ElasticBuffer(stream, capacity, max_buffer_size)
        self._encoding = stateless_encoding(encoding)
        self._newline = "\n".encode(self._encoding)
        self._delimiter = Delimiter.compile(DEFAULT_DELIMITER)
        self._radix = DEFAULT_RADIX

    @property
    def buffer(self):
        return self._buffer

    @property
    def encoding(self):
        return self._encoding

    @property
    def delimiter(self):
        return self._delimiter

    def set_delimiter(self, pattern):
        """
        Use the given regular expression as delimiter, either as text or
        compiled.

        :returns: The text of the delimiter pattern.
        :raises DelimiterError: If pattern can not be used as delimiter, in
            which case the delimiter is unchanged.
        """
        self._delimiter = Delimiter.compile(pattern)
        return self._delimiter.source

    def set_delimiter_literal(self, text):
        """
        Use text as delimiter, such that it only matches itself, ie.
        set_delimiter_literal("[a-z]+") splits "foo[a-z]+bar" into "foo"
        and "bar".

        :returns: The text of the escaped delimiter pattern.
        """
        self._delimiter = Delimiter.literal(text)
        return self._delimiter.source

    def get_delimiter(self):
        return self._delimiter.source

    def set_radix(self, radix):
        """
        Set the radix numbers are parsed in. A radix outside of [2, 36] is
        ignored.

        :returns: The radix in use after the call.
        """
        if valid_radix(radix):
            self._radix = radix
        return self._radix

    def get_radix(self):
        return self._radix

    def __iter__(self):
        token = self.next()
        while token is not None:
            yield token
            token = self.next()

    @operation()
    def skip_delimiters(self):
        """
        Consume all delimiters at the start of the stream.
        """
        self._skip_delimiters()

    @operation()
    def next(self):
        """
        :returns: The text up to (but excluding) the next delimiter after
            any leading delimiters, or None when the stream is exhausted or
            does not decode. The delimiter following the token is not
            consumed.
        """
        return self._next_token(consume=True)

    @operation(default=False)
    def has_next(self):
        """
        Whether there is another token. Leading delimiters are consumed,
        the token itself is not.
        """
        return self._next_token(consume=False) is not None

    @operation()
    def next_line(self):
        """
        Read the rest of the current line, regardless of delimiter. The
        newline is consumed but not returned.

        :returns: The line, or None when the stream is exhausted or the
            line does not decode.
        """
        return self._next_line()

    @operation()
    def next_int(self, radix=None, dtype=np.int64):
        """
        Parse the next token as an integer. Commas in the token are ignored.

        :param radix: The radix to parse in for this call only, defaults
            to get_radix().
        :param dtype: The integer type of the result, see parse_integer.
        :returns: The value, or None if the token is not an integer in the
            radix or does not fit in dtype. The token is consumed either
            way, except when radix is outside of [2, 36].
        """
        return self._next_number(parse_integer, radix, dtype, consume=True)

    @operation(default=False)
    def has_next_int(self, radix=None, dtype=np.int64):
        value = self._next_number(parse_integer, radix, dtype, consume=False)
        return value is not None

    @operation()
    def next_float(self, radix=None, dtype=np.float64):
        """
        Parse the next token as a floating point number, see next_int.
        """
        return self._next_number(parse_float, radix, dtype, consume=True)

    @operation(default=False)
    def has_next_float(self, radix=None, dtype=np.float64):
        value = self._next_number(parse_float, radix, dtype, consume=False)
        return value is not None

    def _next_number(self, parse, radix, dtype, consume):
        if radix is None:
            radix = self._radix
        elif not valid_radix(radix):
            return None
        token = self._next_token(consume)
        if token is None:
            return None
        try:
            return parse(strip_grouping(token), radix, dtype)
        except ValueError:
            return None

    def _next_token(self, consume):
        if self._buffer.exhausted:
            return None
        self._skip_delimiters()
        text, outcome = self._resolve(anchored=False)
        if isinstance(outcome, ConclusiveMatch):
            text = text[: outcome.start]
        if not text:
            return None
        if consume:
            self._buffer.consume(self._byte_length(text))
        return text

    def _skip_delimiters(self):
        while True:
            text, outcome = self._resolve(anchored=True)
            if not isinstance(outcome, ConclusiveMatch) or outcome.end == 0:
                return
            self._buffer.consume(self._byte_length(text[: outcome.end]))

    def _resolve(self, anchored):
        """
        Match the delimiter against the window, reading ahead until
        more input could not change the outcome.

        :param anchored: Only look for a delimiter at the start of the window.
        :returns: The decoded text the outcome refers to and the outcome,
            which is either a ConclusiveMatch or NoMatch. NoMatch means no
            delimiter starts in text, and when not anchored that text runs
            to the end of the stream.
        """
        self._buffer.fill()
        window = self._buffer.window
        view = min(len(window), INITIAL_VIEW)
        pos = 0
        while True:
            at_end = view == len(window) and self._buffer.at_eof
            text, error = self._decode(window[:view], final=at_end)
            # Text can not continue past undecodable bytes
            outcome = self._delimiter.classify(
                text, at_end or error is not None, anchored, pos
            )
            if isinstance(outcome, ConclusiveMatch):
                return text, outcome
            if isinstance(outcome, NoMatch) and anchored:
                if text or at_end or error is not None:
                    return text, outcome
            if error is not None:
                raise error
            if isinstance(outcome, NoMatch) and at_end:
                return text, outcome

            if isinstance(outcome, InconclusiveAtBoundary):
                pos = outcome.start
            else:
                pos = len(text)

            if view < len(window):
                view = min(len(window), 2 * view)
            else:
                self._buffer.stretch(max(self._buffer.capacity, len(window)))
                window = self._buffer.window
                view = len(window)

    def _next_line(self):
        self._buffer.fill()
        searched = 0
        while True:
            end = self._buffer.find(self._newline, searched)
            # Code units of wider encodings, eg. utf-16-le, start at multiples
            # of the newline width
            while end > 0 and end % len(self._newline):
                end = self._buffer.find(self._newline, end + 1)
            if end >= 0:
                size = end + len(self._newline)
                break
            if self._buffer.at_eof:
                size = len(self._buffer)
                break
            searched = max(0, len(self._buffer) - len(self._newline) + 1)
            self._buffer.stretch(max(self._buffer.capacity, len(self._buffer)))

        if size == 0:
            return None
        line = self._buffer.peek(size)
        text = line.decode(self._encoding)
        self._buffer.consume(size)
        if text.endswith("\n"):
            text = text[:-1]
        return text

    def _decode(self, data, final):
        """
        Decode data, leaving out an incomplete character at the end unless
        final.

        :returns: The decoded text and None, or the text decoded before the
            first undecodable bytes and the UnicodeDecodeError.
        """
        decoder = codecs.getincrementaldecoder(self._encoding)()
        try:
            return decoder.decode(data, final=final), None
        except UnicodeDecodeError as err:
            return data[: err.start].decode(self._encoding), err

    def _byte_length(self, text):
        return len(text.encode(self._encoding))
