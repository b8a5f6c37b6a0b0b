import io
import re

import numpy as np
import pytest
from hypothesis import given

from _scanio.errors import BufferLimitError, DelimiterError, WrongFileModeError
from _scanio.scanner import Scanner

from .generators.scanner_input import (
    capacities,
    delimited_text,
    greedy_delimiters,
    greedy_tokens,
)


class TrickleStream(io.RawIOBase):
    """
    A stream giving at most one byte per read.
    """

    def __init__(self, contents):
        self._contents = io.BytesIO(contents)

    def readable(self):
        return True

    def readinto(self, buffer):
        chunk = self._contents.read(min(1, len(buffer)))
        buffer[: len(chunk)] = chunk
        return len(chunk)


class FailingStream(io.RawIOBase):
    """
    A stream which fails once its contents have been read.
    """

    def __init__(self, contents):
        self._contents = io.BytesIO(contents)

    def readable(self):
        return True

    def readinto(self, buffer):
        chunk = self._contents.read(len(buffer))
        if not chunk:
            raise OSError("connection reset")
        buffer[: len(chunk)] = chunk
        return len(chunk)


@pytest.fixture(params=[io.BytesIO, TrickleStream])
def make_scanner(request):
    def scanner(contents, **kwargs):
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        return Scanner(request.param(contents), **kwargs)

    return scanner


def test_next_once(make_scanner):
    assert make_scanner("hello").next() == "hello"


def test_next_breaks_at_delimiter(make_scanner):
    scanner = make_scanner("hello, world")
    assert scanner.next() == "hello,"
    assert scanner.next() == "world"
    assert scanner.next() is None


def test_next_skips_leading_delimiters(make_scanner):
    scanner = make_scanner("hello,  world")
    scanner.next()
    assert scanner.next() == "world"


def test_next_preserves_trailing_delimiter(make_scanner):
    scanner = make_scanner("hello,  world")
    assert scanner.next() == "hello,"
    assert scanner.next_line() == "  world"


def test_next_handles_line_wrap(make_scanner):
    assert make_scanner("hello\nworld").next() == "hello"


def test_next_line_reads_whole_line(make_scanner):
    scanner = make_scanner("hello,  world\ngoodbye, world")
    assert scanner.next_line() == "hello,  world"
    assert scanner.next_line() == "goodbye, world"
    assert scanner.next_line() is None


def test_next_line_keeps_empty_lines(make_scanner):
    scanner = make_scanner("\n\nlast\n")
    assert scanner.next_line() == ""
    assert scanner.next_line() == ""
    assert scanner.next_line() == "last"
    assert scanner.next_line() is None


def test_next_works_after_next_line(make_scanner):
    scanner = make_scanner("hello,  world\ngoodbye, world")
    scanner.next_line()
    assert scanner.next() == "goodbye,"


def test_next_line_longer_than_capacity(make_scanner):
    scanner = make_scanner("a long first line\nsecond", capacity=4)
    assert scanner.next_line() == "a long first line"
    assert scanner.next_line() == "second"


def test_arbitrary_delimiter(make_scanner):
    scanner = make_scanner("foohello, worldfoo")
    scanner.set_delimiter("foo")
    assert scanner.next() == "hello, world"
    assert scanner.next() is None


def test_literal_delimiter_escapes_metacharacters(make_scanner):
    scanner = make_scanner("foo[a-z]+bar")
    assert scanner.set_delimiter_literal("[a-z]+") == scanner.get_delimiter()
    assert scanner.next() == "foo"
    assert scanner.next() == "bar"


def test_compiled_re_delimiter(make_scanner):
    scanner = make_scanner("aXbxc")
    scanner.set_delimiter(re.compile("x", re.IGNORECASE))
    assert list(scanner) == ["a", "b", "c"]


def test_invalid_delimiter_keeps_previous(make_scanner):
    scanner = make_scanner("a,b c")
    scanner.set_delimiter(",")
    with pytest.raises(DelimiterError):
        scanner.set_delimiter("(")
    with pytest.raises(DelimiterError):
        scanner.set_delimiter("x*")
    assert scanner.get_delimiter() == ","
    assert scanner.next() == "a"


def test_changing_delimiter_between_tokens(make_scanner):
    scanner = make_scanner("a b;c d")
    assert scanner.next() == "a"
    scanner.set_delimiter(";")
    assert scanner.next() == " b"
    scanner.set_delimiter(r"\s+")
    assert list(scanner) == [";c", "d"]


def test_buffer_ends_before_delimiter(make_scanner):
    scanner = make_scanner("hello world", capacity=4)
    assert scanner.next() == "hello"
    assert scanner.next() == "world"


def test_buffer_ends_within_end_delimiter(make_scanner):
    scanner = make_scanner("foo  bar", capacity=4)
    scanner.set_delimiter_literal("  ")
    assert scanner.next() == "foo"


def test_buffer_ends_within_start_delimiter(make_scanner):
    scanner = make_scanner("aaaabfoo", capacity=4)
    scanner.set_delimiter("a+b")
    assert scanner.next() == "foo"


def test_buffer_boundary_preserves_greed(make_scanner):
    scanner = make_scanner("aaabbfoo", capacity=4)
    scanner.set_delimiter("a[ab]*b")
    assert scanner.next() == "foo"


def test_partial_candidate_before_complete_match(make_scanner):
    scanner = make_scanner("xa bcz", capacity=5)
    scanner.set_delimiter("a.*z|b")
    assert scanner.next() == "x"


def test_skip_delimiters_is_idempotent(make_scanner):
    scanner = make_scanner("   \n token")
    scanner.skip_delimiters()
    once = scanner.buffer.window
    scanner.skip_delimiters()
    assert scanner.buffer.window == once == b"token"


def test_buffer_contracts_after_stretch():
    scanner = Scanner(io.BytesIO(b"hello world"), capacity=4)
    assert scanner.next() == "hello"
    assert scanner.buffer.size == 4
    assert not scanner.buffer.is_stretched


def test_multibyte_characters_across_boundary(make_scanner):
    scanner = make_scanner("ærlig søk 日本", capacity=1)
    assert list(scanner) == ["ærlig", "søk", "日本"]


def test_next_int_handles_commas(make_scanner):
    scanner = make_scanner("2,147,483,647")
    assert scanner.next_int(dtype=np.int32) == 2147483647


@pytest.mark.parametrize("number", ["2147483648", "-2147483649"])
def test_next_int_none_on_overflow(make_scanner, number):
    scanner = make_scanner(number + " 1")
    assert scanner.next_int(dtype=np.int32) is None
    assert scanner.next_int(dtype=np.int32) == 1


def test_next_int_returns_dtype(make_scanner):
    value = make_scanner("-7").next_int(dtype=np.int16)
    assert value == -7
    assert value.dtype == np.int16


def test_next_int_consumes_invalid_token(make_scanner):
    scanner = make_scanner("abc 4")
    assert scanner.next_int() is None
    assert scanner.next_int() == 4


def test_next_float(make_scanner):
    assert make_scanner("2.5").next_float() == 2.5


def test_next_int_custom_radix(make_scanner):
    scanner = make_scanner("11010")
    assert scanner.next_int(radix=1) is None
    assert scanner.get_radix() == 10
    assert scanner.next_int(radix=2) == 26
    assert scanner.get_radix() == 10


def test_next_float_base_2(make_scanner):
    scanner = make_scanner("11010.1")
    assert scanner.next_float(radix=1) is None
    assert scanner.next_float(radix=2) == 26.5


def test_persistent_radix(make_scanner):
    scanner = make_scanner("ff 10 z")
    assert scanner.set_radix(16) == 16
    assert scanner.next_int() == 255
    assert scanner.next_int(radix=10) == 10
    assert scanner.next_int(radix=36) == 35
    assert scanner.get_radix() == 16


def test_radix_between_2_36(make_scanner):
    scanner = make_scanner("")
    assert scanner.get_radix() == 10
    assert scanner.set_radix(1) == 10
    assert scanner.set_radix(37) == 10
    assert scanner.set_radix(36) == 36
    assert scanner.get_radix() == 36


def test_has_next_does_not_consume(make_scanner):
    scanner = make_scanner("  abc 12")
    assert scanner.has_next()
    assert not scanner.has_next_int()
    assert scanner.next() == "abc"
    assert scanner.has_next_int()
    assert scanner.has_next_float()
    assert scanner.next_int() == 12
    assert not scanner.has_next()


def test_iteration(make_scanner):
    assert list(make_scanner(" a\tbb\nccc ")) == ["a", "bb", "ccc"]


def test_exhausted_stream_stays_exhausted(make_scanner):
    scanner = make_scanner("a")
    assert scanner.next() == "a"
    for _ in range(3):
        assert scanner.next() is None
        assert scanner.next_line() is None
        assert scanner.next_int() is None
        assert scanner.next_float() is None
        assert not scanner.has_next()


def test_undecodable_input_is_not_consumed(make_scanner):
    scanner = make_scanner(b"abc \xffdef")
    assert scanner.next() == "abc"
    with pytest.warns(UserWarning, match="decode"):
        assert scanner.next() is None
    assert scanner.buffer.window == b"\xffdef"


def test_undecodable_line_is_not_consumed(make_scanner):
    scanner = make_scanner(b"\xff\nabc")
    with pytest.warns(UserWarning, match="decode"):
        assert scanner.next_line() is None
    assert scanner.buffer.window.startswith(b"\xff\n")


def test_other_encoding(make_scanner):
    scanner = make_scanner("blåbær syltetøy".encode("latin-1"), encoding="latin-1")
    assert list(scanner) == ["blåbær", "syltetøy"]


def test_read_failure_ends_operation():
    scanner = Scanner(FailingStream(b"abc"), capacity=3)
    with pytest.warns(UserWarning, match="connection reset"):
        assert scanner.next() == "abc"
    with pytest.warns(UserWarning, match="connection reset"):
        assert scanner.next() is None


def test_token_exceeding_buffer_limit():
    scanner = Scanner(io.BytesIO(b"x" * 100), capacity=4, max_buffer_size=16)
    with pytest.raises(BufferLimitError):
        scanner.next()
    assert scanner.buffer.window.startswith(b"xxxx")
    with pytest.raises(BufferLimitError):
        scanner.next_line()


def test_text_stream_is_rejected():
    scanner = Scanner(io.StringIO("abc"))
    with pytest.raises(WrongFileModeError):
        scanner.next()


@given(delimited_text(), capacities)
def test_tokens_across_buffer_boundaries(text_and_tokens, capacity):
    text, tokens = text_and_tokens
    scanner = Scanner(io.BytesIO(text.encode("utf-8")), capacity=capacity)
    assert list(scanner) == tokens


@given(delimited_text(greedy_tokens, greedy_delimiters), capacities)
def test_greedy_delimiters_across_buffer_boundaries(text_and_tokens, capacity):
    text, tokens = text_and_tokens
    scanner = Scanner(io.BytesIO(text.encode("utf-8")), capacity=capacity)
    scanner.set_delimiter("a[ab]*b")
    assert list(scanner) == tokens


@pytest.mark.parametrize(
    "encoding", ["utf-8-sig", "utf-16", "utf-32", "utf-7", "iso-2022-jp"]
)
def test_stateful_encodings_are_rejected(encoding):
    with pytest.raises(ValueError, match="Unsupported encoding"):
        Scanner(io.BytesIO(b"ab cd ef"), encoding=encoding)


def test_utf_16_without_byte_order_mark(make_scanner):
    contents = "ab cd ef\nlast line".encode("utf-16-le")
    scanner = make_scanner(contents, capacity=3, encoding="utf-16-le")
    assert scanner.next() == "ab"
    assert scanner.next() == "cd"
    assert scanner.next_line() == " ef"
    assert scanner.next_line() == "last line"
    assert scanner.next_line() is None


def test_buffer_allocation_stays_within_limit():
    lines = b"".join(b"%098d\n" % i for i in range(200))
    scanner = Scanner(io.BytesIO(lines), capacity=4, max_buffer_size=256)
    buffer = scanner.buffer
    sizes = []
    stretch = buffer.stretch

    def recording_stretch(by):
        read = stretch(by)
        sizes.append(buffer.size)
        return read

    buffer.stretch = recording_stretch
    for i in range(200):
        assert scanner.next_line() == "%098d" % i
    assert sizes
    assert max(sizes) <= 256


def test_utf_16_newline_bytes_across_characters(make_scanner):
    # "ੁ䄀" encodes to 41 0a 00 41, which contains 0a 00, the bytes of "\n"
    contents = "aੁ䄀\nb".encode("utf-16-le")
    scanner = make_scanner(contents, capacity=3, encoding="utf-16-le")
    assert scanner.next_line() == "aੁ䄀"
    assert scanner.next_line() == "b"
