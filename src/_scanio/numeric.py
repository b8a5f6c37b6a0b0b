"""
Parsing of numeric tokens in an arbitrary radix into numpy scalar types.

Digits above 9 are the letters a-z (case insensitive), so the radix has to
be in the closed range [2, 36]. Parsing is strict: no whitespace,
underscores or radix prefixes such as "0x" are accepted.
"""

import math
import string
from fractions import Fraction

import numpy as np

MIN_RADIX = 2
MAX_RADIX = 36

_DIGITS = string.digits + string.ascii_lowercase

_SPECIAL_FLOATS = {
    "inf",
    "+inf",
    "-inf",
    "infinity",
    "+infinity",
    "-infinity",
    "nan",
    "+nan",
    "-nan",
}


def valid_radix(radix):
    return isinstance(radix, (int, np.integer)) and MIN_RADIX <= radix <= MAX_RADIX


def strip_grouping(text):
    """
    Remove grouping separators, ie. "2,147,483,647" becomes "2147483647".
    """
    return text.replace(",", "")


def split_sign(text):
    if text[:1] in ("+", "-"):
        return text[0], text[1:]
    return "", text


def is_digits(text, radix):
    """
    :returns: Whether text is a non-empty string of digits in the given radix.
    """
    allowed = _DIGITS[:radix]
    return bool(text) and all(c in allowed for c in text.lower())


def parse_integer(text, radix=10, dtype=np.int64):
    """
    Parse an optionally signed integer in the given radix.

    :param text: The text to parse, eg. "-1a".
    :param radix: The radix of the digits in text.
    :param dtype: The numpy integer type of the result, or int for an
        unbounded python integer.
    :returns: The parsed value as dtype.
    :raises ValueError: If text is not an integer in radix or the value
        does not fit in dtype.
    """
    if not valid_radix(radix):
        raise ValueError(f"Radix has to be between 2 and 36, got {radix}")
    sign, digits = split_sign(text)
    if not is_digits(digits, radix):
        raise ValueError(f"{text!r} is not an integer in radix {radix}")
    value = int(sign + digits, radix)
    if dtype is int:
        return value

    info = np.iinfo(dtype)
    if not info.min <= value <= info.max:
        raise ValueError(f"{text!r} is out of range for {np.dtype(dtype)}")
    return np.dtype(dtype).type(value)


def parse_float(text, radix=10, dtype=np.float64):
    """
    Parse a floating point number in the given radix.

    In radix 10 the usual decimal notation is accepted, including an
    exponent, "inf" and "nan". In any other radix the number is digits
    optionally followed by a point and fraction digits, ie. "11010.1" is
    26.5 in radix 2.

    :param dtype: The numpy floating point type of the result, or float.
    :raises ValueError: If text is not a number in radix or a finite value
        overflows dtype.
    """
    if not valid_radix(radix):
        raise ValueError(f"Radix has to be between 2 and 36, got {radix}")
    if radix == 10:
        value = _parse_decimal(text)
    else:
        value = _parse_fraction(text, radix)

    if dtype is float:
        return value

    with np.errstate(over="ignore"):
        result = np.dtype(dtype).type(value)
    if np.isinf(result) and not math.isinf(value):
        raise ValueError(f"{text!r} is out of range for {np.dtype(dtype)}")
    return result


def _is_mantissa(whole, fraction, radix):
    if not (whole or fraction):
        return False
    return all(is_digits(part, radix) for part in (whole, fraction) if part)


def _parse_decimal(text):
    if text.lower() in _SPECIAL_FLOATS:
        return float(text)
    _, number = split_sign(text)
    mantissa, e, exponent = number.lower().partition("e")
    whole, _, fraction = mantissa.partition(".")
    if not _is_mantissa(whole, fraction, 10):
        raise ValueError(f"{text!r} is not a decimal number")
    if e and not is_digits(split_sign(exponent)[1], 10):
        raise ValueError(f"{text!r} has an invalid exponent")
    return float(text)


def _parse_fraction(text, radix):
    sign, number = split_sign(text)
    whole, _, fraction = number.partition(".")
    if not _is_mantissa(whole, fraction, radix):
        raise ValueError(f"{text!r} is not a number in radix {radix}")

    value = Fraction(int(whole or "0", radix))
    if fraction:
        value += Fraction(int(fraction, radix), radix ** len(fraction))
    try:
        result = float(value)
    except OverflowError as err:
        raise ValueError(f"{text!r} is out of range for float") from err
    return -result if sign == "-" else result
