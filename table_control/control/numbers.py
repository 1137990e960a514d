"""Number scanning and number-tolerant text comparison."""

from __future__ import annotations

import math
from dataclasses import dataclass

_INFINITY = "infinity"

# Exponents beyond this many characters are not treated as part of a number
_MAX_EXPONENT_CHARS = 20


@dataclass(frozen=True)
class FoundNumber:
    """A number found at some position in a text.

    Attributes:
        min_value: Smallest value the text could represent.
        max_value: Largest value the text could represent.
        end: Index just past the characters that formed the number.
    """

    min_value: float
    max_value: float
    end: int


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def try_parse_number(text: str, start: int = 0) -> FoundNumber | None:
    """Scan a number at ``start`` in ``text``.

    Recognizes an optional leading ``-``, ``NaN``, ``Infinity`` (or any prefix
    of it of at least three letters), a digit run, an optional ``.`` and digit
    run, and an optional ``e``/``E`` exponent with optional ``-``.

    The returned range is the value plus or minus half of the least
    significant digit the text implies, so ``"12"`` covers 11.5 to 12.5 and
    ``"12.0"`` covers 11.95 to 12.05.

    Returns:
        The number found, or None if the text at ``start`` is not a number.
    """
    length = len(text)
    if start >= length:
        return None
    whole_start = start
    negative = text[whole_start] == "-"
    if negative:
        whole_start += 1
    if length >= whole_start + 3:
        if text[whole_start : whole_start + 3].lower() == "nan":
            return FoundNumber(math.nan, math.nan, whole_start + 3)
        inf_len = 0
        while (
            inf_len < len(_INFINITY)
            and whole_start + inf_len < length
            and text[whole_start + inf_len].lower() == _INFINITY[inf_len]
        ):
            inf_len += 1
        if inf_len >= 3:
            value = -math.inf if negative else math.inf
            return FoundNumber(value, value, whole_start + inf_len)

    end = whole_start
    trivial = True
    while end < length and _is_digit(text[end]):
        if text[end] != "0":
            trivial = False
        end += 1
    whole_end = end

    decimal_start = decimal_end = end
    if end < length and text[end] == ".":
        trivial = False
        end += 1
        decimal_start = decimal_end = end
        while end < length and _is_digit(text[end]):
            end += 1
        decimal_end = end
    if whole_end == whole_start and decimal_end == decimal_start:
        return None

    exp_start = exp_end = end
    if end < length and text[end] in "eE":
        if trivial:
            return None
        pre_end = end
        end += 1
        exp_start = exp_end = end
        if end < length and text[end] == "-":
            end += 1
        has_exp = False
        while end < length and _is_digit(text[end]):
            has_exp = True
            end += 1
        exp_end = end
        if not has_exp or exp_end - exp_start >= _MAX_EXPONENT_CHARS:
            end = exp_start = exp_end = pre_end

    number_text = text[start:end]
    if number_text.endswith("."):
        number_text += "0"
    value = float(number_text)
    exponent = int(text[exp_start:exp_end]) if exp_end > exp_start else 0
    exponent -= decimal_end - decimal_start
    try:
        tolerance = math.pow(10, exponent) / 2
    except OverflowError:
        tolerance = math.inf
    return FoundNumber(value - tolerance, value + tolerance, end)


def _digit_run_end(text: str, start: int) -> int:
    end = start
    while end < len(text) and _is_digit(text[end]):
        end += 1
    return end


def _compare_digit_runs(run1: str, run2: str) -> int:
    stripped1 = run1.lstrip("0")
    stripped2 = run2.lstrip("0")
    if len(stripped1) != len(stripped2):
        return -1 if len(stripped1) < len(stripped2) else 1
    if stripped1 != stripped2:
        return -1 if stripped1 < stripped2 else 1
    return 0


def compare_number_tolerant(text1: str, text2: str, ignore_case: bool = True) -> int:
    """Compare two strings, treating embedded digit runs as numbers.

    ``"item2"`` sorts before ``"item10"``.  With ``ignore_case``, case only
    breaks ties between otherwise equal strings.
    """
    i = j = 0
    case_diff = 0
    while i < len(text1) and j < len(text2):
        ch1 = text1[i]
        ch2 = text2[j]
        if _is_digit(ch1) and _is_digit(ch2):
            end1 = _digit_run_end(text1, i)
            end2 = _digit_run_end(text2, j)
            comp = _compare_digit_runs(text1[i:end1], text2[j:end2])
            if comp != 0:
                return comp
            if case_diff == 0 and end1 - i != end2 - j:
                # Same value, fewer leading zeros first
                case_diff = -1 if end1 - i < end2 - j else 1
            i, j = end1, end2
            continue
        if ch1 != ch2:
            if ignore_case:
                low1 = ch1.lower()
                low2 = ch2.lower()
                if low1 != low2:
                    return -1 if low1 < low2 else 1
                if case_diff == 0:
                    case_diff = -1 if ch1 < ch2 else 1
            else:
                return -1 if ch1 < ch2 else 1
        i += 1
        j += 1
    if i < len(text1):
        return 1
    if j < len(text2):
        return -1
    return case_diff


def compare_doubles(a: float, b: float) -> int:
    """Total order over floats with NaN equal to itself and above everything."""
    a_nan = a != a
    b_nan = b != b
    if a_nan or b_nan:
        return 0 if a_nan and b_nan else (1 if a_nan else -1)
    if a == b:
        return 0
    return -1 if a < b else 1
