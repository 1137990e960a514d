"""Date/time and duration scanning.

The scanners here read a date, time or duration *prefix* of a string and
report exactly how much text they consumed.  ``str()`` of a parsed value
reproduces the consumed text, so callers can bound a match span (or verify
that a whole token was a date) by its length.

Dates and times are resolved by ``dateparser`` (English plus the language of
the current ``LC_TIME`` locale), which accepts forms such as::

    2021            2021-03-15        2021/03/15 10:30:15
    03/15/2021      jan 2021          jan 15, 2021
    15 jan 2021     10:30 pm          fri, 15 jan 2021 10:30:00

Each candidate is resolved twice against two different relative bases.
A field counts as typed only when both resolutions agree on it, so a
missing year or day is never mistaken for one that was given.
"""

from __future__ import annotations

import locale
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from dateparser.date import DateDataParser

log = logging.getLogger(__name__)

FIELDS: tuple[str, ...] = ("year", "month", "day", "hour", "minute", "second")

_DATEPARSER_SETTINGS = {
    "PARSERS": ["absolute-time"],
    "RETURN_TIME_AS_PERIOD": True,
    "PREFER_DAY_OF_MONTH": "current",
    "PREFER_DATES_FROM": "current_period",
}
# Far enough apart that no field of one matches the other
_RELATIVE_BASES = (datetime(2004, 3, 10, 11, 11, 11), datetime(2008, 10, 20, 13, 13, 13))

# Fields a resolved period can have been given explicitly
_DAY_FIELDS = ("year", "month", "day")
_PERIOD_FIELDS: dict[str, tuple[str, ...]] = {
    "year": ("year",),
    "month": ("year", "month"),
    "week": _DAY_FIELDS,
    "day": _DAY_FIELDS,
    "time": _DAY_FIELDS + ("hour", "minute"),
}

_MAX_WORDS = 6
_CUT_CHARS = ",;.)]-/"
_WORD_RE = re.compile(r"\S+")
_DIGIT_RE = re.compile(r"[0-9]")
_YEAR_RE = re.compile(r"(?<!\w)[0-9]{4}(?![0-9])")
_TIME_RE = re.compile(r"[0-9]:[0-9]{2}")
_SECONDS_RE = re.compile(r"[0-9]:[0-9]{2}:[0-9]{2}")
_LETTERS_RE = re.compile(r"[^\W\d_]{3}")
_AMPM_RE = re.compile(r"[ap]\.?m\.?", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedInstant:
    """A calendar value parsed from text, at the precision the text gave.

    Only the fields the text specified are set.  ``text`` is the exact
    consumed text and is what ``str()`` returns.
    """

    text: str
    year: int | None = None
    month: int | None = None
    day: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: float | None = None

    @property
    def fields(self) -> tuple[str, ...]:
        """Names of the fields this instant specifies, most significant first."""
        return tuple(name for name in FIELDS if getattr(self, name) is not None)

    def is_comparable(self, other: ParsedInstant) -> bool:
        """Whether ``other`` is at least as precise as this instant.

        A search for ``jan 2021`` can be decided against ``2021-01-15`` but
        not against ``2021``.
        """
        return bool(self.fields) and all(getattr(other, name) is not None for name in self.fields)

    def compare(self, other: ParsedInstant) -> int:
        """Compare against ``other`` over the fields this instant specifies."""
        for name in self.fields:
            mine = getattr(self, name)
            theirs = getattr(other, name)
            if theirs is None:
                return 0
            if mine != theirs:
                return -1 if mine < theirs else 1
        return 0

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text


def _languages() -> list[str]:
    languages = ["en"]
    try:
        code = locale.getlocale(locale.LC_TIME)[0]
    except ValueError:
        code = None
    if code:
        language = code.split("_")[0].lower()
        if language not in languages and language not in ("c", "posix"):
            languages.append(language)
    return languages


def _build_parsers(languages: list[str]) -> tuple[DateDataParser, ...]:
    return tuple(
        DateDataParser(
            languages=languages,
            settings={**_DATEPARSER_SETTINGS, "RELATIVE_BASE": base},
        )
        for base in _RELATIVE_BASES
    )


@lru_cache(maxsize=None)
def _date_parsers() -> tuple[DateDataParser, ...]:
    languages = _languages()
    try:
        return _build_parsers(languages)
    except ValueError as e:
        log.warning("Date names for %s are unavailable, using English: %s", languages, e)
        return _build_parsers(["en"])


def _looks_like_date(text: str) -> bool:
    """Cheap shape check run before handing text to dateparser.

    A candidate needs a four-digit year, a clock time or a word, and at
    most one year (two years are a range, not an instant).
    """
    years = len(_YEAR_RE.findall(text))
    if years > 1:
        return False
    return bool(years or _TIME_RE.search(text) or _LETTERS_RE.search(text))


@lru_cache(maxsize=4096)
def _resolve(text: str) -> tuple[datetime, datetime, str] | None:
    resolved = []
    for parser in _date_parsers():
        data = parser.get_date_data(text)
        if data.date_obj is None:
            return None
        resolved.append(data)
    first, second = resolved
    return first.date_obj, second.date_obj, first.period


@lru_cache(maxsize=4096)
def _parse_exact(text: str) -> ParsedInstant | None:
    if not _looks_like_date(text):
        return None
    resolved = _resolve(text)
    if resolved is None:
        return None
    first, second, period = resolved
    values: dict[str, float | int] = {
        name: getattr(first, name)
        for name in _PERIOD_FIELDS.get(period, ())
        if getattr(first, name) == getattr(second, name)
    }
    if period == "time" and _SECONDS_RE.search(text) and first.second == second.second:
        values["second"] = first.second + first.microsecond / 1_000_000
    if not values:
        return None
    return ParsedInstant(text=text, **values)


def _bears_date(word: str) -> bool:
    """Whether a word can start or end a date: it has digits, is am/pm, or names a date."""
    word = word.strip(_CUT_CHARS + "([")
    if not word:
        return False
    if _DIGIT_RE.search(word) or _AMPM_RE.fullmatch(word):
        return True
    return _looks_like_date(word) and _resolve(word.lower()) is not None


def _candidates(chunk: str):
    """``chunk`` and its cuts at punctuation inside the last word, longest first."""
    word_start = chunk.rfind(chunk.split()[-1])
    if chunk[-1] not in _CUT_CHARS or _AMPM_RE.fullmatch(chunk[word_start:]):
        yield chunk
    for i in range(len(chunk) - 1, word_start, -1):
        if chunk[i] in _CUT_CHARS:
            yield chunk[:i]


def parse_instant_exact(text: str) -> ParsedInstant | None:
    """Parse ``text`` as a date/time in its entirety, or return None."""
    if not text or text != text.strip():
        return None
    return _parse_exact(text)


@lru_cache(maxsize=8192)
def parse_instant(text: str, start: int = 0) -> ParsedInstant | None:
    """Parse the longest date/time prefix of ``text[start:]``.

    The prefix spans at most a few words of one line, and both its first and
    its last word must look like part of a date.

    Returns:
        The parsed instant, or None if no date or time starts at ``start``.
    """
    if start >= len(text) or text[start].isspace():
        return None
    line_end = text.find("\n", start)
    if line_end < 0:
        line_end = len(text)
    word_ends = [m.end() for m in _WORD_RE.finditer(text, start, line_end)][:_MAX_WORDS]
    if not _bears_date(text[start : word_ends[0]]):
        return None
    for end in reversed(word_ends):
        for candidate in _candidates(text[start:end]):
            last = candidate.split()[-1]
            if not _bears_date(last):
                continue
            found = _parse_exact(candidate)
            if found is not None:
                return found
    return None


def _alternation(words) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


# Duration units in seconds, longest spelling first in the pattern
_DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millis": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "wk": 604800,
    "wks": 604800,
    "week": 604800,
    "weeks": 604800,
    "mo": 2592000,
    "month": 2592000,
    "months": 2592000,
    "y": 31536000,
    "yr": 31536000,
    "yrs": 31536000,
    "year": 31536000,
    "years": 31536000,
}
_DURATION_PART_RE = re.compile(
    rf"(\d+(?:\.\d+)?)[ \t]*({_alternation(_DURATION_UNITS)})(?![^\W\d_])",
    re.IGNORECASE,
)
_DURATION_SEP_RE = re.compile(r"[ \t,]*")


@dataclass(frozen=True)
class ParsedDuration:
    """A length of time parsed from text such as ``1h30m`` or ``90 seconds``."""

    text: str
    seconds: float

    def compare(self, other: ParsedDuration) -> int:
        if self.seconds == other.seconds:
            return 0
        return -1 if self.seconds < other.seconds else 1

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text


def parse_duration(text: str, start: int = 0) -> ParsedDuration | None:
    """Parse the longest duration prefix of ``text[start:]``.

    Every component needs a unit, so a bare number is not a duration.
    """
    m = _DURATION_PART_RE.match(text, start)
    if m is None:
        return None
    total = 0.0
    end = start
    while m is not None:
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2).lower()]
        end = m.end()
        sep = _DURATION_SEP_RE.match(text, end)
        m = _DURATION_PART_RE.match(text, sep.end())
    return ParsedDuration(text=text[start:end], seconds=total)
