"""
Speech Text

Everything the assistant says goes through make_speech_friendly() before
it reaches a speech synthesizer. Recipe text is full of notation that
reads well and sounds wrong ("1.5 hours", "350°F", "1/2 cup"); the
rewrites below turn it into words.

The rewrites run in a fixed order and each one only touches text it
matches. Decimal hours are handled before ranges and decimal minutes so
a later rewrite never sees half-converted text, and the decimal rewrites
skip numbers that are the bound of a range.

Speech I/O itself is platform-provided; the cooking session only depends
on the two narrow interfaces defined here (Speaker and Listener). The
concrete bindings live in services/audio.py.
"""

import re
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol

from kitchen_voice.services.numbers import number_to_words


@dataclass(frozen=True)
class Transcript:
    """One speech recognition result."""
    text: str
    is_final: bool = True


class Speaker(Protocol):
    """Turns text into spoken audio."""

    async def speak(self, text: str) -> Optional[bytes]:
        ...


class Listener(Protocol):
    """Turns captured audio into a stream of transcripts."""

    def listen(self, audio: bytes) -> AsyncIterator[Transcript]:
        ...


# Not preceded by a range dash or "to", so range bounds are left for rule 3
_NOT_RANGE_BOUND = r"(?<![\d.\-–—])(?<!to )"

_HALF_HOURS = re.compile(_NOT_RANGE_BOUND + r"(\d+)\.5\s*(?:hour|hr)s?", re.IGNORECASE)
_DECIMAL_HOURS = re.compile(_NOT_RANGE_BOUND + r"(\d+)\.(\d+)\s*(?:hour|hr)s?", re.IGNORECASE)
_RANGES = re.compile(
    r"(\d+(?:\.\d+)?)\s*(?:[-–—]|\s+to\s+)\s*(\d+(?:\.\d+)?)\s*(hour|hr|minute|min)s?",
    re.IGNORECASE,
)
_HALF_MINUTES = re.compile(_NOT_RANGE_BOUND + r"(\d+)\.5\s*(?:minute|min)s?", re.IGNORECASE)
_FAHRENHEIT = re.compile(r"(\d+)\s*°\s*F\b", re.IGNORECASE)
_CELSIUS = re.compile(r"(\d+)\s*°\s*C\b", re.IGNORECASE)

FRACTION_WORDS = {
    "1/2": "one half",
    "1/4": "one quarter",
    "3/4": "three quarters",
    "1/3": "one third",
    "2/3": "two thirds",
}

FRACTION_GLYPHS = {
    "½": "one half",
    "¼": "one quarter",
    "¾": "three quarters",
    "⅓": "one third",
    "⅔": "two thirds",
}


def _digits_to_words(digits: str) -> str:
    return " ".join(number_to_words(int(d)) for d in digits)


def _format_time_number(value: str) -> str:
    """One bound of a range: "2" -> "two", "1.5" -> "one and a half"."""
    whole, _, decimal = value.partition(".")
    whole_num = int(whole)
    if not decimal or int(decimal) == 0:
        return number_to_words(whole_num)
    if decimal == "5":
        if whole_num == 0:
            return "half"
        return f"{number_to_words(whole_num)} and a half"
    return f"{number_to_words(whole_num)} point {_digits_to_words(decimal)}"


def _half_hours(match: re.Match) -> str:
    return f"{number_to_words(int(match.group(1)))} and a half hours"


def _decimal_hours(match: re.Match) -> str:
    return f"{number_to_words(int(match.group(1)))} point {_digits_to_words(match.group(2))} hours"


def _range(match: re.Match) -> str:
    unit = match.group(3).lower()
    unit_word = "hours" if unit.startswith(("hour", "hr")) else "minutes"
    return f"{_format_time_number(match.group(1))} to {_format_time_number(match.group(2))} {unit_word}"


def _half_minutes(match: re.Match) -> str:
    num = int(match.group(1))
    if num == 0:
        return "half a minute"
    return f"{number_to_words(num)} and a half minutes"


def _fractions(text: str) -> str:
    for fraction, words in FRACTION_WORDS.items():
        text = re.sub(rf"\b{re.escape(fraction)}\b", words, text)
    for glyph, words in FRACTION_GLYPHS.items():
        # "1½ cups" -> "1 and one half cups"
        text = re.sub(rf"(\d)\s*{glyph}", rf"\1 and {words}", text)
        text = text.replace(glyph, words)
    return text


def make_speech_friendly(text: str) -> str:
    """
    Rewrite text so a speech synthesizer reads it naturally.

    Examples:
        "1.5 hours"  -> "one and a half hours"
        "1.25 hours" -> "one point two five hours"
        "15-20 minutes" -> "fifteen to twenty minutes"
        "0.5 minutes" -> "half a minute"
        "350°F" -> "350 degrees Fahrenheit"
        "3/4 cup" -> "three quarters cup"
    """
    if not text:
        return text

    result = _HALF_HOURS.sub(_half_hours, text)
    result = _DECIMAL_HOURS.sub(_decimal_hours, result)
    result = _RANGES.sub(_range, result)
    result = _HALF_MINUTES.sub(_half_minutes, result)
    result = _FAHRENHEIT.sub(r"\1 degrees Fahrenheit", result)
    result = _CELSIUS.sub(r"\1 degrees Celsius", result)
    result = _fractions(result)
    return result
