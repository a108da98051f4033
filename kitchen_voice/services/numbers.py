"""
Number Normalizer

Turns spoken numbers into integers and back again.

Voice input is lossy: a speech-to-text engine hears "set a timer for ten
minutes" as "set a timer for tin minutes" often enough that the word table
deliberately includes the usual misrecognitions ("won", "too", "ate",
"tin", ...). An unknown token is not an error, parse_number() just returns
None and the caller treats the pattern as not matched.
"""

import re
from typing import Optional


# Word table, including common speech-to-text misrecognitions
WORD_TO_NUMBER: dict[str, int] = {
    "one": 1, "won": 1, "want": 1,
    "two": 2, "to": 2, "too": 2,
    "three": 3, "tree": 3, "free": 3,
    "four": 4, "for": 4, "fore": 4,
    "five": 5, "fife": 5,
    "six": 6, "sex": 6, "sicks": 6,
    "seven": 7,
    "eight": 8, "ate": 8,
    "nine": 9, "nein": 9,
    "ten": 10, "tin": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50, "sixty": 60,
    "forty-five": 45, "forty five": 45,
    # Common timer phrases
    "a minute": 1, "a couple": 2, "couple": 2, "a few": 3, "few": 3,
}

_ONES = ["one", "two", "three", "four", "five", "six", "seven", "eight", "nine"]

# "twenty-one", "twenty one" and "twentyone" for the whole twenties
for _offset, _ones_word in enumerate(_ONES, start=1):
    for _joiner in ("-", " ", ""):
        WORD_TO_NUMBER[f"twenty{_joiner}{_ones_word}"] = 20 + _offset

# Words the speech engine substitutes for a real number word
HOMOPHONES = frozenset({
    "won", "want", "to", "too", "tree", "free", "for", "fore", "fife",
    "sex", "sicks", "ate", "nein", "tin",
})

_SMALL_WORDS = [
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
    "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
    "eighteen", "nineteen", "twenty",
]
_TENS_WORDS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]


def parse_number(text: Optional[str]) -> Optional[int]:
    """
    Parse a number from a digit string or spoken words.

    Handles, in order:
    - bare digit strings ("25")
    - the word table, homophones included ("ate" -> 8)
    - two-word compounds not in the table ("thirty five", "fifty-two")

    Returns:
        The integer, or None when no interpretation is found
    """
    if not text:
        return None
    trimmed = " ".join(text.split()).lower()

    if trimmed.isdigit():
        return int(trimmed)

    if trimmed in WORD_TO_NUMBER:
        return WORD_TO_NUMBER[trimmed]

    parts = re.split(r"[\s-]+", trimmed)
    if len(parts) == 2:
        tens = WORD_TO_NUMBER.get(parts[0])
        ones = WORD_TO_NUMBER.get(parts[1])
        if tens and ones and tens >= 20 and tens % 10 == 0 and ones < 10:
            return tens + ones

    return None


def number_to_words(n: int) -> str:
    """
    Spell out 0-99 for speech ("forty two").

    Larger values come back as the plain numeral; the word table stops at
    ninety-nine.
    """
    if 0 <= n <= 20:
        return _SMALL_WORDS[n]
    if 20 < n < 100:
        tens, units = divmod(n, 10)
        return _TENS_WORDS[tens] if units == 0 else f"{_TENS_WORDS[tens]} {_SMALL_WORDS[units]}"
    return str(n)


def _build_number_pattern() -> str:
    words = [w for w in WORD_TO_NUMBER if not w.startswith("a ")]
    tens = "|".join(w for w in ("twenty", "thirty", "forty", "fifty") if w in WORD_TO_NUMBER)
    compound = f"(?:{tens})[- ]?(?:{'|'.join(_ONES)})"
    # Longest alternatives first so "twenty five" wins over "twenty"
    alternatives = [r"\d+", compound] + sorted(
        (re.escape(w) for w in words), key=len, reverse=True
    ) + [r"a\s+couple", r"a\s+few"]
    return "(" + "|".join(alternatives) + ")"


# Capturing regex group for a number argument inside a command
NUMBER_PATTERN = _build_number_pattern()
