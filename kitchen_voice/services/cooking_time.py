"""
Cooking-Time Extractor

Finds durations in free-form recipe text ("simmer for 15-20 minutes",
"roast 1.5 hours") so a timer can be started for a step or an item
without the cook saying how long.

Ranges resolve to the higher bound: planning for the longer cook time is
safer than undercooking. Anything over eight hours is treated as a
parsing accident rather than a real recipe duration.
"""

import logging
import re
from typing import Optional

from kitchen_voice.models.entities import CookingTimeMatch, ItemCookingTime, Recipe

logger = logging.getLogger(__name__)


MAX_COOKING_MINUTES = 480
CONTEXT_CHARS = 30

_RANGE = r"(?:\s*(?:-|–|to)\s*(\d+))?"
_MINUTES = r"\s*(?:minute|min)s?"

# (pattern, is_hours) tried in order against lowercased text
TIME_PATTERNS: list[tuple[re.Pattern, bool]] = [
    # "for 10 minutes", "about 15-20 minutes"
    (re.compile(r"(?:for|about|approximately|around)\s+(\d+)" + _RANGE + _MINUTES), False),
    # "10 minutes" at a word boundary
    (re.compile(r"\b(\d+)" + _RANGE + _MINUTES + r"\b"), False),
    # "10 to 12 minutes"
    (re.compile(r"(\d+)\s+to\s+(\d+)" + _MINUTES), False),
    # "2 hours", "1.5 hours"
    (re.compile(r"(\d+(?:\.\d+)?)\s*hours?"), True),
]

COOKING_VERBS = (
    "cook", "bake", "roast", "fry", "grill", "boil", "simmer",
    "sauté", "saute", "braise", "steam",
)

# Numbered step markers: "1. ", "2) " at the start of a line
_NUMBERED_STEP = re.compile(r"(?:^|\n)\s*\d+[.)]\s*")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
# Sentences and step markers; "2.5 hours" is not a step marker
_CLAUSE_BREAK = re.compile(r"\n+|(?<=[.!?])\s+|(?:^|(?<=\s))\d+[.)]\s+")


def extract_cooking_time(text: str) -> Optional[CookingTimeMatch]:
    """
    Extract a cooking time in minutes from recipe text.

    Args:
        text: A step, sentence or whole instruction block

    Returns:
        CookingTimeMatch with minutes and surrounding context, or None
    """
    if not text:
        return None
    lower_text = text.lower()

    for pattern, is_hours in TIME_PATTERNS:
        match = pattern.search(lower_text)
        if not match:
            continue

        if is_hours:
            minutes = round(float(match.group(1)) * 60)
        elif match.group(2):
            minutes = max(int(match.group(1)), int(match.group(2)))
        else:
            minutes = int(match.group(1))

        if 0 < minutes <= MAX_COOKING_MINUTES:
            start = max(0, match.start() - CONTEXT_CHARS)
            end = min(len(text), match.end() + CONTEXT_CHARS)
            return CookingTimeMatch(minutes=minutes, context=text[start:end].strip())

        logger.debug(f"Ignoring out-of-range cooking time {minutes} in: {match.group(0)!r}")

    return None


def parse_instruction_steps(instructions: str) -> list[str]:
    """
    Split recipe instructions into steps.

    Numbered instructions ("1. Preheat... 2. Mix...") split on the numbers;
    anything else falls back to one step per sentence.
    """
    if not instructions:
        return []

    numbered = _NUMBERED_STEP.split(instructions)
    if len(numbered) > 1:
        return [s.strip() for s in numbered if s.strip()]

    return [s.strip() for s in _SENTENCE_BREAK.split(instructions) if s.strip()]


def find_item_cooking_time(recipe: Recipe, item_name: str) -> Optional[ItemCookingTime]:
    """
    Look up how long a named item cooks, from the recipe instructions.

    Two passes:
    1. every sentence that mentions the item, on its own
    2. every whole step that mentions the item and a cooking verb, so a
       duration in a neighbouring clause ("Add the lamb. Roast for
       40 minutes.") is still found

    Args:
        recipe: The recipe being cooked
        item_name: What the cook called it ("lamb", "the pasta")

    Returns:
        ItemCookingTime, or None when the recipe never times that item
    """
    lower_item = item_name.lower().strip()
    if not lower_item:
        return None
    instructions = recipe.instructions.lower()

    sentences = [s.strip() for s in _CLAUSE_BREAK.split(instructions) if s and s.strip()]
    for sentence in sentences:
        if lower_item in sentence:
            time_info = extract_cooking_time(sentence)
            if time_info:
                return ItemCookingTime(minutes=time_info.minutes, step_description=sentence)

    for step in parse_instruction_steps(instructions):
        has_item = lower_item in step
        has_cooking_verb = any(verb in step for verb in COOKING_VERBS)
        if has_item and has_cooking_verb:
            time_info = extract_cooking_time(step)
            if time_info:
                return ItemCookingTime(minutes=time_info.minutes, step_description=step)

    logger.debug(f"No cooking time found for item {item_name!r}")
    return None
