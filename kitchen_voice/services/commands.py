"""
Command Classifier

Decides what a spoken or typed utterance means while someone is cooking:

- a timer command (start / stop / check)
- a navigation command (read the recipe, the ingredients, a step; next; back)
- neither, in which case the caller hands the utterance to the chat assistant

Matching is a set of ordered rule tables. Each rule is a (pattern,
extractor) pair; rules are tried top to bottom and the first one whose
extractor returns a command wins. The classifier never raises: anything it
does not recognise comes back as NO_MATCH.

Order matters:
1. Cooking questions ("how long do I cook the chicken") are excluded first
   so they reach the assistant instead of starting a timer.
2. Step and item references come before explicit durations.
3. Timer rules are tried before navigation rules by classify().
"""

import logging
import re
from typing import Callable, Optional

from kitchen_voice.models.commands import (
    NO_MATCH,
    CheckTimer,
    NextStep,
    ParsedCommand,
    PreviousStep,
    ReadFull,
    ReadIngredients,
    ReadStep,
    StartTimer,
    StopTimer,
)
from kitchen_voice.models.entities import DEFAULT_TIMER_NAME
from kitchen_voice.services.numbers import HOMOPHONES, NUMBER_PATTERN, parse_number

logger = logging.getLogger(__name__)


Extractor = Callable[[re.Match], Optional[ParsedCommand]]
Rule = tuple[re.Pattern, Extractor]

NUM = NUMBER_PATTERN
MIN = r"\s*(?:minute|min)s?"
VERB = r"(?:set|start|put|make|create)"

# Words that can end up in the name slot but never name anything
_FILLER_NAMES = frozenset({"for", "the", "a", "an", "to", "me", "timer"})

_COOKING_VERB_NAME = re.compile(r"cook|bake|roast|fry|grill|boil|simmer")
_MENTIONS_MINUTES = re.compile(r"\bmin(?:ute)?s?\b")
_MENTIONS_SECONDS = re.compile(r"\bsec(?:ond)?s?\b")


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def normalize_utterance(text: str) -> str:
    """Lowercase, trim and straighten curly apostrophes."""
    return text.replace("’", "'").replace("‘", "'").strip().lower()


def _first_match(rules: list[Rule], text: str, label: str) -> Optional[ParsedCommand]:
    for pattern, extract in rules:
        match = pattern.search(text)
        if not match:
            continue
        command = extract(match)
        if command is not None:
            logger.debug(f"{label} rule matched {pattern.pattern!r}: {command}")
            return command
    return None


# ============================================
# Cooking questions (never timer commands)
# ============================================

COOKING_QUESTION_PATTERNS = [
    _rx(r"how\s+long\s+(?:do\s+i\s+|should\s+i\s+|to\s+)?(?:cook|bake|roast|fry|grill|boil|simmer|steam)"),
    _rx(r"how\s+long\s+(?:does|will|should)\s+(?:the\s+|it\s+)?(?:\w+\s+)?(?:cook|bake|take)"),
    _rx(r"what\s+(?:is\s+)?(?:the\s+)?(?:cook|cooking|baking)\s*(?:time|duration)"),
    _rx(r"how\s+many\s+minutes?\s+(?:do\s+i\s+|should\s+i\s+|to\s+)?cook"),
]


def is_cooking_question(text: str) -> bool:
    """True for "how long do I cook X" style questions."""
    lower_text = normalize_utterance(text)
    return any(pattern.search(lower_text) for pattern in COOKING_QUESTION_PATTERNS)


# ============================================
# Timer start
# ============================================

def _rank_number(raw: str) -> int:
    """
    Lower is more trustworthy: digits, then number words, then homophones,
    then filler words that only parse as numbers by accident ("for", "to").
    """
    token = raw.strip().lower()
    if token.isdigit():
        return 0
    if token in _FILLER_NAMES:
        return 3
    if token in HOMOPHONES:
        return 2
    return 1


def split_minutes_and_name(first: Optional[str], second: Optional[str]) -> tuple[Optional[int], str]:
    """
    Work out which of two captured groups is the duration.

    Both groups are run through the number normalizer. When both parse
    (e.g. "for" and "10" - "for" sounds like "four") the digit string wins
    over a number word, and a number word wins over a homophone. The other
    group is the timer name.

    Returns:
        (minutes or None, name) - name defaults to "Cooking timer"
    """
    groups = [g.strip() for g in (first, second) if g and g.strip()]
    if len(groups) == 2:
        # "forty five": the name group swallowed the tens word
        head, _, tens_word = groups[0].rpartition(" ")
        compound = parse_number(f"{tens_word} {groups[1]}")
        if compound is not None:
            groups = [head.strip(), str(compound)] if head.strip() else [str(compound)]

    numeric = [i for i, g in enumerate(groups) if parse_number(g) is not None]
    if not numeric:
        return None, DEFAULT_TIMER_NAME

    index = min(numeric, key=lambda i: _rank_number(groups[i]))
    minutes = parse_number(groups[index])
    rest = groups[:index] + groups[index + 1:]
    name = rest[0] if rest else ""
    if not name or name.lower() in _FILLER_NAMES:
        name = DEFAULT_TIMER_NAME
    return minutes, name


def _explicit_duration(match: re.Match) -> Optional[ParsedCommand]:
    groups = match.groups()
    first = groups[0] if groups else None
    second = groups[1] if len(groups) > 1 else None
    minutes, name = split_minutes_and_name(first, second)
    if minutes is None or minutes <= 0:
        # Reject and let the next shape have a go
        return None
    return StartTimer(name=name, minutes=minutes)


def _step_timer(match: re.Match) -> Optional[ParsedCommand]:
    step_num = parse_number(match.group(1))
    if step_num is None or step_num <= 0:
        return None
    return StartTimer(step_number=step_num)


def _item_timer(match: re.Match) -> Optional[ParsedCommand]:
    if _MENTIONS_MINUTES.search(match.string) or _MENTIONS_SECONDS.search(match.string):
        return None
    item_name = match.group(1).strip()
    if not item_name or re.match(r"^step\s", item_name):
        return None
    minutes = parse_number(item_name)
    if minutes is not None and _rank_number(item_name) < 2:
        # "set a timer for 10" - minutes implied
        return StartTimer(name=DEFAULT_TIMER_NAME, minutes=minutes) if minutes > 0 else None
    return StartTimer(item_name=item_name)


TIMER_START_RULES: list[Rule] = [
    # "start a timer for step 2", "set timer for step two"
    (_rx(rf"(?:set|start)\s+(?:a\s+)?timer\s+(?:for\s+)?step\s+{NUM}\b"), _step_timer),
    # "start a timer for the lamb" (duration comes from the recipe)
    (_rx(r"(?:set|start)\s+(?:a\s+)?timer\s+(?:for\s+)?(?:the\s+)?(\w+(?:\s+\w+)?)$"), _item_timer),
]

# Explicit durations; each capture pair is (number, name) in either order
TIMER_DURATION_RULES: list[Rule] = [
    # "timer 5 minutes"
    (_rx(rf"^timer\s+{NUM}{MIN}$"), _explicit_duration),
    # "5 minutes", "five minutes timer"
    (_rx(rf"^{NUM}{MIN}(?:\s+timer)?$"), _explicit_duration),
    # "set timer for 10 minutes for pasta"
    (_rx(rf"{VERB}\s+(?:a\s+)?timer\s+(?:for\s+)?{NUM}{MIN}\s+(?:for\s+)?(?:the\s+)?(.+)"), _explicit_duration),
    # "set a timer for the lamb for 10 minutes"
    (_rx(rf"{VERB}\s+(?:a\s+)?timer\s+(?:for\s+)?(?:the\s+)?(.+?)\s+(?:for\s+)?{NUM}{MIN}"), _explicit_duration),
    # "set a 10 minute timer for pasta"
    (_rx(rf"{VERB}\s+(?:a\s+)?{NUM}{MIN}\s+timer\s+(?:for\s+)?(?:the\s+)?(.+)"), _explicit_duration),
    # "set a 10 minute timer"
    (_rx(rf"{VERB}\s+(?:a\s+)?{NUM}{MIN}\s+timer\s*$"), _explicit_duration),
    # "10 minute timer for pasta"
    (_rx(rf"^{NUM}{MIN}\s+timer\s+(?:for\s+)?(?:the\s+)?(.+)"), _explicit_duration),
    # "timer for 10 minutes for the pasta"
    (_rx(rf"^timer\s+(?:for\s+)?{NUM}{MIN}(?:\s+(?:for\s+)?(?:the\s+)?(.+))?"), _explicit_duration),
    # "set pasta timer for 15 minutes", "start the lamb timer for 15 minutes"
    (_rx(rf"{VERB}\s+(?:a\s+|the\s+)?(.+?)\s+timer\s+(?:for\s+)?{NUM}{MIN}"), _explicit_duration),
    # "remind me in 10 minutes"
    (_rx(rf"(?:remind|alert|tell)\s+me\s+in\s+{NUM}{MIN}"), _explicit_duration),
    # "10 minutes for the chicken"
    (_rx(rf"^{NUM}{MIN}\s+(?:for\s+)?(?:the\s+)?(.+)"), _explicit_duration),
    # "can you set a timer for 10 minutes"
    (_rx(rf"(?:can\s+you\s+|please\s+)?(?:set|start)\s+(?:a\s+)?timer\s+(?:for\s+)?{NUM}{MIN}"), _explicit_duration),
]


# ============================================
# Timer stop / check
# ============================================

def _stop(match: re.Match) -> ParsedCommand:
    return StopTimer()


def _stop_all(match: re.Match) -> ParsedCommand:
    return StopTimer(all_timers=True)


def _stop_named(match: re.Match) -> Optional[ParsedCommand]:
    name = match.group(1).strip()
    if not name or name in _FILLER_NAMES:
        return StopTimer()
    return StopTimer(name=name)


def _check(match: re.Match) -> ParsedCommand:
    return CheckTimer()


def _check_named(match: re.Match) -> Optional[ParsedCommand]:
    name = match.group(1).strip()
    if not name or name in _FILLER_NAMES:
        return CheckTimer()
    return CheckTimer(name=name)


def _time_left_named(match: re.Match) -> Optional[ParsedCommand]:
    name = match.group(1).strip()
    # "how much time for the chicken to cook" is a question, not a timer check
    if not name or _COOKING_VERB_NAME.search(name):
        return None
    return CheckTimer(name=name)


TIMER_STOP_RULES: list[Rule] = [
    # Single words to silence whatever just rang
    (_rx(r"^(?:ok(?:ay)?|stop|done|got\s+it|thanks?|dismiss|quiet|silence|hush)$"), _stop),
    (_rx(r"^(?:stop|cancel|clear)\s+(?:all\s+(?:the\s+)?|every\s+)timers?$"), _stop_all),
    (_rx(r"^(?:stop|cancel)\s+(?:the\s+)?timer$|^timer\s+off$"), _stop),
    # "stop the pasta timer", "cancel rice timer"
    (_rx(r"(?:stop|cancel)\s+(?:the\s+)?(.+?)\s*timer"), _stop_named),
]

TIMER_CHECK_RULES: list[Rule] = [
    (_rx(r"^(?:check|what'?s?)\s+(?:the\s+)?timers?(?:\s+status)?$"), _check),
    (_rx(r"^(?:how\s+much\s+)?time\s+(?:left|remaining)(?:\s+on\s+(?:the\s+)?timers?)?$"), _check),
    (_rx(r"^timers?\s+status$"), _check),
    # "check the pasta timer"
    (_rx(r"^(?:check|what'?s?)\s+(?:the\s+)?(.+?)\s+timer$"), _check_named),
    # "how much time left on the pasta", "how much time on the lamb timer"
    (_rx(r"^how\s+(?:much\s+)?time\s+(?:left\s+)?(?:on|for)\s+(?:the\s+)?(.+?)(?:\s+timer)?$"), _time_left_named),
]


def parse_timer_command(text: str) -> ParsedCommand:
    """
    Parse a timer command from an utterance.

    Returns:
        StartTimer, StopTimer or CheckTimer; NO_MATCH when the utterance is
        not a timer command (including cooking questions)
    """
    lower_text = normalize_utterance(text)
    logger.debug(f"Parsing timer command: {lower_text!r}")
    if not lower_text:
        return NO_MATCH

    if is_cooking_question(lower_text):
        logger.debug("Cooking question, leaving it for the assistant")
        return NO_MATCH

    for label, rules in (
        ("timer-start", TIMER_START_RULES),
        ("timer-duration", TIMER_DURATION_RULES),
        ("timer-stop", TIMER_STOP_RULES),
        ("timer-check", TIMER_CHECK_RULES),
    ):
        command = _first_match(rules, lower_text, label)
        if command is not None:
            return command

    return NO_MATCH


# ============================================
# Navigation
# ============================================

def _const(command: ParsedCommand) -> Extractor:
    return lambda match: command


def _jump_to_step(match: re.Match) -> Optional[ParsedCommand]:
    step_num = parse_number(match.group(1))
    if step_num is None:
        return None
    # Spoken steps are 1-indexed
    return ReadStep(step_num=step_num - 1)


FULL_RECIPE_PATTERNS = [
    _rx(r"read\s+(?:the\s+)?(?:full\s+|whole\s+|entire\s+)?recipe"),
    _rx(r"read\s+(?:me\s+)?everything"),
    _rx(r"(?:tell|give)\s+me\s+(?:the\s+)?(?:whole|full|entire)\s+recipe"),
    _rx(r"what'?s?\s+the\s+(?:whole|full|entire)\s+recipe"),
]

INGREDIENT_PATTERNS = [
    _rx(r"(?:read\s+)?(?:the\s+)?ingredients?(?:\s+list)?$"),
    _rx(r"what\s+(?:are\s+)?(?:the\s+)?ingredients"),
    _rx(r"(?:list|tell\s+me|what)\s+(?:the\s+)?ingredients"),
    _rx(r"ingredients?\s+(?:for|in)\s+(?:this|the|current)\s+(?:step|recipe)"),
    _rx(r"what\s+(?:do\s+)?i\s+need(?:\s+for\s+this)?"),
    _rx(r"what(?:'s|s)?\s+(?:in\s+)?(?:this|the)\s+(?:step|recipe)"),
]

NEXT_STEP_PATTERNS = [
    _rx(r"^next$"),
    _rx(r"^next\s+step$"),
    _rx(r"^next\s+one$"),
    _rx(r"(?:go|move)\s+(?:to\s+)?(?:the\s+)?next(?:\s+step)?"),
    _rx(r"what'?s?\s+(?:the\s+)?next(?:\s+step)?"),
    _rx(r"(?:show|read|tell)\s+(?:me\s+)?(?:the\s+)?next(?:\s+step)?"),
    _rx(r"^continue$"),
    _rx(r"^go\s+on$"),
    _rx(r"^proceed$"),
    _rx(r"^keep\s+going$"),
    _rx(r"^move\s+on$"),
    _rx(r"^advance$"),
    _rx(r"(?:what|and)\s+(?:do\s+i\s+do\s+)?(?:now|then)\??$"),
    _rx(r"what'?s?\s+after\s+(?:this|that)"),
    _rx(r"(?:ok(?:ay)?|done|finished|ready)(?:\s+(?:what'?s?\s+)?next)?$"),
    _rx(r"and\s+then(?:\s+what)?"),
    _rx(r"now\s+what"),
]

PREVIOUS_STEP_PATTERNS = [
    _rx(r"^back$"),
    _rx(r"^previous$"),
    _rx(r"previous\s+step"),
    _rx(r"(?:go|move)\s+back(?:\s+(?:a\s+)?step)?"),
    _rx(r"last\s+step"),
    _rx(r"^repeat$"),
    _rx(r"repeat\s+(?:that|the\s+step|last\s+step)"),
    _rx(r"(?:say|read)\s+(?:that|it)\s+again"),
    _rx(r"what\s+(?:was|did\s+you\s+say)"),
    _rx(r"go\s+(?:to\s+)?(?:the\s+)?previous"),
    _rx(r"one\s+step\s+back"),
    _rx(r"(?:can\s+you\s+)?repeat(?:\s+that)?"),
    _rx(r"i\s+(?:didn'?t|did\s+not)\s+(?:hear|catch|get)\s+(?:that|it)"),
    _rx(r"(?:sorry\s+)?(?:what|huh)\??$"),
    _rx(r"pardon(?:\s+me)?\??$"),
]

STEP_NUMBER_PATTERNS = [
    _rx(rf"(?:read\s+)?step\s+(?:number\s+)?{NUM}\b"),
    _rx(rf"(?:go|jump|skip)\s+(?:to\s+)?step\s+{NUM}\b"),
    _rx(rf"(?:show|tell)\s+(?:me\s+)?step\s+{NUM}\b"),
]

CURRENT_STEP_PATTERNS = [
    _rx(r"(?:read\s+)?(?:the\s+)?(?:current\s+)?step$"),
    _rx(r"where\s+(?:am\s+)?i"),
    _rx(r"what\s+step(?:\s+(?:am\s+i|is\s+this))?"),
    _rx(r"(?:read|repeat)\s+(?:this|the\s+current)\s+step"),
    _rx(r"(?:what|which)\s+step\s+(?:am\s+i|is\s+this|are\s+we)"),
    _rx(r"(?:show|tell)\s+(?:me\s+)?(?:the\s+)?current\s+step"),
    _rx(r"read\s+(?:that|this)(?:\s+again)?"),
]

NAVIGATION_RULES: list[tuple[str, list[Rule]]] = [
    ("full-recipe", [(p, _const(ReadFull())) for p in FULL_RECIPE_PATTERNS]),
    ("ingredients", [(p, _const(ReadIngredients())) for p in INGREDIENT_PATTERNS]),
    ("next-step", [(p, _const(NextStep())) for p in NEXT_STEP_PATTERNS]),
    ("previous-step", [(p, _const(PreviousStep())) for p in PREVIOUS_STEP_PATTERNS]),
    ("step-number", [(p, _jump_to_step) for p in STEP_NUMBER_PATTERNS]),
    ("current-step", [(p, _const(ReadStep())) for p in CURRENT_STEP_PATTERNS]),
]


def is_read_command(text: str) -> ParsedCommand:
    """
    Parse a recipe navigation command from an utterance.

    Families are tried in order: full recipe, ingredients, next step,
    previous step, explicit step number, current step.

    Returns:
        ReadFull, ReadIngredients, NextStep, PreviousStep or ReadStep;
        NO_MATCH when nothing fits
    """
    lower_text = normalize_utterance(text)
    logger.debug(f"Parsing read command: {lower_text!r}")
    if not lower_text:
        return NO_MATCH

    for label, rules in NAVIGATION_RULES:
        command = _first_match(rules, lower_text, label)
        if command is not None:
            return command

    return NO_MATCH


def classify(text: str) -> ParsedCommand:
    """Timer commands first, then navigation, else NO_MATCH."""
    command = parse_timer_command(text)
    if command:
        return command
    return is_read_command(text)
