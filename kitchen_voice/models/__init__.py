"""
Models Package - Domain Entities and Commands

Plain dataclasses for recipes, timers and the classifier's parsed
commands. Pydantic request/response schemas live in models/schemas.py.
"""

from kitchen_voice.models.entities import (
    DEFAULT_TIMER_NAME,
    ChatReply,
    CookingTimeMatch,
    ItemCookingTime,
    Recipe,
    SuggestedTimer,
    Timer,
)
from kitchen_voice.models.commands import (
    NO_MATCH,
    CheckTimer,
    NavigationCommand,
    NextStep,
    NoMatch,
    ParsedCommand,
    PreviousStep,
    ReadFull,
    ReadIngredients,
    ReadStep,
    StartTimer,
    StopTimer,
    TimerCommand,
    command_to_dict,
)

__all__ = [
    # Entities
    "DEFAULT_TIMER_NAME",
    "ChatReply",
    "CookingTimeMatch",
    "ItemCookingTime",
    "Recipe",
    "SuggestedTimer",
    "Timer",
    # Timer commands
    "StartTimer",
    "StopTimer",
    "CheckTimer",
    "TimerCommand",
    # Navigation commands
    "ReadFull",
    "ReadIngredients",
    "ReadStep",
    "NextStep",
    "PreviousStep",
    "NavigationCommand",
    # No match
    "NoMatch",
    "NO_MATCH",
    "ParsedCommand",
    "command_to_dict",
]
