"""
Domain Entities

Plain dataclasses for the objects the cooking assistant works with.
Nothing here is persisted: recipes arrive with each session request and
timers live only as long as the session that owns them.

Entity Relationships:
    Recipe (1) ──> (*) steps (derived from the instruction text)
    CookingSession (1) ──> (1) TimerManager ──> (*) Timer
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


DEFAULT_TIMER_NAME = "Cooking timer"


@dataclass
class Recipe:
    """
    The recipe being cooked.

    Only the text the assistant needs is kept: a name, a description,
    the ingredient lines and the raw instruction text. Steps are split
    out of the instructions by parse_instruction_steps().
    """
    name: str
    instructions: str
    description: str = ""
    ingredients: list[str] = field(default_factory=list)


@dataclass
class Timer:
    """
    One countdown tracked by the TimerManager.

    Invariants:
    - remaining_seconds never exceeds duration_seconds
    - an expired timer is not running and has 0 seconds remaining
    """
    id: str
    name: str
    duration_seconds: int
    remaining_seconds: int
    is_running: bool = True
    is_expired: bool = False
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class CookingTimeMatch:
    """A duration found in recipe text, with the text around it."""
    minutes: int
    context: str


@dataclass(frozen=True)
class ItemCookingTime:
    """A duration looked up for a named item, with the step it came from."""
    minutes: int
    step_description: str


@dataclass(frozen=True)
class SuggestedTimer:
    """A timer the chat assistant proposed in its reply."""
    name: str
    minutes: int


@dataclass(frozen=True)
class ChatReply:
    """Free-form assistant reply, minus any timer suggestion markup."""
    text: str
    suggested_timer: Optional[SuggestedTimer] = None
