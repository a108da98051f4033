"""
Parsed Commands

The classifier's output: one small frozen dataclass per kind of command.
Timer commands carry an ``action`` ("start", "stop", "check"), navigation
commands carry a ``type`` ("full", "ingredients", "next", "previous",
"step"). Every variant also has a ``kind`` so callers can switch on a
single attribute.

NoMatch is falsy, so callers can write ``if command:`` the same way they
would test for "something was recognised".
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class StartTimer:
    """
    Start a countdown.

    At most one of minutes, step_number or item_name is set. A step or
    item reference leaves the duration for the caller to look up in the
    recipe before the timer is created.
    """
    name: Optional[str] = None
    minutes: Optional[int] = None
    step_number: Optional[int] = None
    item_name: Optional[str] = None

    action: ClassVar[str] = "start"
    kind: ClassVar[str] = "start_timer"


@dataclass(frozen=True)
class StopTimer:
    """Stop a timer by name, every timer, or whichever one just rang."""
    name: Optional[str] = None
    all_timers: bool = False

    action: ClassVar[str] = "stop"
    kind: ClassVar[str] = "stop_timer"


@dataclass(frozen=True)
class CheckTimer:
    """Report time remaining on one named timer, or on all of them."""
    name: Optional[str] = None

    action: ClassVar[str] = "check"
    kind: ClassVar[str] = "check_timer"


@dataclass(frozen=True)
class ReadFull:
    type: ClassVar[str] = "full"
    kind: ClassVar[str] = "read_full"


@dataclass(frozen=True)
class ReadIngredients:
    type: ClassVar[str] = "ingredients"
    kind: ClassVar[str] = "read_ingredients"


@dataclass(frozen=True)
class ReadStep:
    """Read one step; step_num is 0-indexed, None means the current step."""
    step_num: Optional[int] = None

    type: ClassVar[str] = "step"
    kind: ClassVar[str] = "read_step"


@dataclass(frozen=True)
class NextStep:
    type: ClassVar[str] = "next"
    kind: ClassVar[str] = "next_step"


@dataclass(frozen=True)
class PreviousStep:
    type: ClassVar[str] = "previous"
    kind: ClassVar[str] = "previous_step"


@dataclass(frozen=True)
class NoMatch:
    """Nothing recognised; the utterance belongs to the chat assistant."""
    action: ClassVar[None] = None
    type: ClassVar[None] = None
    kind: ClassVar[str] = "no_match"

    def __bool__(self) -> bool:
        return False


NO_MATCH = NoMatch()

TimerCommand = Union[StartTimer, StopTimer, CheckTimer]
NavigationCommand = Union[ReadFull, ReadIngredients, ReadStep, NextStep, PreviousStep]
ParsedCommand = Union[TimerCommand, NavigationCommand, NoMatch]


def command_to_dict(command: ParsedCommand) -> dict:
    """Flatten a command into a JSON-friendly dict (None fields dropped)."""
    data = {"kind": command.kind}
    for attr in ("name", "minutes", "step_number", "item_name", "all_timers", "step_num"):
        value = getattr(command, attr, None)
        if value is not None and value is not False:
            data[attr] = value
    return data
