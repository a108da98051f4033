"""
Cooking Session

One person cooking one recipe. The session owns everything that changes
while they cook: the step cursor, the conversation history, the timers
and the queue of "timer is done" announcements.

Request flow for an utterance:
1. Timer commands (start / stop / check)
2. Navigation commands (read recipe, ingredients, steps)
3. Anything else goes to the Claude cooking assistant

Every reply comes back twice: as display text and as speech-friendly
text ready for a synthesizer.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import anthropic

from kitchen_voice.models.commands import (
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
from kitchen_voice.models.entities import DEFAULT_TIMER_NAME, Recipe, Timer
from kitchen_voice.services.claude import CookingAssistant
from kitchen_voice.services.commands import is_read_command, parse_timer_command
from kitchen_voice.services.cooking_time import (
    extract_cooking_time,
    find_item_cooking_time,
    parse_instruction_steps,
)
from kitchen_voice.services.speech import make_speech_friendly
from kitchen_voice.services.timers import MAX_TIMERS, TimerListCallback, TimerManager, describe_remaining

logger = logging.getLogger(__name__)


CHAT_APOLOGY = "I'm having trouble responding right now. Please try again."


@dataclass
class SessionReply:
    """What the assistant says back to one utterance."""
    text: str
    speech: str
    kind: str
    timers: list[Timer] = field(default_factory=list)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _timer_label(name: str) -> str:
    """Spoken label: Pasta -> Pasta timer; Cooking timer is left alone."""
    return name if name.lower().endswith("timer") else f"{name} timer"


class CookingSession:
    """
    Interprets utterances against one recipe.

    Attributes:
        recipe: The recipe being cooked
        steps: Instruction steps, 0-indexed
        current_step: Step cursor, 0-indexed
        messages: Conversation history as {"role", "content"} dicts
        timers: The session's TimerManager
    """

    def __init__(
        self,
        recipe: Recipe,
        assistant: Optional[CookingAssistant] = None,
        max_timers: int = MAX_TIMERS,
        tick_seconds: float = 1.0,
        on_update: Optional[TimerListCallback] = None,
    ):
        self.recipe = recipe
        self.steps = parse_instruction_steps(recipe.instructions)
        self.current_step = 0
        self.messages: list[dict] = []
        self._assistant = assistant
        self._announcements: list[str] = []
        self.timers = TimerManager(
            on_update=on_update,
            on_complete=self._on_timer_complete,
            max_timers=max_timers,
            tick_seconds=tick_seconds,
        )

    @property
    def assistant(self) -> CookingAssistant:
        # Built on first use so sessions that never chat need no API client
        if self._assistant is None:
            self._assistant = CookingAssistant(self.recipe)
        return self._assistant

    # ============================================
    # Utterances
    # ============================================

    async def handle_utterance(self, text: str) -> SessionReply:
        """
        Respond to one utterance.

        Args:
            text: Transcribed speech or typed text

        Returns:
            SessionReply; kind is the command kind, "chat" for assistant
            replies or "ignored" for empty input
        """
        text = (text or "").strip()
        if not text:
            return SessionReply(text="", speech="", kind="ignored", timers=self.timers.get_timers())

        self._add_message("user", text)

        command = parse_timer_command(text)
        if isinstance(command, StopTimer) and self._nothing_to_stop(command):
            # "done" with nothing ringing means "I finished this step"
            navigation = is_read_command(text)
            if navigation:
                command = navigation

        if not command:
            command = is_read_command(text)

        if command:
            logger.debug(f"Utterance {text!r} classified as {command}")
            response = self._dispatch(command)
            return self._reply(response, command.kind)

        return await self._chat(text)

    def _dispatch(self, command: ParsedCommand) -> str:
        if isinstance(command, StartTimer):
            return self._start_timer(command)
        if isinstance(command, StopTimer):
            return self._stop_timer(command)
        if isinstance(command, CheckTimer):
            return self._check_timer(command)
        if isinstance(command, ReadFull):
            return (
                f"Here's the full recipe for {self.recipe.name}. "
                f"Ingredients: {', '.join(self.recipe.ingredients)}. "
                f"Instructions: {self.recipe.instructions}"
            )
        if isinstance(command, ReadIngredients):
            return f"The ingredients for {self.recipe.name} are: {', '.join(self.recipe.ingredients)}."
        if isinstance(command, NextStep):
            if self.current_step < len(self.steps) - 1:
                self.current_step += 1
                return self._read_current_step()
            return "You're at the last step! The recipe is complete."
        if isinstance(command, PreviousStep):
            if self.current_step > 0:
                self.current_step -= 1
                return self._read_current_step()
            return "You're at the first step."
        if isinstance(command, ReadStep):
            step_index = self.current_step if command.step_num is None else command.step_num
            if 0 <= step_index < len(self.steps):
                self.current_step = step_index
                return self._read_current_step()
            return f"That step doesn't exist. This recipe has {len(self.steps)} steps."
        raise ValueError(f"Unhandled command: {command!r}")

    def _read_current_step(self) -> str:
        return f"Step {self.current_step + 1}: {self.steps[self.current_step]}"

    # ============================================
    # Timers
    # ============================================

    def _too_many_timers(self) -> str:
        return f"You already have {self.timers.max_timers} timers running. Please dismiss one first."

    def _start_timer(self, command: StartTimer) -> str:
        if command.step_number is not None:
            step_index = command.step_number - 1
            if not 0 <= step_index < len(self.steps):
                return f"Step {command.step_number} doesn't exist. This recipe has {len(self.steps)} steps."
            time_info = extract_cooking_time(self.steps[step_index])
            if not time_info:
                return (
                    f"I couldn't find a cooking time in step {command.step_number}. "
                    f'Try saying the specific time, like "set a timer for 10 minutes".'
                )
            name = f"Step {command.step_number}"
            if not self.timers.create_timer(name, time_info.minutes):
                return self._too_many_timers()
            return f"{_timer_label(name)} set for {_plural(time_info.minutes, 'minute')}."

        if command.item_name and not command.minutes:
            item_time = find_item_cooking_time(self.recipe, command.item_name)
            if not item_time:
                return (
                    f'I couldn\'t find a cooking time for "{command.item_name}" in this recipe. '
                    f'Try saying the specific time, like "set a timer for {command.item_name} for 10 minutes".'
                )
            name = _capitalize(command.item_name)
            if not self.timers.create_timer(name, item_time.minutes):
                return self._too_many_timers()
            return f"{_timer_label(name)} set for {_plural(item_time.minutes, 'minute')}, based on the recipe."

        if command.minutes:
            name = _capitalize(command.name) if command.name else DEFAULT_TIMER_NAME
            if not self.timers.create_timer(name, command.minutes):
                return self._too_many_timers()
            return f"{_timer_label(name)} set for {_plural(command.minutes, 'minute')}."

        return "How long should I set the timer for?"

    def _nothing_to_stop(self, command: StopTimer) -> bool:
        return not command.name and not command.all_timers and not self.timers.get_timers()

    def _stop_timer(self, command: StopTimer) -> str:
        expired = self.timers.get_expired_timers()
        if expired:
            self.timers.dismiss_all_expired()
            if len(expired) == 1:
                return f"Dismissed the {_timer_label(expired[0].name)}."
            return f"Dismissed {len(expired)} expired timers."

        if command.all_timers:
            count = len(self.timers.get_timers())
            if not count:
                return "You don't have any timers running."
            self.timers.stop_all_timers()
            return f"Stopped {_plural(count, 'timer')}."

        if command.name:
            timer = self.timers.stop_timer_by_name(command.name)
            if timer:
                return f"Stopped the {_timer_label(timer.name)}."
            return f'I couldn\'t find a timer called "{command.name}".'

        active = self.timers.get_active_timer()
        if active:
            self.timers.stop_timer(active.id)
            return f"Stopped the {_timer_label(active.name)}."
        return "There's no active timer to stop."

    def _check_timer(self, command: CheckTimer) -> str:
        timers = self.timers.get_timers()
        if not timers:
            return "You don't have any timers running."

        if command.name:
            timer = self.timers.find_timer_by_name(command.name)
            if timer:
                return f"The {_timer_label(timer.name)} has {describe_remaining(timer.remaining_seconds)} remaining."
            names = ", ".join(t.name for t in timers)
            return (
                f'I couldn\'t find a timer called "{command.name}". '
                f"You have {_plural(len(timers), 'timer')} running: {names}."
            )

        return ". ".join(f"{t.name}: {describe_remaining(t.remaining_seconds)} remaining" for t in timers)

    def _on_timer_complete(self, timer: Timer):
        self._announcements.append(f"{timer.name} timer is done!")
        self._add_message("assistant", f"Timer complete! {timer.name} is done.")

    def pop_announcements(self) -> list[str]:
        """Return and clear queued timer-complete announcements."""
        announcements, self._announcements = self._announcements, []
        return announcements

    # ============================================
    # Chat fallback
    # ============================================

    async def _chat(self, text: str) -> SessionReply:
        # The user turn is already in history; the assistant gets it separately
        history = self.messages[:-1]
        try:
            chat_reply = await self.assistant.reply(
                text, history, self.current_step, self.timers.get_timers()
            )
        except anthropic.APIError as e:
            logger.error(f"Cooking assistant error: {e}")
            return self._reply(CHAT_APOLOGY, "chat")

        response = chat_reply.text
        reply = self._reply(response, "chat")

        suggested = chat_reply.suggested_timer
        if suggested and self.timers.create_timer(suggested.name, suggested.minutes):
            note = f"Timer set: {suggested.name} for {suggested.minutes} minutes"
            self._add_message("system", note)
            reply.text = f"{response}\n\n{note}"
            reply.speech = make_speech_friendly(reply.text)
            reply.timers = self.timers.get_timers()
        return reply

    # ============================================
    # Helpers
    # ============================================

    def _add_message(self, role: str, content: str):
        self.messages.append({"role": role, "content": content})

    def _reply(self, text: str, kind: str) -> SessionReply:
        self._add_message("assistant", text)
        return SessionReply(
            text=text,
            speech=make_speech_friendly(text),
            kind=kind,
            timers=self.timers.get_timers(),
        )

    def close(self):
        """Tear down every timer clock."""
        self.timers.destroy()
        logger.info(f"Cooking session for {self.recipe.name!r} closed")
