"""
Claude AI Service

Free-form cooking questions go to Claude once the command classifier
has decided an utterance is neither a timer nor a navigation command.

Architecture:
- CookingAssistant is stateless per call; the session owns the history
- System prompt carries the recipe, the current step and live timers
- Only the most recent messages are sent, to keep prompts small
- A reply may end with "TIMER_SUGGESTION: name, minutes"; that line is
  parsed into a SuggestedTimer and stripped from the spoken text
"""

import logging
import re
from typing import Optional

import anthropic

from kitchen_voice.config import Settings, get_settings
from kitchen_voice.models.entities import ChatReply, Recipe, SuggestedTimer, Timer
from kitchen_voice.services.cooking_time import MAX_COOKING_MINUTES, parse_instruction_steps

logger = logging.getLogger(__name__)


HISTORY_LIMIT = 10
FALLBACK_REPLY = "I'm sorry, I didn't catch that. Could you repeat?"

_TIMER_SUGGESTION = re.compile(r"TIMER_SUGGESTION:\s*([^,\n]+),\s*(\d+)", re.IGNORECASE)
_TIMER_SUGGESTION_LINE = re.compile(r"TIMER_SUGGESTION:[^\n]+", re.IGNORECASE)


def parse_timer_suggestion(text: str) -> ChatReply:
    """Split a raw model reply into spoken text and an optional timer."""
    suggested = None
    match = _TIMER_SUGGESTION.search(text)
    if match:
        minutes = int(match.group(2))
        if 0 < minutes <= MAX_COOKING_MINUTES:
            suggested = SuggestedTimer(name=match.group(1).strip(), minutes=minutes)
    cleaned = _TIMER_SUGGESTION_LINE.sub("", text).strip()
    return ChatReply(text=cleaned or FALLBACK_REPLY, suggested_timer=suggested)


class CookingAssistant:
    """
    Answers cooking questions about one recipe with Claude.

    Attributes:
        recipe: The recipe being cooked
        steps: Instruction steps, as the session numbers them
        client: Async Anthropic API client
    """

    SYSTEM_PROMPT = """You are a friendly, helpful cooking assistant helping someone cook "{name}".

Recipe Details:
- Name: {name}
- Description: {description}
- Ingredients: {ingredients}
- Instructions: {instructions}

Current cooking step ({step_number}/{total_steps}): {step_text}
{timer_context}
Your responsibilities:
1. Answer questions about the recipe, ingredients, techniques, or substitutions
2. Read out the current step or any step when asked
3. Suggest timers when appropriate (respond with TIMER_SUGGESTION: name, minutes if you think a timer would help)
4. Help with cooking tips and troubleshooting
5. Be encouraging and conversational

Keep responses concise and clear for voice output. Use natural, conversational language.
If the user seems confused, offer helpful guidance.
"""

    def __init__(self, recipe: Recipe, settings: Optional[Settings] = None):
        self.recipe = recipe
        self.settings = settings or get_settings()
        self.steps = parse_instruction_steps(recipe.instructions)
        self.client = anthropic.AsyncAnthropic(api_key=self.settings.anthropic_api_key)

    def _get_system_prompt(self, current_step: int, timers: list[Timer]) -> str:
        """Build the system prompt with recipe, step and timer context."""
        step_text = self.steps[current_step] if 0 <= current_step < len(self.steps) else ""
        timer_context = ""
        if timers:
            described = ", ".join(
                f"{t.name}: {t.remaining_seconds // 60}m {t.remaining_seconds % 60}s remaining"
                for t in timers
            )
            timer_context = f"\nActive timers: {described}\n"
        return self.SYSTEM_PROMPT.format(
            name=self.recipe.name,
            description=self.recipe.description or "No description",
            ingredients=", ".join(self.recipe.ingredients),
            instructions=self.recipe.instructions,
            step_number=current_step + 1,
            total_steps=len(self.steps),
            step_text=step_text,
            timer_context=timer_context,
        )

    @staticmethod
    def _build_messages(history: list[dict], user_message: str) -> list[dict]:
        recent = [
            {"role": m["role"], "content": m["content"]}
            for m in history[-HISTORY_LIMIT:]
            if m.get("role") in ("user", "assistant") and m.get("content")
        ]
        # The API expects the conversation to open with a user turn
        while recent and recent[0]["role"] != "user":
            recent.pop(0)
        recent.append({"role": "user", "content": user_message})
        return recent

    async def reply(
        self,
        message: str,
        history: list[dict],
        current_step: int,
        timers: list[Timer],
    ) -> ChatReply:
        """
        Ask Claude about the recipe and parse any timer suggestion.

        Args:
            message: What the cook just said
            history: Earlier {"role", "content"} turns, oldest first
            current_step: 0-indexed step cursor
            timers: Timers currently in the session

        Returns:
            ChatReply with the spoken text and an optional SuggestedTimer

        Raises:
            anthropic.APIError: when the API call fails
        """
        response = await self.client.messages.create(
            model=self.settings.claude_model,
            max_tokens=self.settings.claude_max_tokens,
            system=self._get_system_prompt(current_step, timers),
            messages=self._build_messages(history, message),
        )

        text = "".join(block.text for block in response.content if block.type == "text")
        reply = parse_timer_suggestion(text)
        if reply.suggested_timer:
            logger.info(f"Assistant suggested a timer: {reply.suggested_timer}")
        return reply
