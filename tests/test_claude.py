import asyncio
from types import SimpleNamespace

from kitchen_voice.config import Settings
from kitchen_voice.models.entities import SuggestedTimer, Timer
from kitchen_voice.services.claude import (
    FALLBACK_REPLY,
    CookingAssistant,
    parse_timer_suggestion,
)


class FakeMessages:
    def __init__(self, text):
        self.text = text
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


def make_assistant(recipe, text):
    assistant = CookingAssistant(recipe, Settings(anthropic_api_key="test-key", claude_max_tokens=300))
    assistant.client = SimpleNamespace(messages=FakeMessages(text))
    return assistant


def test_parse_timer_suggestion():
    reply = parse_timer_suggestion("Let it simmer.\nTIMER_SUGGESTION: Sauce, 8\nTaste before serving.")
    assert reply.suggested_timer == SuggestedTimer(name="Sauce", minutes=8)
    assert "TIMER_SUGGESTION" not in reply.text
    assert reply.text.startswith("Let it simmer.")
    assert reply.text.endswith("Taste before serving.")


def test_reply_without_suggestion():
    reply = parse_timer_suggestion("Butter works fine.")
    assert reply.text == "Butter works fine."
    assert reply.suggested_timer is None


def test_oversized_suggestion_is_dropped():
    reply = parse_timer_suggestion("Slow cook it overnight.\nTIMER_SUGGESTION: Brisket, 1000")
    assert reply.text == "Slow cook it overnight."
    assert reply.suggested_timer is None
    assert parse_timer_suggestion("TIMER_SUGGESTION: Brisket, 480").suggested_timer.minutes == 480


def test_suggestion_only_reply_falls_back():
    reply = parse_timer_suggestion("timer_suggestion: Rice, 15")
    assert reply.text == FALLBACK_REPLY
    assert reply.suggested_timer == SuggestedTimer(name="Rice", minutes=15)


def test_prompt_carries_step_and_timers(recipe):
    assistant = make_assistant(recipe, "ok")
    timers = [Timer(id="timer-1", name="Pasta", duration_seconds=600, remaining_seconds=125)]
    prompt = assistant._get_system_prompt(1, timers)
    assert "Current cooking step (2/4): Boil the pasta for 10 minutes." in prompt
    assert "Active timers: Pasta: 2m 5s remaining" in prompt
    assert "1 leg of lamb, 500g pasta, salt" in prompt


def test_history_is_trimmed_and_starts_with_user():
    history = [{"role": "assistant", "content": "Welcome!"}]
    for i in range(12):
        history.append({"role": "user" if i % 2 else "assistant", "content": f"message {i}"})
    history.append({"role": "system", "content": "Timer set: Pasta for 10 minutes"})

    messages = CookingAssistant._build_messages(history, "what now?")
    assert messages[0]["role"] == "user"
    assert len(messages) <= 10
    assert all(m["role"] in ("user", "assistant") for m in messages)
    assert messages[-1] == {"role": "user", "content": "what now?"}


def test_reply_calls_claude(recipe):
    assistant = make_assistant(recipe, "Yes.\nTIMER_SUGGESTION: Lamb, 40")
    reply = asyncio.run(assistant.reply("should I roast the lamb now?", [], 2, []))
    assert reply.text == "Yes."
    assert reply.suggested_timer == SuggestedTimer(name="Lamb", minutes=40)

    kwargs = assistant.client.messages.kwargs
    assert kwargs["max_tokens"] == 300
    assert kwargs["messages"] == [{"role": "user", "content": "should I roast the lamb now?"}]
    assert "Current cooking step (3/4)" in kwargs["system"]
