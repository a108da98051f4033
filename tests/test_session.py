import asyncio

from kitchen_voice.models.entities import ChatReply, SuggestedTimer
from kitchen_voice.services.session import CHAT_APOLOGY, CookingSession

from tests.conftest import StubAssistant


def say(session, text):
    return asyncio.run(session.handle_utterance(text))


def expire(session, timer):
    for _ in range(timer.remaining_seconds):
        session.timers.tick(timer.id)


# ============================================
# Timers
# ============================================

def test_explicit_timer(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "set a timer for the lamb for 10 minutes")
    assert reply.text == "Lamb timer set for 10 minutes."
    assert reply.kind == "start_timer"
    assert [t.name for t in reply.timers] == ["Lamb"]
    assert not stub_assistant.calls


def test_one_minute_is_singular(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "timer one minute").text == "Cooking timer set for 1 minute."


def test_step_timer_uses_step_text(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "start a timer for step 2").text == "Step 2 timer set for 10 minutes."


def test_step_timer_without_time(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "start a timer for step 1")
    assert reply.text.startswith("I couldn't find a cooking time in step 1.")
    assert reply.timers == []


def test_step_timer_for_missing_step(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "start a timer for step 9").text == "Step 9 doesn't exist. This recipe has 4 steps."


def test_item_timer_from_recipe(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "start a timer for the lamb")
    assert reply.text == "Lamb timer set for 40 minutes, based on the recipe."
    assert reply.timers[0].duration_seconds == 40 * 60


def test_item_timer_not_in_recipe(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "start a timer for the salad")
    assert reply.text.startswith('I couldn\'t find a cooking time for "salad" in this recipe.')


def test_too_many_timers(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    for i in range(5):
        session.timers.create_timer(f"Timer {i}", 5)
    reply = say(session, "set a timer for 10 minutes")
    assert reply.text == "You already have 5 timers running. Please dismiss one first."
    assert len(reply.timers) == 5


def test_completion_is_announced_and_dismissed(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    timer = session.timers.create_timer("Egg", 1)
    expire(session, timer)

    assert session.pop_announcements() == ["Egg timer is done!"]
    assert session.pop_announcements() == []

    reply = say(session, "ok")
    assert reply.text == "Dismissed the Egg timer."
    assert session.timers.get_timers() == []


def test_several_expired_timers_are_dismissed_together(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    for name in ("Egg", "Toast"):
        expire(session, session.timers.create_timer(name, 1))
    assert say(session, "stop").text == "Dismissed 2 expired timers."


def test_stop_named_and_active(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    session.timers.create_timer("Pasta", 10)
    session.timers.create_timer("Lamb", 40)

    assert say(session, "stop the lamb timer").text == "Stopped the Lamb timer."
    assert say(session, "cancel the rice timer").text == 'I couldn\'t find a timer called "rice".'
    assert say(session, "stop the timer").text == "Stopped the Pasta timer."


def test_stop_all(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    session.timers.create_timer("Pasta", 10)
    session.timers.create_timer("Lamb", 40)
    assert say(session, "cancel all timers").text == "Stopped 2 timers."
    assert session.timers.get_timers() == []


def test_stop_with_only_paused_timer(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    timer = session.timers.create_timer("Pasta", 10)
    session.timers.pause_timer(timer.id)
    assert say(session, "stop the timer").text == "There's no active timer to stop."


def test_done_advances_when_nothing_is_ringing(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "done")
    assert reply.kind == "next_step"
    assert reply.text == "Step 2: Boil the pasta for 10 minutes."


def test_stop_with_no_timers(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "stop").text == "There's no active timer to stop."


def test_check_timers(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "how much time left").text == "You don't have any timers running."

    pasta = session.timers.create_timer("Pasta", 10)
    session.timers.create_timer("Lamb", 40)
    session.timers.tick(pasta.id)

    assert say(session, "check the pasta timer").text == "The Pasta timer has 9 minutes and 59 seconds remaining."
    assert say(session, "how much time left").text == (
        "Pasta: 9 minutes and 59 seconds remaining. Lamb: 40 minutes and 0 seconds remaining"
    )
    assert say(session, "check the rice timer").text == (
        'I couldn\'t find a timer called "rice". You have 2 timers running: Pasta, Lamb.'
    )


# ============================================
# Navigation
# ============================================

def test_step_navigation(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "back").text == "You're at the first step."
    assert say(session, "next").text == "Step 2: Boil the pasta for 10 minutes."
    assert say(session, "read step 4").text == "Step 4: Rest for 5 minutes and serve."
    assert session.current_step == 3
    assert say(session, "next").text == "You're at the last step! The recipe is complete."
    assert say(session, "previous step").text.startswith("Step 3: Season the lamb")
    assert say(session, "where am I").text.startswith("Step 3:")
    assert say(session, "go to step 9").text == "That step doesn't exist. This recipe has 4 steps."
    assert session.current_step == 2


def test_read_recipe_and_ingredients(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    assert say(session, "what are the ingredients").text == (
        "The ingredients for Roast Lamb with Pasta are: 1 leg of lamb, 500g pasta, salt."
    )
    full = say(session, "read the full recipe")
    assert full.text.startswith("Here's the full recipe for Roast Lamb with Pasta.")
    assert "350 degrees Fahrenheit" in full.speech


def test_empty_input_is_ignored(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    reply = say(session, "   ")
    assert reply.kind == "ignored"
    assert session.messages == []


# ============================================
# Chat fallback
# ============================================

def test_questions_go_to_assistant(recipe):
    assistant = StubAssistant(reply=ChatReply(text="Yes, butter works fine."))
    session = CookingSession(recipe, assistant=assistant)
    say(session, "next")

    reply = say(session, "how long do I cook the chicken")
    assert reply.kind == "chat"
    assert reply.text == "Yes, butter works fine."
    call = assistant.calls[0]
    assert call["message"] == "how long do I cook the chicken"
    assert call["current_step"] == 1
    assert call["history"][-1]["role"] == "assistant"


def test_suggested_timer_is_created(recipe):
    assistant = StubAssistant(reply=ChatReply(
        text="Give the sauce time to thicken.",
        suggested_timer=SuggestedTimer(name="Sauce", minutes=8),
    ))
    session = CookingSession(recipe, assistant=assistant)
    reply = say(session, "the sauce looks thin")
    assert reply.text == "Give the sauce time to thicken.\n\nTimer set: Sauce for 8 minutes"
    assert reply.speech == reply.text
    assert [t.name for t in reply.timers] == ["Sauce"]


def test_assistant_failure_is_an_apology(recipe):
    session = CookingSession(recipe, assistant=StubAssistant(fail=True))
    reply = say(session, "can I use butter instead of oil")
    assert reply.kind == "chat"
    assert reply.text == CHAT_APOLOGY


def test_close_stops_timers(recipe, stub_assistant):
    session = CookingSession(recipe, assistant=stub_assistant)
    session.timers.create_timer("Pasta", 10)
    session.close()
    assert session.timers.get_timers() == []
