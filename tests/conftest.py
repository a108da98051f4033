import httpx
import pytest
import anthropic

from kitchen_voice.models.entities import ChatReply, Recipe


ROAST_LAMB_INSTRUCTIONS = (
    "1. Preheat the oven to 350°F.\n"
    "2. Boil the pasta for 10 minutes.\n"
    "3. Season the lamb with salt. Roast the lamb for 35-40 minutes.\n"
    "4. Rest for 5 minutes and serve."
)


@pytest.fixture
def recipe():
    return Recipe(
        name="Roast Lamb with Pasta",
        description="Sunday dinner",
        ingredients=["1 leg of lamb", "500g pasta", "salt"],
        instructions=ROAST_LAMB_INSTRUCTIONS,
    )


class StubAssistant:
    """Stands in for CookingAssistant; records calls, never hits the network."""

    def __init__(self, reply=None, fail=False):
        self._reply = reply or ChatReply(text="Happy to help.")
        self._fail = fail
        self.calls = []

    async def reply(self, message, history, current_step, timers):
        self.calls.append({
            "message": message,
            "history": list(history),
            "current_step": current_step,
            "timers": list(timers),
        })
        if self._fail:
            request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
            raise anthropic.APIConnectionError(request=request)
        return self._reply


@pytest.fixture
def stub_assistant():
    return StubAssistant()
