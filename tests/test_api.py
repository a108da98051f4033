import pytest
from fastapi.testclient import TestClient

from kitchen_voice.config import Settings, get_settings
from kitchen_voice.controllers.cooking import active_sessions, get_assistant_factory, get_audio_service
from kitchen_voice.main import app
from kitchen_voice.models.entities import ChatReply
from kitchen_voice.services.speech import Transcript

from tests.conftest import ROAST_LAMB_INSTRUCTIONS, StubAssistant


RECIPE_BODY = {
    "recipe": {
        "name": "Roast Lamb with Pasta",
        "description": "Sunday dinner",
        "ingredients": ["1 leg of lamb", "500g pasta", "salt"],
        "instructions": ROAST_LAMB_INSTRUCTIONS,
    }
}


class StubAudio:
    def __init__(self, transcript=None, audio=b"ID3fake-mp3"):
        self.transcript = transcript
        self.audio = audio
        self.spoken = []

    async def listen(self, audio):
        if self.transcript:
            yield Transcript(text=self.transcript)

    async def text_to_speech(self, text, voice=None, rate=None):
        self.spoken.append(text)
        return self.audio


@pytest.fixture
def audio():
    return StubAudio(transcript="next step")


@pytest.fixture
def client(audio):
    assistant = StubAssistant(reply=ChatReply(text="Butter works fine."))
    app.dependency_overrides[get_assistant_factory] = lambda: (lambda recipe: assistant)
    app.dependency_overrides[get_audio_service] = lambda: audio
    # Clocks never tick on their own during a test
    app.dependency_overrides[get_settings] = lambda: Settings(timer_tick_seconds=3600)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    active_sessions.clear()


@pytest.fixture
def session_id(client):
    response = client.post("/cooking/sessions", json=RECIPE_BODY)
    assert response.status_code == 201
    return response.json()["session_id"]


# ============================================
# Health
# ============================================

def test_health(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/health").json()["status"] == "healthy"


# ============================================
# Sessions
# ============================================

def test_start_session(client):
    data = client.post("/cooking/sessions", json=RECIPE_BODY).json()
    assert data["recipe_name"] == "Roast Lamb with Pasta"
    assert data["total_ingredients"] == 3
    assert data["total_steps"] == 4
    assert data["current_step"] == 0


def test_start_session_requires_instructions(client):
    body = {"recipe": {"name": "Toast", "instructions": ""}}
    assert client.post("/cooking/sessions", json=body).status_code == 422


def test_get_and_end_session(client, session_id):
    assert client.get(f"/cooking/sessions/{session_id}").json()["session_id"] == session_id
    assert client.delete(f"/cooking/sessions/{session_id}").status_code == 204
    assert client.get(f"/cooking/sessions/{session_id}").status_code == 404
    assert client.delete(f"/cooking/sessions/{session_id}").status_code == 204


def test_unknown_session(client):
    assert client.post("/cooking/sessions/nope/utterances", json={"text": "next"}).status_code == 404
    assert client.get("/cooking/sessions/nope/timers").status_code == 404


# ============================================
# Utterances
# ============================================

def test_timer_utterance(client, session_id):
    response = client.post(
        f"/cooking/sessions/{session_id}/utterances",
        json={"text": "set a timer for the pasta for 10 minutes"},
    )
    data = response.json()
    assert data["text"] == "Pasta timer set for 10 minutes."
    assert data["kind"] == "start_timer"
    assert data["timers"][0]["name"] == "Pasta"
    assert data["timers"][0]["display"] == "10:00"


def test_navigation_utterance(client, session_id):
    data = client.post(f"/cooking/sessions/{session_id}/utterances", json={"text": "next"}).json()
    assert data["text"] == "Step 2: Boil the pasta for 10 minutes."
    assert data["speech"] == "Step 2: Boil the pasta for 10 minutes."
    assert client.get(f"/cooking/sessions/{session_id}").json()["current_step"] == 1


def test_chat_utterance(client, session_id):
    data = client.post(
        f"/cooking/sessions/{session_id}/utterances",
        json={"text": "can I use butter instead of oil"},
    ).json()
    assert data["kind"] == "chat"
    assert data["text"] == "Butter works fine."


def test_voice_utterance(client, session_id):
    response = client.post(
        f"/cooking/sessions/{session_id}/voice",
        content=b"RIFF-fake-wav",
        headers={"Content-Type": "audio/wav"},
    )
    data = response.json()
    assert data["transcript"] == "next step"
    assert data["kind"] == "next_step"


def test_voice_not_understood(client, session_id, audio):
    audio.transcript = None
    response = client.post(f"/cooking/sessions/{session_id}/voice", content=b"RIFF-noise")
    assert response.status_code == 422


def test_voice_requires_body(client, session_id):
    assert client.post(f"/cooking/sessions/{session_id}/voice", content=b"").status_code == 400


# ============================================
# Timers
# ============================================

def test_timer_lifecycle(client, session_id):
    base = f"/cooking/sessions/{session_id}/timers"
    created = client.post(base, json={"name": "Rice", "minutes": 15})
    assert created.status_code == 201
    timer_id = created.json()["id"]

    assert client.post(f"{base}/{timer_id}/pause").json()["is_running"] is False
    assert client.post(f"{base}/{timer_id}/resume").json()["is_running"] is True
    assert [t["name"] for t in client.get(base).json()] == ["Rice"]

    assert client.delete(f"{base}/{timer_id}").status_code == 204
    assert client.get(base).json() == []
    assert client.delete(f"{base}/{timer_id}").status_code == 404


def test_timer_cap_is_a_conflict(client, session_id):
    base = f"/cooking/sessions/{session_id}/timers"
    for i in range(5):
        assert client.post(base, json={"name": f"Timer {i}", "minutes": 5}).status_code == 201
    response = client.post(base, json={"name": "One too many", "minutes": 5})
    assert response.status_code == 409


def test_timer_minutes_validated(client, session_id):
    base = f"/cooking/sessions/{session_id}/timers"
    assert client.post(base, json={"name": "Rice", "minutes": 0}).status_code == 422


def test_expired_timer_announcement(client, session_id):
    base = f"/cooking/sessions/{session_id}/timers"
    timer_id = client.post(base, json={"name": "Egg", "minutes": 1}).json()["id"]
    client.post(base, json={"name": "Lamb", "minutes": 40})

    # Tick on the app's event loop, where the timer's clock lives
    session = active_sessions[session_id]
    for _ in range(60):
        client.portal.call(session.timers.tick, timer_id)

    data = client.get(f"/cooking/sessions/{session_id}/announcements").json()
    assert data["announcements"] == ["Egg timer is done!"]
    assert client.get(f"/cooking/sessions/{session_id}/announcements").json()["announcements"] == []

    assert client.delete(f"{base}?expired_only=true").status_code == 204
    assert [t["name"] for t in client.get(base).json()] == ["Lamb"]

    assert client.delete(base).status_code == 204
    assert client.get(base).json() == []


# ============================================
# Stateless helpers
# ============================================

def test_parse_command(client):
    data = client.post("/cooking/commands/parse", json={"text": "set a timer for step 3"}).json()
    assert data["kind"] == "start_timer"
    assert data["step_number"] == 3

    data = client.post("/cooking/commands/parse", json={"text": "how long do I cook the chicken"}).json()
    assert data["kind"] == "no_match"


def test_speech_text(client):
    data = client.post("/cooking/speech", json={"text": "Bake at 350°F for 1.5 hours"}).json()
    assert data["speech"] == "Bake at 350 degrees Fahrenheit for one and a half hours"


def test_speech_audio(client, audio):
    response = client.post("/cooking/speech/audio", json={"text": "Hello"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.content == b"ID3fake-mp3"


def test_speech_audio_failure(client, audio):
    audio.audio = None
    assert client.post("/cooking/speech/audio", json={"text": "Hello"}).status_code == 503
