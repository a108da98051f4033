"""
Cooking Controller

Manages hands-free cooking sessions.

Session Lifecycle:
1. Client starts a session with the recipe in the request body
2. Client sends utterances (typed text, or WAV audio to transcribe)
3. Timer and navigation commands are handled locally; anything else
   goes to Claude
4. Client polls /announcements to hear about timers that went off
5. Client ends the session when done

Sessions live in memory only: one cooking session is short lived and
nothing about it needs to survive a restart.
"""

import logging
import uuid
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from kitchen_voice.config import Settings, get_settings
from kitchen_voice.models.commands import command_to_dict
from kitchen_voice.models.entities import DEFAULT_TIMER_NAME, Recipe, Timer
from kitchen_voice.models.schemas import (
    AnnouncementsResponse,
    AssistantReply,
    CookingSessionResponse,
    CookingSessionStart,
    ParsedCommandResponse,
    ParseRequest,
    SpeechRequest,
    SpeechResponse,
    TimerCreate,
    TimerResponse,
    UtteranceRequest,
)
from kitchen_voice.services.audio import AudioService
from kitchen_voice.services.claude import CookingAssistant
from kitchen_voice.services.commands import classify
from kitchen_voice.services.session import CookingSession, SessionReply
from kitchen_voice.services.speech import make_speech_friendly
from kitchen_voice.services.timers import format_timer_display

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cooking", tags=["cooking"])

# In-memory session storage
# Key: session_id, Value: CookingSession instance
active_sessions: dict[str, CookingSession] = {}


# ============================================
# Dependencies
# ============================================

def get_assistant_factory() -> Callable[[Recipe], CookingAssistant]:
    """How a new session gets its chat assistant."""
    return CookingAssistant


def get_audio_service() -> AudioService:
    return AudioService()


def get_session(session_id: str) -> CookingSession:
    session = active_sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_timer(session: CookingSession, timer_id: str) -> Timer:
    timer = session.timers.get_timer(timer_id)
    if timer is None:
        raise HTTPException(status_code=404, detail="Timer not found")
    return timer


def close_all_sessions():
    """Tear down every live session (application shutdown)."""
    for session_id in list(active_sessions):
        active_sessions.pop(session_id).close()


# ============================================
# Response helpers
# ============================================

def _timer_response(timer: Timer) -> TimerResponse:
    return TimerResponse(
        id=timer.id,
        name=timer.name,
        duration_seconds=timer.duration_seconds,
        remaining_seconds=timer.remaining_seconds,
        is_running=timer.is_running,
        is_expired=timer.is_expired,
        created_at=timer.created_at,
        display=format_timer_display(timer.remaining_seconds),
    )


def _session_response(session_id: str, session: CookingSession) -> CookingSessionResponse:
    return CookingSessionResponse(
        session_id=session_id,
        recipe_name=session.recipe.name,
        total_ingredients=len(session.recipe.ingredients),
        total_steps=len(session.steps),
        current_step=session.current_step,
        message_count=len(session.messages),
    )


def _assistant_reply(reply: SessionReply, transcript: str | None = None) -> AssistantReply:
    return AssistantReply(
        text=reply.text,
        speech=reply.speech,
        kind=reply.kind,
        transcript=transcript,
        timers=[_timer_response(t) for t in reply.timers],
    )


# ============================================
# Sessions
# ============================================

@router.post("/sessions", response_model=CookingSessionResponse, status_code=201)
async def start_cooking_session(
    request: CookingSessionStart,
    assistant_factory: Callable[[Recipe], CookingAssistant] = Depends(get_assistant_factory),
    settings: Settings = Depends(get_settings),
):
    """
    Start a new cooking session for a recipe.

    Returns session metadata including the session_id needed for
    subsequent utterance, voice and timer requests.
    """
    recipe = Recipe(
        name=request.recipe.name,
        instructions=request.recipe.instructions,
        description=request.recipe.description or "",
        ingredients=list(request.recipe.ingredients),
    )
    session = CookingSession(
        recipe,
        assistant=assistant_factory(recipe),
        max_timers=settings.max_timers,
        tick_seconds=settings.timer_tick_seconds,
    )
    session_id = str(uuid.uuid4())
    active_sessions[session_id] = session
    logger.info(f"Cooking session {session_id} started for {recipe.name!r} ({len(session.steps)} steps)")
    return _session_response(session_id, session)


@router.get("/sessions/{session_id}", response_model=CookingSessionResponse)
def get_session_info(session_id: str):
    """Get information about an active session."""
    return _session_response(session_id, get_session(session_id))


@router.delete("/sessions/{session_id}", status_code=204)
async def end_cooking_session(session_id: str):
    """
    End a cooking session and stop all of its timers.

    Ending an unknown session is not an error.
    """
    session = active_sessions.pop(session_id, None)
    if session:
        session.close()


@router.post("/sessions/{session_id}/utterances", response_model=AssistantReply)
async def send_utterance(session_id: str, utterance: UtteranceRequest):
    """
    Send something the cook said or typed.

    Timer and navigation commands are answered directly; anything else
    is answered by Claude.
    """
    session = get_session(session_id)
    reply = await session.handle_utterance(utterance.text)
    return _assistant_reply(reply)


@router.post("/sessions/{session_id}/voice", response_model=AssistantReply)
async def send_voice(
    session_id: str,
    request: Request,
    audio_service: AudioService = Depends(get_audio_service),
):
    """
    Send recorded speech (raw WAV body).

    The audio is transcribed and then handled like a typed utterance.
    """
    session = get_session(session_id)
    audio = await request.body()
    if not audio:
        raise HTTPException(status_code=400, detail="Audio body required")

    transcript = None
    async for result in audio_service.listen(audio):
        if result.is_final:
            transcript = result.text

    if not transcript:
        raise HTTPException(status_code=422, detail="Could not understand audio")

    reply = await session.handle_utterance(transcript)
    return _assistant_reply(reply, transcript=transcript)


@router.get("/sessions/{session_id}/announcements", response_model=AnnouncementsResponse)
async def get_announcements(session_id: str):
    """Drain timer-complete announcements queued since the last poll."""
    announcements = get_session(session_id).pop_announcements()
    return AnnouncementsResponse(
        announcements=announcements,
        speech=[make_speech_friendly(a) for a in announcements],
    )


# ============================================
# Timers
# ============================================

@router.get("/sessions/{session_id}/timers", response_model=list[TimerResponse])
async def list_timers(session_id: str):
    return [_timer_response(t) for t in get_session(session_id).timers.get_timers()]


@router.post("/sessions/{session_id}/timers", response_model=TimerResponse, status_code=201)
async def create_timer(session_id: str, body: TimerCreate):
    """Start a timer directly, without going through speech."""
    session = get_session(session_id)
    timer = session.timers.create_timer(body.name or DEFAULT_TIMER_NAME, body.minutes)
    if timer is None:
        raise HTTPException(
            status_code=409,
            detail=f"You already have {session.timers.max_timers} timers running. Please dismiss one first.",
        )
    return _timer_response(timer)


@router.post("/sessions/{session_id}/timers/{timer_id}/pause", response_model=TimerResponse)
async def pause_timer(session_id: str, timer_id: str):
    session = get_session(session_id)
    timer = get_timer(session, timer_id)
    session.timers.pause_timer(timer_id)
    return _timer_response(timer)


@router.post("/sessions/{session_id}/timers/{timer_id}/resume", response_model=TimerResponse)
async def resume_timer(session_id: str, timer_id: str):
    session = get_session(session_id)
    timer = get_timer(session, timer_id)
    session.timers.resume_timer(timer_id)
    return _timer_response(timer)


@router.delete("/sessions/{session_id}/timers/{timer_id}", status_code=204)
async def delete_timer(session_id: str, timer_id: str):
    """Stop a running timer or dismiss an expired one."""
    session = get_session(session_id)
    timer = get_timer(session, timer_id)
    if timer.is_expired:
        session.timers.dismiss_timer(timer_id)
    else:
        session.timers.stop_timer(timer_id)


@router.delete("/sessions/{session_id}/timers", status_code=204)
async def delete_timers(session_id: str, expired_only: bool = False):
    """Dismiss expired timers, or stop every timer."""
    session = get_session(session_id)
    if expired_only:
        session.timers.dismiss_all_expired()
    else:
        session.timers.stop_all_timers()


# ============================================
# Stateless helpers
# ============================================

@router.post("/commands/parse", response_model=ParsedCommandResponse)
def parse_command(request: ParseRequest):
    """
    Classify an utterance without a session.

    Useful for debugging phrasing; kind is "no_match" when the utterance
    would go to the assistant.
    """
    return ParsedCommandResponse(**command_to_dict(classify(request.text)))


@router.post("/speech", response_model=SpeechResponse)
def speech_text(request: SpeechRequest):
    """Rewrite text so a speech synthesizer reads it naturally."""
    return SpeechResponse(text=request.text, speech=make_speech_friendly(request.text))


@router.post("/speech/audio")
async def speech_audio(
    request: SpeechRequest,
    audio_service: AudioService = Depends(get_audio_service),
):
    """Synthesize speech-friendly text to MP3 audio."""
    audio = await audio_service.text_to_speech(request.text, voice=request.voice, rate=request.rate)
    if not audio:
        raise HTTPException(status_code=503, detail="Speech synthesis failed")
    return Response(content=audio, media_type="audio/mpeg")
