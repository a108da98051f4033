from datetime import datetime

from pydantic import BaseModel, Field


# ============================================
# Recipe Schemas
# ============================================

class RecipeInput(BaseModel):
    """Recipe supplied when a cooking session starts."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: str = Field(..., min_length=1)


# ============================================
# Cooking Session Schemas
# ============================================

class CookingSessionStart(BaseModel):
    """Request to start a cooking session."""
    recipe: RecipeInput


class CookingSessionResponse(BaseModel):
    """Session metadata."""
    session_id: str
    recipe_name: str
    total_ingredients: int
    total_steps: int
    current_step: int = 0
    message_count: int = 0


class UtteranceRequest(BaseModel):
    """Something the cook said or typed."""
    text: str = Field(..., max_length=1000)


# ============================================
# Timer Schemas
# ============================================

class TimerCreate(BaseModel):
    """Request body for creating a timer directly."""
    name: str | None = Field(None, max_length=100)
    minutes: int = Field(..., gt=0, le=480)


class TimerResponse(BaseModel):
    """Timer in API responses."""
    id: str
    name: str
    duration_seconds: int
    remaining_seconds: int
    is_running: bool
    is_expired: bool
    created_at: datetime
    display: str

    class Config:
        from_attributes = True


class AssistantReply(BaseModel):
    """Response to an utterance."""
    text: str
    speech: str
    kind: str
    transcript: str | None = None
    timers: list[TimerResponse]


class AnnouncementsResponse(BaseModel):
    """Timer-complete announcements since the last poll."""
    announcements: list[str]
    speech: list[str]


# ============================================
# Stateless Parsing / Speech Schemas
# ============================================

class ParseRequest(BaseModel):
    """Utterance to classify without a session."""
    text: str = Field(..., max_length=1000)


class ParsedCommandResponse(BaseModel):
    """Classified command."""
    kind: str
    name: str | None = None
    minutes: int | None = None
    step_number: int | None = None
    item_name: str | None = None
    all_timers: bool = False
    step_num: int | None = None


class SpeechRequest(BaseModel):
    """Text to prepare for speech."""
    text: str = Field(..., max_length=5000)
    voice: str | None = None
    rate: str | None = None


class SpeechResponse(BaseModel):
    """Speech-friendly rewrite of the request text."""
    text: str
    speech: str
