"""
Kitchen Voice API - Application Entry Point

FastAPI application serving hands-free cooking sessions. It follows the
same MVC layout as the rest of the package:

- Models (kitchen_voice/models/): dataclass entities, parsed commands and
  Pydantic request/response schemas
- Controllers (kitchen_voice/controllers/): FastAPI routers
  - cooking.py: sessions, utterances, voice, timers, speech
- Services (kitchen_voice/services/): business logic
  - commands.py: classify utterances into timer / navigation commands
  - timers.py: per-session countdown timers
  - session.py: one person cooking one recipe
  - claude.py: Claude for everything that is not a command
  - audio.py: speech recognition and synthesis

Run with:
    uvicorn kitchen_voice.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kitchen_voice import __version__
from kitchen_voice.config import get_settings
from kitchen_voice.controllers import cooking_router
from kitchen_voice.controllers.cooking import active_sessions, close_all_sessions

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Kitchen Voice API starting")
    yield
    logger.info(f"Shutting down, closing {len(active_sessions)} cooking session(s)")
    close_all_sessions()


# Create FastAPI application
app = FastAPI(
    title="Kitchen Voice API",
    description="""
    Voice-driven cooking assistant.

    ## Features
    - Cooking sessions for a recipe supplied by the client
    - Spoken or typed commands: timers, step navigation, ingredients
    - Named countdown timers with completion announcements
    - Free-form cooking questions answered by Claude
    - Speech-friendly text and MP3 synthesis for voice output
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware configuration
# Allows a browser frontend to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cooking_router)   # /cooking endpoints


# ============================================
# Health Check Endpoints
# ============================================

@app.get("/", tags=["health"])
def root():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "Kitchen Voice API",
        "version": __version__,
    }


@app.get("/health", tags=["health"])
def health_check():
    """
    Detailed health check endpoint.

    Reports live sessions and whether Claude is configured; the API key
    itself is never checked against Anthropic here.
    """
    return {
        "status": "healthy",
        "active_sessions": len(active_sessions),
        "claude": "configured" if settings.anthropic_api_key else "not_configured",
    }
