"""
Controllers Package - The 'C' in MVC

Each controller is a FastAPI APIRouter that handles HTTP requests and
coordinates the models and services for one feature area.
"""

from kitchen_voice.controllers.cooking import router as cooking_router

__all__ = ["cooking_router"]
