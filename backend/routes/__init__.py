"""FastAPI endpoints.

Endpoint groups: game (start, choose, session lookup) and health. Routes are
mounted at the root path; the game endpoints get the Game bundle through the
get_game dependency, which reads it from app.state.
"""

from fastapi import APIRouter

from .game import router as game_router
from .health import router as health_router

router = APIRouter()
router.include_router(health_router)
router.include_router(game_router)
