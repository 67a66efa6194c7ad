"""Game session endpoints: start, choose, session lookup."""

from fastapi import APIRouter, Depends, HTTPException, Request

from life_sim.engine import Game
from life_sim.storage import SessionNotFound

from .models import ChooseBody, StartBody

router = APIRouter()


def get_game(request: Request) -> Game:
    return request.app.state.game


@router.post("/start")
async def start_session(body: StartBody, game: Game = Depends(get_game)):
    """Create a user + session and return the intro story."""
    result = game.start(body.username, body.age)
    return result.to_response()


@router.post("/choose")
async def choose(body: ChooseBody, game: Game = Depends(get_game)):
    """Run one full turn for the player's choice."""
    session_id = "" if body.session_id is None else str(body.session_id).strip()
    if not session_id or not body.user_choice.strip():
        raise HTTPException(400, "session_id and user_choice are required")
    try:
        result = await game.choose(session_id, body.user_choice)
    except SessionNotFound:
        raise HTTPException(404, "Session not found")
    return result.to_response()


@router.get("/session/{session_id}")
async def get_session(session_id: str, game: Game = Depends(get_game)):
    """Get the stored session record and its choice log."""
    try:
        return game.session_details(session_id)
    except SessionNotFound:
        raise HTTPException(404, "Session not found")
