"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field


class StartBody(BaseModel):
    username: str = ""
    age: int = Field(default=0, ge=0)


class ChooseBody(BaseModel):
    # Presence is checked in the route so that missing fields map to 400
    session_id: str | int | None = None
    user_choice: str = ""
