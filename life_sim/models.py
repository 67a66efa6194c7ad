"""Core domain models.

The game state is stored as a serialized JSON blob on the session record and
validated back into these types on every turn. Pydantic is used for
validation and serialisation at every data boundary: stored state, language
model output and API responses.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "narrator"]


class HistoryEntry(BaseModel):
    """One entry of the append-only turn history."""

    role: Role
    content: str

    @field_validator("role", mode="before")
    @classmethod
    def _legacy_role(cls, value: Any) -> Any:
        # Older sessions stored narrator entries with the chat-API role name
        return "narrator" if value == "assistant" else value


class PlayerState(BaseModel):
    age: int = Field(default=0, ge=0)
    events_this_year: int = Field(default=0, ge=0)
    max_events_this_year: int | None = None  # drawn on the first turn when missing
    stats: dict[str, int] | None = None  # None on legacy / reinitialised sessions


class WorldState(BaseModel):
    location: str = ""
    time: str = "day"


class GameState(BaseModel):
    """Everything the turn pipeline needs, serialized into Session.state."""

    history: list[HistoryEntry] = Field(default_factory=list)
    player_state: PlayerState = Field(default_factory=PlayerState)
    world_state: WorldState = Field(default_factory=WorldState)


class NarrativeResult(BaseModel):
    """Validated language-model reply for one turn."""

    model_config = ConfigDict(populate_by_name=True)

    consequence: str = Field(min_length=1)
    next_event: str = Field(alias="nextEvent", min_length=1)
    stats_change: dict[str, Any] | None = None


class User(BaseModel):
    id: str
    username: str
    created_at: str


class SessionRecord(BaseModel):
    """A stored game session. `state` holds the serialized GameState."""

    id: str
    user_id: str
    story: str
    state: str
    created_at: str
    updated_at: str


class ChoiceLogEntry(BaseModel):
    user_choice: str
    ai_response: str
    created_at: str


class StartResult(BaseModel):
    session_id: str
    story: str

    def to_response(self) -> dict[str, Any]:
        return {"sessionId": self.session_id, "story": self.story}


class TurnResult(BaseModel):
    """Outcome of one processed choice."""

    response: str
    consequence: str
    next_event: str
    stats: dict[str, int]
    age_marker: str | None = None
    game_over: bool = False

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "response": self.response,
            "consequence": self.consequence,
            "nextEvent": self.next_event,
            "stats": self.stats,
            "ageMarker": self.age_marker,
        }
        if self.game_over:
            body["gameOver"] = True
        return body
