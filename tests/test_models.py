"""Tests for life_sim.models."""

import pytest
from pydantic import ValidationError

from life_sim.models import GameState, HistoryEntry, NarrativeResult, PlayerState, TurnResult


class TestHistoryEntry:
    def test_roles(self) -> None:
        assert HistoryEntry(role="user", content="x").role == "user"
        assert HistoryEntry(role="narrator", content="x").role == "narrator"

    def test_legacy_assistant_role_maps_to_narrator(self) -> None:
        assert HistoryEntry(role="assistant", content="x").role == "narrator"

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HistoryEntry(role="system", content="x")


class TestGameState:
    def test_empty_shape_defaults(self) -> None:
        state = GameState.model_validate({"history": [], "player_state": {}, "world_state": {}})
        assert state.history == []
        assert state.player_state.age == 0
        assert state.player_state.events_this_year == 0
        assert state.player_state.max_events_this_year is None
        assert state.player_state.stats is None
        assert state.world_state.time == "day"

    def test_negative_age_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlayerState(age=-1)

    def test_json_roundtrip(self) -> None:
        state = GameState(
            history=[HistoryEntry(role="user", content="Cry")],
            player_state=PlayerState(age=2, events_this_year=1, max_events_this_year=3, stats={"violence": 5}),
        )
        assert GameState.model_validate_json(state.model_dump_json()) == state


class TestNarrativeResult:
    def test_accepts_wire_names(self) -> None:
        r = NarrativeResult.model_validate({"consequence": "a", "nextEvent": "b"})
        assert r.next_event == "b"
        assert r.stats_change is None

    def test_empty_consequence_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NarrativeResult.model_validate({"consequence": "", "nextEvent": "b"})

    def test_missing_next_event_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NarrativeResult.model_validate({"consequence": "a"})


class TestTurnResult:
    def test_continuing_response_has_no_game_over_key(self) -> None:
        body = TurnResult(
            response="a\n\nb", consequence="a", next_event="b", stats={}, age_marker=None,
        ).to_response()
        assert body == {
            "response": "a\n\nb",
            "consequence": "a",
            "nextEvent": "b",
            "stats": {},
            "ageMarker": None,
        }

    def test_terminal_response_flags_game_over(self) -> None:
        body = TurnResult(
            response="a\n\nend", consequence="a", next_event="end", stats={}, game_over=True,
        ).to_response()
        assert body["gameOver"] is True
