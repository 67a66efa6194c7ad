"""Turn engine: starts sessions and runs one player turn end-to-end.

Turn flow:
  1. Load the session and restore its GameState (unparsable → empty state,
     invalid fields repaired one by one).
  2. Fill legacy gaps (age, counters, stats).
  3. Advance the year counter; maybe emit an age marker.
  4. Pick the location of the next event from the post-advance age.
  5. Ask the narrator for the consequence / next event / stat deltas.
  6. Reconcile the deltas into the stats.
  7. Check the problem stats for game over.
  8. Append history + story, persist, append the choice audit entry
     (an audit failure is logged, the turn still counts).

Turns for one session are serialised by Game with a per-session asyncio.Lock;
the store itself does no locking.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any

from pydantic import ValidationError

from life_sim.game_over import evaluate
from life_sim.location import select_location
from life_sim.models import (
    GameState,
    HistoryEntry,
    PlayerState,
    StartResult,
    TurnResult,
    WorldState,
)
from life_sim.narrator import Narrator
from life_sim.reconcile import coerce_number, reconcile
from life_sim.stats import clamp, initial_stats, resolve_key
from life_sim.storage import SessionStore, StorageError
from life_sim.turn import advance, draw_events_per_year

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "Guest"


class MalformedStoredState(ValueError):
    """Raised when a session's serialized state cannot be restored."""


# ---------------------------------------------------------------------------
# State helpers
# ---------------------------------------------------------------------------

def load_state(raw: str) -> GameState:
    """Deserialize a stored GameState blob.

    Only a blob that is not a JSON object is rejected. A document that parses
    but does not validate is repaired field by field by repair_state().
    """
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        raise MalformedStoredState(f"Stored state is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedStoredState(
            f"Stored state must be a JSON object, got {type(data).__name__}"
        )
    try:
        return GameState.model_validate(data)
    except ValidationError as e:
        logger.warning("Repairing stored state with %d invalid field(s)", e.error_count())
        return repair_state(data)


def restore_state(raw: str) -> GameState:
    """Like load_state(), but falls back to an empty-shaped state."""
    try:
        return load_state(raw)
    except MalformedStoredState as e:
        logger.warning("%s; reinitialising", e)
        return GameState()


def _non_negative(value: Any) -> int | None:
    number = coerce_number(value)
    return number if number is not None and number >= 0 else None


def _repair_history(raw: Any) -> list[HistoryEntry]:
    entries = []
    for item in raw if isinstance(raw, list) else []:
        try:
            entries.append(HistoryEntry.model_validate(item))
        except ValidationError:
            logger.warning("Dropping unreadable history entry %r", item)
    return entries


def _repair_stats(raw: Any) -> dict[str, int] | None:
    if not isinstance(raw, dict):
        return None
    stats: dict[str, int] = {}
    for raw_key, raw_value in raw.items():
        key = resolve_key(raw_key)
        value = coerce_number(raw_value)
        if key is None or value is None:
            logger.warning("Dropping stored stat %r=%r", raw_key, raw_value)
            continue
        stats[key] = clamp(value)
    return stats


def repair_state(data: dict[str, Any]) -> GameState:
    """Rebuild a GameState from a parsed but invalid document.

    Every field that can be read is kept: history entries, age and counters
    survive, numeric stats are rounded and clamped. Unreadable fields fall
    back to their defaults.
    """
    player = data.get("player_state")
    player = player if isinstance(player, dict) else {}
    world = data.get("world_state")
    world = world if isinstance(world, dict) else {}
    location = world.get("location")
    time = world.get("time")
    return GameState(
        history=_repair_history(data.get("history")),
        player_state=PlayerState(
            age=_non_negative(player.get("age")) or 0,
            events_this_year=_non_negative(player.get("events_this_year")) or 0,
            # 0 is not a usable quota; None makes advance() draw a new one
            max_events_this_year=_non_negative(player.get("max_events_this_year")) or None,
            stats=_repair_stats(player.get("stats")),
        ),
        world_state=WorldState(
            location=location if isinstance(location, str) else "",
            time=time if isinstance(time, str) else "day",
        ),
    )


def with_defaults(state: GameState) -> GameState:
    """Complete the stats map; older or reinitialised sessions lack some or all of it."""
    stats = {**initial_stats(), **(state.player_state.stats or {})}
    if stats == state.player_state.stats:
        return state
    player = state.player_state.model_copy(update={"stats": stats})
    return state.model_copy(update={"player_state": player})


def initial_state(age: int, rng: random.Random | None = None) -> GameState:
    return GameState(
        history=[],
        player_state=PlayerState(
            age=age,
            events_this_year=0,
            max_events_this_year=draw_events_per_year(rng),
            stats=initial_stats(),
        ),
        world_state=WorldState(location=select_location(age, rng), time="day"),
    )


def intro_story(username: str, age: int, location: str) -> str:
    if age == 0:
        return (
            "You were born! It was a long road, but you are finally here.\n"
            "The world around you is huge, bright and noisy. You are lying in a "
            "crib, you are 0 years old.\n"
            "You feel hungry and tired, but nearby you hear your parents' voices. "
            "They are arguing about who should get up to you at night.\n\n"
            "How will you get their attention? (Cry loudly? Try to fall asleep? "
            "Make a quiet sound?)"
        )
    return (
        f"You begin the simulation at {age} years old.\n"
        f"Your name is {username}.\n"
        f"Current location: {location}.\n\n"
        "Life goes on as usual. What is happening around you, and what are you "
        "going to do?"
    )


def append_story(story: str, user_choice: str, narration: str, marker: str | None) -> str:
    parts = [story, f"> {user_choice}"]
    if marker:
        parts.append(f"[{marker}]")
    parts.append(narration)
    return "\n\n".join(part for part in parts if part)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def start_game(
    *,
    store: SessionStore,
    username: str,
    age: int,
    rng: random.Random | None = None,
) -> StartResult:
    """Create a user and session with the intro story and initial state."""
    if age < 0:
        raise ValueError(f"Age must be non-negative, got {age}")
    username = username.strip() or DEFAULT_USERNAME
    state = initial_state(age, rng)
    story = intro_story(username, age, state.world_state.location)
    session_id = store.create(username, story, state.model_dump_json())
    return StartResult(session_id=session_id, story=story)


async def run_turn(
    *,
    store: SessionStore,
    narrator: Narrator,
    session_id: str,
    user_choice: str,
    rng: random.Random | None = None,
) -> TurnResult:
    """Execute one player turn and return the client-facing result."""
    record = store.load(session_id)
    state = with_defaults(restore_state(record.state))

    # 1. Time
    player, marker = advance(state.player_state, rng)
    next_location = select_location(player.age, rng)
    state = state.model_copy(update={"player_state": player})

    # 2. Narrative (never raises)
    narrative = await narrator.generate(state, user_choice, next_location)

    # 3. Stats + terminal check
    stats = reconcile(player.stats or {}, narrative.stats_change)
    is_over, reason = evaluate(stats)
    next_event = reason if is_over and reason else narrative.next_event
    response = f"{narrative.consequence}\n\n{next_event}"
    if is_over:
        logger.info("Session %s ended: game over", session_id)

    # 4. Persist
    new_state = GameState(
        history=[
            *state.history,
            HistoryEntry(role="user", content=user_choice),
            HistoryEntry(role="narrator", content=response),
        ],
        player_state=player.model_copy(update={"stats": stats}),
        world_state=state.world_state.model_copy(update={"location": next_location}),
    )
    story = append_story(record.story, user_choice, response, marker)
    store.save(session_id, story, new_state.model_dump_json())
    # The saved state is authoritative; a failed audit append does not undo the turn
    try:
        store.append_choice(session_id, user_choice, response)
    except StorageError as e:
        logger.error("Choice log append failed for session %s: %s", session_id, e)

    return TurnResult(
        response=response,
        consequence=narrative.consequence,
        next_event=next_event,
        stats=stats,
        age_marker=marker,
        game_over=is_over,
    )


class Game:
    """Session store + narrator bundle handed to the HTTP layer."""

    def __init__(
        self,
        store: SessionStore,
        narrator: Narrator,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.narrator = narrator
        self._rng = rng
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, int] = {}

    def start(self, username: str, age: int) -> StartResult:
        return start_game(store=self.store, username=username, age=age, rng=self._rng)

    async def choose(self, session_id: str, user_choice: str) -> TurnResult:
        # Fail fast on unknown ids so they never get a lock entry
        self.store.load(session_id)
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._pending[session_id] = self._pending.get(session_id, 0) + 1
        try:
            async with lock:
                return await run_turn(
                    store=self.store,
                    narrator=self.narrator,
                    session_id=session_id,
                    user_choice=user_choice,
                    rng=self._rng,
                )
        finally:
            # The last turn out drops the lock so idle sessions hold no entry
            self._pending[session_id] -= 1
            if not self._pending[session_id]:
                del self._pending[session_id]
                del self._locks[session_id]

    def session_details(self, session_id: str) -> dict:
        record = self.store.load(session_id)
        choices = self.store.get_choices(session_id)
        return {
            "session": record.model_dump(),
            "choices": [c.model_dump() for c in choices],
        }
