"""In-game time: every choice is one life event, every 2–3 events one year.

advance() runs exactly once per turn, before the next location is chosen, so
the location always reflects the post-advance age.
"""

import random

from life_sim.models import PlayerState

EVENTS_PER_YEAR = (2, 3)


def draw_events_per_year(rng: random.Random | None = None) -> int:
    """Uniform draw from EVENTS_PER_YEAR."""
    return (rng or random).choice(EVENTS_PER_YEAR)


def age_marker(age: int) -> str:
    return "1 year old" if age == 1 else f"{age} years old"


def advance(
    player_state: PlayerState, rng: random.Random | None = None
) -> tuple[PlayerState, str | None]:
    """Count one event and roll over to the next year when the quota is hit.

    Returns the updated copy and an age marker when the age went up
    (None otherwise). The input is not mutated.
    """
    state = player_state.model_copy(deep=True)
    if state.max_events_this_year is None:
        state.max_events_this_year = draw_events_per_year(rng)

    state.events_this_year += 1
    if state.events_this_year < state.max_events_this_year:
        return state, None

    state.age += 1
    state.events_this_year = 0
    state.max_events_this_year = draw_events_per_year(rng)
    return state, age_marker(state.age)
