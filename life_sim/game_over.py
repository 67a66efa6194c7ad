"""Terminal condition: a problem stat at 100 ends the life story.

Problems are checked in PROBLEM_KEYS declaration order and the first one at
the threshold wins, which settles ties when several reach 100 in one turn.
"""

from collections.abc import Mapping

from life_sim.stats import PROBLEM_KEYS, STAT_MAX

GAME_OVER_THRESHOLD = STAT_MAX

DEFAULT_GAME_OVER_MESSAGE = "You crossed the line. Game over."

GAME_OVER_MESSAGES: dict[str, str] = {
    "drug_addiction": (
        "Your addiction turned fatal. You lost everything: your health, your "
        "family, your freedom. Your story ends on a sad note."
    ),
    "gambling_addiction": (
        "The debts became impossible to carry. Collectors took the last of what "
        "you had, and you ended up on the street with no way back."
    ),
    "vandalism": (
        "Your stunts went too far. Serious destruction of property earned you a "
        "long sentence in a correctional colony."
    ),
    "religious_extremism": (
        "Your radical actions led to tragedy. You were arrested by the security "
        "services and isolated from society for good."
    ),
    "bullying": (
        "Your cruelty led to something irreversible. Your victim was hurt too "
        "badly, and now you will answer to the full extent of the law."
    ),
    "violence": (
        "A burst of rage ended in tragedy. You caused grievous bodily harm and "
        "are going to prison for many years."
    ),
    "wastefulness": (
        "You squandered every last coin and fell into criminal debt. Your life "
        "is ruined by bankruptcy and poverty."
    ),
}


def evaluate(stats: Mapping[str, int]) -> tuple[bool, str | None]:
    """Return (is_over, terminal message) for the given stats."""
    for key in PROBLEM_KEYS:
        if stats.get(key, 0) >= GAME_OVER_THRESHOLD:
            return True, GAME_OVER_MESSAGES.get(key, DEFAULT_GAME_OVER_MESSAGE)
    return False, None
