"""Tracked player attributes and stat-key resolution.

Two disjoint groups, each tracked on a 0–100 scale:

  values    aspirational attributes, start at 10
  problems  risk attributes, start at 0; any of them reaching 100 ends the game

Declaration order matters: PROBLEM_KEYS is also the game-over priority order.

The language model regularly misspells keys ("hard_work_professionalism",
"law_and_order", ...). resolve_key() maps those through KEY_ALIASES, first on
the raw key and then on a normalised form (lower-case, spaces and hyphens
turned into underscores). Anything still unknown resolves to None.
"""

import re

STAT_MIN = 0
STAT_MAX = 100

INITIAL_VALUE = 10
INITIAL_PROBLEM = 0

VALUE_KEYS: tuple[str, ...] = (
    "independence_patriotism",
    "unity_solidarity",
    "justice_responsibility",
    "law_order",
    "hardwork_professionalism",
    "creativity_innovation",
)

PROBLEM_KEYS: tuple[str, ...] = (
    "drug_addiction",
    "gambling_addiction",
    "vandalism",
    "religious_extremism",
    "bullying",
    "violence",
    "wastefulness",
)

ALL_KEYS: tuple[str, ...] = VALUE_KEYS + PROBLEM_KEYS

STAT_LABELS: dict[str, str] = {
    "independence_patriotism": "Independence and patriotism",
    "unity_solidarity": "Unity and solidarity",
    "justice_responsibility": "Justice and responsibility",
    "law_order": "Law and order",
    "hardwork_professionalism": "Hard work and professionalism",
    "creativity_innovation": "Creativity and innovation",
    "drug_addiction": "Drug addiction",
    "gambling_addiction": "Gambling addiction",
    "vandalism": "Vandalism",
    "religious_extremism": "Religious extremism",
    "bullying": "Bullying",
    "violence": "Violence",
    "wastefulness": "Wastefulness",
}

KEY_ALIASES: dict[str, str] = {
    "hard_work_professionalism": "hardwork_professionalism",
    "hard_work_and_professionalism": "hardwork_professionalism",
    "work_ethic_professionalism": "hardwork_professionalism",
    "professionalism": "hardwork_professionalism",
    "creation_innovation": "creativity_innovation",
    "creation_and_innovation": "creativity_innovation",
    "justice_and_responsibility": "justice_responsibility",
    "responsibility": "justice_responsibility",
    "law_and_order": "law_order",
    "unity_and_solidarity": "unity_solidarity",
    "solidarity": "unity_solidarity",
    "independence_and_patriotism": "independence_patriotism",
}

_SEPARATORS = re.compile(r"[\s\-]+")


def _lookup(key: str) -> str | None:
    if key in STAT_LABELS:
        return key
    return KEY_ALIASES.get(key)


def normalize_key(raw: str) -> str:
    """Lower-case a raw key and underscore its separators: "Law-And Order" → "law_and_order"."""
    return _SEPARATORS.sub("_", raw.strip().lower())


def resolve_key(raw: object) -> str | None:
    """Return the canonical stat key for a raw (possibly aliased) key, or None."""
    if not isinstance(raw, str):
        return None
    return _lookup(raw) or _lookup(normalize_key(raw))


def is_problem(key: str) -> bool:
    return key in PROBLEM_KEYS


def clamp(value: int) -> int:
    return max(STAT_MIN, min(STAT_MAX, value))


def initial_stats() -> dict[str, int]:
    """Fresh stats for a new life: values at 10, problems at 0."""
    stats = {key: INITIAL_VALUE for key in VALUE_KEYS}
    stats.update({key: INITIAL_PROBLEM for key in PROBLEM_KEYS})
    return stats
