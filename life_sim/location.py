"""Where the next life event takes place, chosen by age band.

Each call draws exactly one uniform sample r in [0, 1) and walks the band's
cumulative thresholds:

  age < 3     Home with parents
  3 ≤ age < 7 Kindergarten (r < 0.5) | Home
  7 ≤ age <18 School (r < 0.4) | Home (r < 0.7) | Outside with friends
  age ≥ 18    University/College (r < 0.4) | Work/Side job (r < 0.7) | Home/Personal life

Pass a seeded random.Random to make the choice reproducible.
"""

import random

HOME_WITH_PARENTS = "Home with parents"
KINDERGARTEN = "Kindergarten"
HOME = "Home"
SCHOOL = "School"
OUTSIDE_WITH_FRIENDS = "Outside with friends"
UNIVERSITY = "University/College"
WORK = "Work/Side job"
PERSONAL_LIFE = "Home/Personal life"

# (upper age bound exclusive | None, [(cumulative threshold, label), ...])
AGE_BANDS: list[tuple[int | None, list[tuple[float, str]]]] = [
    (3, [(1.0, HOME_WITH_PARENTS)]),
    (7, [(0.5, KINDERGARTEN), (1.0, HOME)]),
    (18, [(0.4, SCHOOL), (0.7, HOME), (1.0, OUTSIDE_WITH_FRIENDS)]),
    (None, [(0.4, UNIVERSITY), (0.7, WORK), (1.0, PERSONAL_LIFE)]),
]

ALL_LOCATIONS: frozenset[str] = frozenset(
    label for _, outcomes in AGE_BANDS for _, label in outcomes
)


def _band_for(age: int) -> list[tuple[float, str]]:
    for upper, outcomes in AGE_BANDS:
        if upper is None or age < upper:
            return outcomes
    raise AssertionError("last age band must be open-ended")


def select_location(age: int, rng: random.Random | None = None) -> str:
    """Pick the location label for a player of the given age."""
    if age < 0:
        raise ValueError(f"Age must be non-negative, got {age}")
    roll = (rng or random).random()
    outcomes = _band_for(age)
    for threshold, label in outcomes:
        if roll < threshold:
            return label
    return outcomes[-1][1]
