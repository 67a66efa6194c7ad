"""Tests for life_sim.location: age bands and draw distribution."""

import random
from collections import Counter
from unittest.mock import MagicMock

import pytest

from life_sim import location


def _fixed(value: float) -> MagicMock:
    rng = MagicMock()
    rng.random.return_value = value
    return rng


def test_newborn_always_home_with_parents():
    rng = random.Random(7)
    results = {location.select_location(0, rng) for _ in range(1000)}
    assert results == {"Home with parents"}


def test_toddler_band_upper_bound():
    assert location.select_location(2, _fixed(0.99)) == "Home with parents"


@pytest.mark.parametrize("roll,expected", [
    (0.0, "Kindergarten"),
    (0.49, "Kindergarten"),
    (0.5, "Home"),
    (0.99, "Home"),
])
def test_preschool_band(roll, expected):
    assert location.select_location(3, _fixed(roll)) == expected
    assert location.select_location(6, _fixed(roll)) == expected


@pytest.mark.parametrize("roll,expected", [
    (0.1, "School"),
    (0.4, "Home"),
    (0.69, "Home"),
    (0.7, "Outside with friends"),
])
def test_school_band(roll, expected):
    assert location.select_location(7, _fixed(roll)) == expected
    assert location.select_location(17, _fixed(roll)) == expected


@pytest.mark.parametrize("roll,expected", [
    (0.1, "University/College"),
    (0.5, "Work/Side job"),
    (0.9, "Home/Personal life"),
])
def test_adult_band(roll, expected):
    assert location.select_location(18, _fixed(roll)) == expected
    assert location.select_location(64, _fixed(roll)) == expected


def test_one_draw_per_call():
    rng = _fixed(0.3)
    location.select_location(10, rng)
    assert rng.random.call_count == 1


def test_school_age_distribution():
    rng = random.Random(2024)
    n = 10_000
    counts = Counter(location.select_location(10, rng) for _ in range(n))
    assert set(counts) == {"School", "Home", "Outside with friends"}
    assert counts["School"] / n == pytest.approx(0.4, abs=0.03)
    assert counts["Home"] / n == pytest.approx(0.3, abs=0.03)
    assert counts["Outside with friends"] / n == pytest.approx(0.3, abs=0.03)


def test_seeded_rng_is_reproducible():
    a = [location.select_location(20, random.Random(99)) for _ in range(5)]
    b = [location.select_location(20, random.Random(99)) for _ in range(5)]
    assert a == b


def test_negative_age_rejected():
    with pytest.raises(ValueError):
        location.select_location(-1)


def test_all_locations():
    assert "Home with parents" in location.ALL_LOCATIONS
    assert len(location.ALL_LOCATIONS) == 8
