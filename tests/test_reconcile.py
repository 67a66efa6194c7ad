"""Tests for life_sim.reconcile: bounded, alias-aware, order-independent merge."""

import itertools
import logging
import random

from life_sim.reconcile import collect_deltas, reconcile
from life_sim.stats import ALL_KEYS, initial_stats


def test_applies_delta():
    result = reconcile(initial_stats(), {"bullying": 30, "law_order": 5})
    assert result["bullying"] == 30
    assert result["law_order"] == 15


def test_clamps_high_and_low():
    result = reconcile(initial_stats(), {"bullying": 130, "law_order": -50})
    assert result["bullying"] == 100
    assert result["law_order"] == 0


def test_input_not_mutated():
    stats = initial_stats()
    reconcile(stats, {"violence": 40})
    assert stats["violence"] == 0


def test_missing_stat_defaults_to_zero():
    assert reconcile({}, {"violence": 12}) == {"violence": 12}


def test_none_or_empty_change_returns_clamped_copy():
    assert reconcile({"violence": 150, "made_up_key": 3}, None) == {"violence": 100}
    assert reconcile(initial_stats(), {}) == initial_stats()


def test_alias_resolves_like_canonical_key():
    via_alias = reconcile(initial_stats(), {"hard_work_professionalism": 25})
    canonical = reconcile(initial_stats(), {"hardwork_professionalism": 25})
    assert via_alias == canonical
    assert via_alias["hardwork_professionalism"] == 35


def test_unknown_key_leaves_stats_unchanged(caplog):
    stats = initial_stats()
    with caplog.at_level(logging.WARNING, logger="life_sim.reconcile"):
        result = reconcile(stats, {"made_up_key": 50})
    assert result == stats
    assert "made_up_key" in caplog.text


def test_unknown_key_does_not_block_others():
    result = reconcile(initial_stats(), {"made_up_key": 50, "violence": 10})
    assert result["violence"] == 10
    assert "made_up_key" not in result


def test_non_numeric_deltas_skipped():
    result = reconcile(initial_stats(), {"violence": "lots", "bullying": True, "vandalism": None})
    assert result == initial_stats()


def test_numeric_strings_and_floats_accepted():
    result = reconcile(initial_stats(), {"violence": "+5", "bullying": 7.0, "vandalism": "3.6"})
    assert result["violence"] == 5
    assert result["bullying"] == 7
    assert result["vandalism"] == 4


def test_alias_and_canonical_are_summed():
    assert collect_deltas({"law_order": 10, "law_and_order": -4}) == {"law_order": 6}


def test_order_independent_with_clamping_and_aliases():
    base = initial_stats()
    pairs = [
        ("hardwork_professionalism", -50),
        ("hard_work_professionalism", 30),
        ("violence", 70),
        ("Violence", 60),
        ("made_up_key", 10),
    ]
    results = [
        reconcile(base, dict(perm)) for perm in itertools.permutations(pairs)
    ]
    assert all(r == results[0] for r in results)
    assert results[0]["hardwork_professionalism"] == 0
    assert results[0]["violence"] == 100


def test_values_stay_in_bounds_for_random_deltas():
    rng = random.Random(5)
    stats = initial_stats()
    for _ in range(500):
        change = {rng.choice(ALL_KEYS): rng.randint(-250, 250) for _ in range(4)}
        stats = reconcile(stats, change)
        assert all(0 <= v <= 100 for v in stats.values())
