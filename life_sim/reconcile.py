"""Merge language-model stat deltas into the player's bounded stats.

Model output is untrusted: keys go through the alias table and unknown keys
are dropped with a warning; deltas must be numbers (ints, finite floats, or
numeric strings such as "+5"). Deltas that resolve to the same canonical key
are summed before clamping, so the result never depends on the order of
`stats_change`.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from life_sim.stats import ALL_KEYS, clamp, resolve_key

logger = logging.getLogger(__name__)


def coerce_number(value: Any) -> int | None:
    """Integer value of an int, finite float or numeric string; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            try:
                value = float(value.strip())
            except ValueError:
                return None
    if isinstance(value, float):
        return round(value) if math.isfinite(value) else None
    return None


def collect_deltas(stats_change: Mapping[str, Any]) -> dict[str, int]:
    """Resolve keys and sum deltas per canonical key, skipping anything invalid."""
    totals: dict[str, int] = {}
    for raw_key, raw_delta in stats_change.items():
        key = resolve_key(raw_key)
        if key is None:
            logger.warning("Ignoring unknown stat key %r", raw_key)
            continue
        delta = coerce_number(raw_delta)
        if delta is None:
            logger.warning("Ignoring non-numeric delta %r for stat %r", raw_delta, raw_key)
            continue
        if raw_key != key:
            logger.debug("Stat key %r mapped to %r", raw_key, key)
        totals[key] = totals.get(key, 0) + delta
    return totals


def reconcile(
    stats: Mapping[str, int], stats_change: Mapping[str, Any] | None
) -> dict[str, int]:
    """Return new stats with the deltas applied and every value clamped to [0, 100].

    Only canonical keys survive; a stat missing from `stats` counts as 0.
    """
    updated = {key: clamp(int(stats[key])) for key in ALL_KEYS if key in stats}
    if not stats_change:
        return updated
    for key, delta in collect_deltas(stats_change).items():
        updated[key] = clamp(updated.get(key, 0) + delta)
    return updated
