"""Life-path narrative simulation core.

The turn pipeline (engine.py) wires together the leaf modules:

    stats       tracked attributes, alias table, key resolution
    location    age band → location label
    turn        age / events-per-year counter
    reconcile   merge model stat deltas into bounded stats
    game_over   problem-stat threshold check
    storage     JSON file session store
    narrator    language-model gateway with fallback
"""
