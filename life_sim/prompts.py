"""Handlebars prompt rendering for the narrator."""

from collections.abc import Callable
from typing import Any

import pybars

from life_sim.models import GameState
from life_sim.stats import ALL_KEYS, PROBLEM_KEYS, STAT_LABELS, VALUE_KEYS

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}

HISTORY_WINDOW = 10

RESPONSE_FORMAT = (
    '{"consequence": "<what happened because of the choice>", '
    '"nextEvent": "<the next situation, ending with a question>", '
    '"stats_change": {"<stat_key>": <signed integer>}}'
)

# User-supplied text goes through triple-stash so it is not HTML-escaped.
DEFAULT_NARRATOR_PROMPT = """\
You are the narrator of a life simulation game. The player lives one life \
from birth onwards, one event at a time, and every choice shapes who they \
become.

## Player
Age: {{player.age}}
Current location: {{world.location}}
Time of day: {{world.time}}

## Values (0-100)
{{#each value_stats}}
- {{label}} ({{key}}): {{value}}
{{/each}}

## Problems (0-100, the game ends at 100)
{{#each problem_stats}}
- {{label}} ({{key}}): {{value}}
{{/each}}

{{#if history}}
## Recent History
{{#last history 10}}
{{#if is_user}}> {{{content}}}{{else}}{{{content}}}{{/if}}

{{/last}}
{{/if}}
## Player Choice
{{{choice}}}

## Next Event Location
{{next_location}}

Describe the consequence of the player's choice, then set up the next event \
at the next event location, fitting the player's age. End the next event \
with a question about what the player does.

Return only a JSON object in this format:
{{{response_format}}}

Use only these stat keys: {{allowed_keys}}. Leave out stats that do not \
change. Keep deltas between -30 and 30.\
"""


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}} iterates over the last N items."""
    result = []
    for item in list(items or [])[-int(count):]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def _stat_rows(keys: tuple[str, ...], stats: dict[str, int]) -> list[dict[str, Any]]:
    return [
        {"key": key, "label": STAT_LABELS[key], "value": stats.get(key, 0)}
        for key in keys
    ]


def build_context(state: GameState, user_choice: str, next_location: str) -> dict[str, Any]:
    """Assemble template variables from the game state.

    Returns a dict suitable for passing to render_prompt().
    """
    stats = state.player_state.stats or {}
    history = [
        {
            "role": entry.role,
            "content": entry.content,
            "is_user": entry.role == "user",
            "is_narrator": entry.role == "narrator",
        }
        for entry in state.history[-HISTORY_WINDOW:]
    ]
    return {
        "player": {
            "age": state.player_state.age,
            "events_this_year": state.player_state.events_this_year,
        },
        "world": {
            "location": state.world_state.location or "unknown",
            "time": state.world_state.time,
        },
        "value_stats": _stat_rows(VALUE_KEYS, stats),
        "problem_stats": _stat_rows(PROBLEM_KEYS, stats),
        "history": history,
        "choice": user_choice,
        "next_location": next_location,
        "allowed_keys": ", ".join(ALL_KEYS),
        "response_format": RESPONSE_FORMAT,
    }
