"""Narrative gateway: asks the language model for the next story beat.

The model is untrusted and fallible. generate() never raises: transport
errors, timeouts, template errors and unparsable or incomplete JSON all
degrade to FALLBACK_RESULT so the turn still completes and is persisted.
"""

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from life_sim.llm import LLM
from life_sim.models import GameState, NarrativeResult
from life_sim.prompts import DEFAULT_NARRATOR_PROMPT, build_context, render_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

FALLBACK_CONSEQUENCE = (
    "You made your choice, but the fog of the future hides its consequences "
    "(narrator unavailable)."
)
FALLBACK_NEXT_EVENT = "Life goes on. What will you do next?"

FALLBACK_RESULT = NarrativeResult(
    consequence=FALLBACK_CONSEQUENCE,
    next_event=FALLBACK_NEXT_EVENT,
)


class NarratorOutputError(ValueError):
    """Raised internally when the model reply is not a usable narrative."""


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned


def parse_narrator_output(text: str) -> NarrativeResult:
    """Parse the model reply into a NarrativeResult.

    A stats_change that is not a JSON object is dropped; a missing or empty
    consequence / nextEvent makes the whole reply unusable.
    """
    try:
        data: Any = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise NarratorOutputError(f"Narrator returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise NarratorOutputError(
            f"Narrator reply must be a JSON object, got {type(data).__name__}"
        )

    stats_change = data.get("stats_change")
    if stats_change is not None and not isinstance(stats_change, dict):
        logger.warning("Dropping stats_change of type %s", type(stats_change).__name__)
        data = {**data, "stats_change": None}

    try:
        return NarrativeResult.model_validate(data)
    except ValidationError as e:
        raise NarratorOutputError(f"Narrator reply is incomplete: {e}") from e


class Narrator:
    """Wraps an LLM callable with prompt rendering, parsing, timeout and fallback."""

    def __init__(
        self,
        llm: LLM,
        timeout: float = DEFAULT_TIMEOUT,
        template: str = DEFAULT_NARRATOR_PROMPT,
    ) -> None:
        self._llm = llm
        self._timeout = timeout
        self._template = template

    async def _generate(self, state: GameState, user_choice: str, next_location: str) -> NarrativeResult:
        prompt = render_prompt(self._template, build_context(state, user_choice, next_location))
        text = await asyncio.wait_for(self._llm("narrator", prompt), timeout=self._timeout)
        return parse_narrator_output(text)

    async def generate(self, state: GameState, user_choice: str, next_location: str) -> NarrativeResult:
        """Return the next beat, or FALLBACK_RESULT if anything goes wrong."""
        try:
            return await self._generate(state, user_choice, next_location)
        except asyncio.TimeoutError:
            logger.warning("Narrator timed out after %ss, using fallback", self._timeout)
        except Exception as e:
            logger.warning("Narrator failed, using fallback: %s", e)
        return FALLBACK_RESULT.model_copy()
