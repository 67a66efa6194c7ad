"""Tests for the narrative gateway: parsing, fallback and timeout."""

import asyncio
import logging

import pytest

from conftest import StubLLM, narrator_reply
from life_sim.llm import LLMError
from life_sim.models import GameState
from life_sim.narrator import (
    FALLBACK_CONSEQUENCE,
    FALLBACK_NEXT_EVENT,
    Narrator,
    NarratorOutputError,
    parse_narrator_output,
)


# ── parse_narrator_output ───────────────────────────────────


def test_parse_valid_reply():
    result = parse_narrator_output(narrator_reply("You cried.", "Mum comes in.", bullying=5))
    assert result.consequence == "You cried."
    assert result.next_event == "Mum comes in."
    assert result.stats_change == {"bullying": 5}


def test_parse_strips_markdown_fences():
    text = "```json\n" + narrator_reply("a", "b") + "\n```"
    assert parse_narrator_output(text).consequence == "a"


def test_parse_invalid_json():
    with pytest.raises(NarratorOutputError, match="invalid JSON"):
        parse_narrator_output("Once upon a time")


def test_parse_non_object():
    with pytest.raises(NarratorOutputError, match="JSON object"):
        parse_narrator_output("[1, 2]")


def test_parse_missing_fields():
    with pytest.raises(NarratorOutputError, match="incomplete"):
        parse_narrator_output('{"consequence": "only half"}')


def test_parse_drops_non_object_stats_change():
    result = parse_narrator_output('{"consequence": "a", "nextEvent": "b", "stats_change": [1]}')
    assert result.stats_change is None


# ── Narrator.generate ───────────────────────────────────────


async def test_generate_returns_model_beat():
    llm = StubLLM(narrator_reply("You laughed.", "A dog barks.", violence=-1))
    narrator = Narrator(llm)
    result = await narrator.generate(GameState(), "Laugh", "Home with parents")
    assert result.consequence == "You laughed."
    assert result.stats_change == {"violence": -1}
    assert llm.call_count == 1
    assert "Laugh" in llm.prompts[0]
    assert "Home with parents" in llm.prompts[0]


@pytest.mark.parametrize("reply", [
    LLMError("Cannot connect"),
    RuntimeError("boom"),
    "not json at all",
    '{"nextEvent": "missing consequence"}',
])
async def test_generate_falls_back(reply, caplog):
    narrator = Narrator(StubLLM(reply))
    with caplog.at_level(logging.WARNING, logger="life_sim.narrator"):
        result = await narrator.generate(GameState(), "Cry", "Home")
    assert result.consequence == FALLBACK_CONSEQUENCE
    assert result.next_event == FALLBACK_NEXT_EVENT
    assert result.stats_change is None
    assert "fallback" in caplog.text


async def test_generate_times_out_to_fallback():
    class SlowLLM:
        async def __call__(self, stage: str, prompt: str) -> str:
            await asyncio.sleep(5)
            return narrator_reply()

    narrator = Narrator(SlowLLM(), timeout=0.01)
    result = await narrator.generate(GameState(), "Wait", "Home")
    assert result.consequence == FALLBACK_CONSEQUENCE


async def test_generate_bad_template_falls_back():
    llm = StubLLM(narrator_reply())
    narrator = Narrator(llm, template="{{> missing_partial}}")
    result = await narrator.generate(GameState(), "x", "Home")
    assert result.next_event == FALLBACK_NEXT_EVENT
    assert llm.call_count == 0
