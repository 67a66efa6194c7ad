import json
import random

import pytest

from life_sim.storage import SessionStore


class StubLLM:
    """LLM stand-in returning canned replies in order (the last one repeats).

    A reply that is an Exception instance is raised instead of returned.
    Every prompt is recorded in `prompts`.
    """

    def __init__(self, *replies):
        self.replies = list(replies) or [""]
        self.prompts: list[str] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def call_count(self) -> int:
        return len(self.prompts)


def narrator_reply(consequence="Something happened.", next_event="What now?", **stats_change) -> str:
    """Build a narrator JSON reply."""
    body = {"consequence": consequence, "nextEvent": next_event}
    if stats_change:
        body["stats_change"] = stats_change
    return json.dumps(body)


@pytest.fixture
def store(tmp_path):
    """A freshly opened session store under tmp_path."""
    s = SessionStore(tmp_path / "data").open()
    yield s
    s.close()


@pytest.fixture
def rng():
    return random.Random(1234)
