"""Shared fixtures: a scripted LLM client and a pipeline over a temp store."""

import json

import pytest

from streamcentives.llm.client import LLMResponse
from streamcentives.moderation.classifier import ModerationClassifier
from streamcentives.moderation.pipeline import ModerationPipeline
from streamcentives.moderation.store import ModerationStore


class FakeLLMClient:
    """Stands in for LLMClient: returns queued replies or raises queued errors."""

    def __init__(self, replies=None, configured=True):
        self.replies = list(replies or [])
        self.prompts = []
        self.configured = configured
        self.model = "fake-model"

    def push(self, reply):
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        self.replies.append(reply)

    def complete(self, prompt, system_prompt=None, max_tokens=1000, temperature=0.0):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=self.model, input_tokens=10, output_tokens=20, total_tokens=30)


@pytest.fixture
def store(tmp_path):
    return ModerationStore(tmp_path / "moderation")


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def pipeline(llm, store):
    return ModerationPipeline(ModerationClassifier(llm), store)
