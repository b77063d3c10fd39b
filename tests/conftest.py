# shared fixtures: in-memory database, fake completion provider, wired components

from typing import List, Optional

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from haven.db import init_db
from haven.errors import ProviderError
from haven.gateway import ResponseGateway
from haven.store import DraftStore, JournalStore, MessageLog


class FakeProvider:
    """Stands in for the relay/OpenAI; records every call."""

    def __init__(self, reply: str = "I hear you. Tell me more.", summary: str = "A calm, reflective day.",
                 fail: bool = False):
        self.reply = reply
        self.summary = summary
        self.fail = fail
        self.model = "fake-model"
        self.configured = True
        self.chat_calls: List[tuple] = []
        self.summary_calls: List[str] = []

    async def complete(self, history, system_prompt: str) -> str:
        self.chat_calls.append((list(history), system_prompt))
        if self.fail:
            raise ProviderError("provider down", status_code=500)
        return self.reply

    async def summarize(self, prompt: str) -> str:
        self.summary_calls.append(prompt)
        if self.fail:
            raise ProviderError("provider down", status_code=500)
        return self.summary


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    return FakeProvider(fail=True)


@pytest.fixture
def gateway(provider):
    return ResponseGateway(provider)


@pytest.fixture
def message_log(engine):
    return MessageLog(engine)


@pytest.fixture
def journal_store(engine):
    return JournalStore(engine)


@pytest.fixture
def draft_store(engine):
    return DraftStore(engine)


def answer_all(manager, mood: Optional[str] = "Calm"):
    """Fill the form the way a user would and stop on the last prompt."""
    if mood is not None:
        manager.set_response("emotionalState", mood)
    manager.set_response("dayReflection", "It was hard")
    manager.set_response("copingStrategies", ["Took deep breaths", "Went for a walk"])
    while not manager.is_last_step:
        manager.next()
