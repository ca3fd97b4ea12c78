"""Shared fixtures: fixed calendar day, in-memory store, engine factory."""
from datetime import date

import pytest

from tripflow.agent.state_machine import DialogueEngine
from tripflow.core.session import InMemoryStateStore

TODAY = date(2025, 1, 10)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def make_engine(store):
    """Engine factory; keyword arguments override the defaults."""
    def factory(**kwargs) -> DialogueEngine:
        kwargs.setdefault("today_provider", lambda: TODAY)
        return DialogueEngine(kwargs.pop("store", store), **kwargs)

    return factory


@pytest.fixture
def engine(make_engine) -> DialogueEngine:
    return make_engine()


@pytest.fixture
def answer(engine):
    """Answer the expected slot with each value in turn; returns the last result."""
    def run(conversation_id: str, *values: str):
        result = None
        for value in values:
            result = engine.process_turn(conversation_id, None, value)
        return result

    return run
