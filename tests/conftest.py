"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional

import pytest

from licence_assistant.conversation.state_machine import DialogueStateMachine
from licence_assistant.memory.persistence import InMemoryBackend, MemoryBackend
from licence_assistant.memory.store import MemoryStore
from licence_assistant.schemas.dialogue_schema import Appointment, TurnResponse
from licence_assistant.schemas.memory_schema import MemorySnapshot
from licence_assistant.tools.services import ServiceId, get_service

# Friday morning.
FIXED_NOW = datetime(2025, 8, 1, 10, 0)
PHONE = "9876543210"


class FailingBackend(MemoryBackend):
    """Backend whose storage is unreachable."""

    def __init__(self, fail_load: bool = False) -> None:
        self.fail_load = fail_load
        self.save_attempts = 0

    def load(self) -> Optional[MemorySnapshot]:
        if self.fail_load:
            raise OSError("storage unreachable")
        return None

    def save(self, snapshot: MemorySnapshot) -> None:
        self.save_attempts += 1
        raise OSError("storage unreachable")


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def memory(backend, clock):
    return MemoryStore(backend=backend, clock=clock)


@pytest.fixture
def make_engine(memory, clock):
    def _make(contact: Optional[str] = None) -> DialogueStateMachine:
        return DialogueStateMachine(memory=memory, contact=contact, clock=clock)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


def make_appointment(
    service: ServiceId = ServiceId.NEW_LICENCE,
    name: str = "Priya Sharma",
    date: str = "Saturday, August 2",
    time: str = "2:00 PM",
    contact: str = PHONE,
) -> Appointment:
    """Helper to create an Appointment with the catalog's documents."""
    return Appointment(
        service=service,
        name=name,
        date=date,
        time=time,
        contact=contact,
        documents=get_service(service).documents,
    )


def run_turns(engine: DialogueStateMachine, utterances: list[str]) -> list[TurnResponse]:
    """Feed utterances to the engine in order and collect the replies."""
    return [engine.process_input(text) for text in utterances]


BOOKING_TURNS = [
    "I want to book a new licence",
    "Priya Sharma",
    "tomorrow",
    "2 PM",
    PHONE,
    "yes",
]
