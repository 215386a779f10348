# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, List, Tuple

import pytest

from scopedfsm.core.definition import MachineDefinition
from scopedfsm.core.state_machine import StateMachine
from scopedfsm.runtime.events import EventEmitter
from scopedfsm.runtime.scheduler import ManualScheduler


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "stress: mark test as a stress test")
    config.addinivalue_line("markers", "property: mark test as a property-based test")


class RecordingHook:
    """Instrumentation hook that remembers every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []

    def on_create(self, class_tag, instance_id):
        self.calls.append(("create", class_tag, instance_id))

    def on_transition_start(self, class_tag, instance_id, old, new):
        self.calls.append(("start", class_tag, instance_id, old, new))

    def on_transition_end(self, class_tag, instance_id, old, new):
        self.calls.append(("end", class_tag, instance_id, old, new))

    def named(self, kind: str) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def scheduler():
    """A virtual-time scheduler; nothing runs until the test drives it."""
    return ManualScheduler()


@pytest.fixture
def emitter():
    """A plain in-memory event source."""
    return EventEmitter()


@pytest.fixture
def recording_hook():
    return RecordingHook()


@pytest.fixture
def definition():
    """An empty definition tests fill with their own states."""
    return MachineDefinition("TestMachine")


@pytest.fixture
def machine_factory(scheduler):
    """Returns a factory building machines on the shared manual scheduler."""

    def _factory(definition, initial="idle", **kwargs):
        kwargs.setdefault("scheduler", scheduler)
        return StateMachine(definition, initial, **kwargs)

    return _factory


@pytest.fixture
def change_log():
    """Returns a helper subscribing a list to a machine's change notifications."""

    def _attach(machine):
        seen: List[str] = []
        machine.on("change", seen.append)
        return seen

    return _attach
