# tests/integration/test_invariants.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from scopedfsm import MachineDefinition, StateMachine
from scopedfsm.runtime.events import EventEmitter
from scopedfsm.runtime.scheduler import ManualScheduler

STATES = ["a", "a.x", "a.y", "a.y.deep", "b", "b.z"]


def _build(source):
    def entry(handle, ctx):
        handle.on(source, "tick", lambda: None)
        handle.timeout(100, lambda: None)

    definition = MachineDefinition("Tree")
    for name in STATES:
        definition.add_state(name, entry)
    return definition


@pytest.mark.property
@settings(max_examples=50, deadline=None)
@given(targets=st.lists(st.sampled_from(STATES), max_size=25))
def test_handles_follow_path(targets):
    source = EventEmitter()
    scheduler = ManualScheduler()
    machine = StateMachine(_build(source), "a", scheduler=scheduler)
    changes = []
    machine.on("change", changes.append)
    seen = []

    for target in targets:
        seen.extend(machine.handles)
        handle = next((h for h in reversed(machine.handles) if not h.used), None)
        if handle is None:
            break
        handle.goto_state(target)

        assert machine.state == target
        assert len(machine.handles) == len(machine.path)
        for depth, live in enumerate(machine.handles):
            assert live.path == machine.path[: depth + 1]
            assert live.active
        for old in seen:
            assert old.active == (old in machine.handles)

        # One listener and one timer per live level, nothing leaked.
        assert source.listener_count("tick") == len(machine.path)
        scheduler.run_ready()
        assert scheduler.pending == len(machine.path)

    scheduler.run_ready()
    assert changes[-1] == machine.state


@pytest.mark.stress
def test_long_ping_pong_leaks_nothing():
    definition = MachineDefinition("PingPong")
    source = EventEmitter()
    scheduler = ManualScheduler()

    def side(other):
        def entry(handle, ctx):
            ctx["entries"] += 1
            handle.on(source, "noise", lambda: None)
            handle.interval(3, lambda: None)
            handle.goto_state_on_timeout(10, other)

        return entry

    definition.add_state("ping", side("pong"))
    definition.add_state("pong", side("ping"))
    machine = StateMachine(definition, "ping", {"entries": 0}, scheduler=scheduler)

    scheduler.advance(10 * 1000)
    assert machine.context["entries"] == 1001
    assert source.listener_count("noise") == 1
    assert scheduler.pending == 2
