# tests/unit/test_definition.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from scopedfsm.core.definition import MachineDefinition
from scopedfsm.core.errors import MalformedStateNameError


def test_decorator_registers_entry():
    definition = MachineDefinition("Door")

    @definition.state("closed")
    def closed(st, ctx):
        pass

    assert definition.entry_for(("closed",)) is closed
    assert definition.entry_for(("open",)) is None
    assert "closed" in definition
    assert "open" not in definition
    assert 42 not in definition
    assert definition.states == ["closed"]
    assert "Door" in repr(definition)


def test_nested_states_are_keyed_by_full_path():
    definition = MachineDefinition("Conn")
    parent = lambda st, ctx: None  # noqa: E731
    child = lambda st, ctx: None  # noqa: E731
    definition.add_state("connected", parent)
    definition.add_state("connected.busy", child)
    assert definition.entry_for(("connected", "busy")) is child
    assert definition.entry_for(["connected"]) is parent


def test_duplicate_state_rejected():
    definition = MachineDefinition("Door")
    definition.add_state("closed", lambda st, ctx: None)
    with pytest.raises(ValueError):
        definition.add_state("closed", lambda st, ctx: None)


def test_malformed_state_name_rejected():
    definition = MachineDefinition("Door")
    with pytest.raises(MalformedStateNameError):
        definition.add_state("a..b", lambda st, ctx: None)


def test_entry_must_be_callable():
    definition = MachineDefinition("Door")
    with pytest.raises(ValueError):
        definition.add_state("closed", "not callable")


@pytest.mark.parametrize("name", ["", None, 3])
def test_definition_name_required(name):
    with pytest.raises(ValueError):
        MachineDefinition(name)


def test_all_state_events_are_deduplicated():
    definition = MachineDefinition("Door", all_state_events=["abort", "abort"])
    definition.all_state_event("reset")
    definition.all_state_event("abort")
    assert definition.all_state_events == ("abort", "reset")
    with pytest.raises(ValueError):
        definition.all_state_event("")


def test_validate_reports_orphan_substates():
    definition = MachineDefinition("Conn")
    definition.add_state("connected", lambda st, ctx: None)
    definition.add_state("connected.busy", lambda st, ctx: None)
    assert definition.validate() == []

    definition.add_state("lost.retrying.slow", lambda st, ctx: None)
    errors = definition.validate()
    assert len(errors) == 2
    assert any("'lost'" in e for e in errors)
    assert any("'lost.retrying'" in e for e in errors)
