# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from unittest.mock import MagicMock

import pytest

from scopedfsm import MachineDefinition, StateMachine
from scopedfsm.runtime.events import EventEmitter


@pytest.fixture
def connection():
    """A connection that gives up if the socket does not open within 5s."""
    definition = MachineDefinition("Connection")

    @definition.state("stopped")
    def stopped(st, ctx):
        st.goto_state_on(ctx["socket"], "start", "connecting")

    @definition.state("connecting")
    def connecting(st, ctx):
        ctx["attempts"] += 1
        st.goto_state_on_timeout(5000, "error")
        st.goto_state_on(ctx["socket"], "open", "connected")

    @definition.state("connected")
    def connected(st, ctx):
        st.goto_state_on(ctx["socket"], "close", "stopped")

    @definition.state("error")
    def error(st, ctx):
        st.goto_state_on(ctx["socket"], "start", "connecting")

    return definition


@pytest.fixture
def socket():
    return EventEmitter()


def test_connection_succeeds_and_timer_is_dropped(connection, socket, scheduler, change_log):
    machine = StateMachine(connection, "stopped", {"socket": socket, "attempts": 0}, scheduler=scheduler)
    changes = change_log(machine)

    socket.emit("start")
    assert machine.state == "connecting"
    scheduler.advance(4999)
    assert machine.state == "connecting"

    socket.emit("open")
    assert machine.state == "connected"
    scheduler.run_ready()
    assert scheduler.pending == 0

    scheduler.advance(10000)
    assert machine.state == "connected"
    assert changes == ["stopped", "connecting", "connected"]


def test_connection_times_out(connection, socket, scheduler):
    machine = StateMachine(connection, "stopped", {"socket": socket, "attempts": 0}, scheduler=scheduler)
    socket.emit("start")
    scheduler.advance(5000)
    assert machine.state == "error"

    # The old subscription is gone: opening now changes nothing.
    socket.emit("open")
    assert machine.state == "error"
    assert socket.listener_count("open") == 0

    socket.emit("start")
    socket.emit("open")
    assert machine.state == "connected"
    assert machine.context["attempts"] == 2


def test_listeners_on_shared_source_are_scoped(connection, socket, scheduler):
    StateMachine(connection, "stopped", {"socket": socket, "attempts": 0}, scheduler=scheduler)
    assert socket.listener_count("start") == 1
    socket.emit("start")
    assert socket.listener_count("start") == 0
    assert socket.listener_count("open") == 1
    socket.emit("open")
    assert socket.listener_count("open") == 0
    assert socket.listener_count("close") == 1


def test_machines_chained_through_notifications(scheduler):
    switch = EventEmitter()
    lamp = MachineDefinition("Lamp")
    lamp.add_state("off", lambda st, ctx: st.goto_state_on(switch, "flip", "on"))
    lamp.add_state("on", lambda st, ctx: st.goto_state_on(switch, "flip", "off"))

    def waiting(st, ctx):
        st.on(ctx["lamp"], "change", lambda state: state == "on" and st.goto_state("lit"))

    follower = MachineDefinition("Follower")
    follower.add_state("waiting", waiting)
    follower.add_state("lit", lambda st, ctx: st.goto_state_on(ctx["lamp"], "change", "waiting"))

    leader = StateMachine(lamp, "off", scheduler=scheduler)
    watcher = StateMachine(follower, "waiting", {"lamp": leader}, scheduler=scheduler)

    scheduler.run_ready()
    assert watcher.state == "waiting"

    switch.emit("flip")
    assert leader.state == "on"
    assert watcher.state == "waiting"
    scheduler.run_ready()
    assert watcher.state == "lit"

    switch.emit("flip")
    scheduler.run_ready()
    assert leader.state == "off"
    assert watcher.state == "waiting"


def test_sub_state_change_keeps_parent(scheduler):
    pings = EventEmitter()
    parent_pings = MagicMock()
    entered = []
    handles = {}

    definition = MachineDefinition("Nested")

    def enter(name, subscribe=False):
        def entry(st, ctx):
            entered.append(name)
            handles[name] = st
            if subscribe:
                st.on(pings, "ping", parent_pings)
            else:
                st.on(pings, "ping", MagicMock())

        return entry

    definition.add_state("A", enter("A", subscribe=True))
    definition.add_state("A.B", enter("A.B"))
    definition.add_state("A.C", enter("A.C"))

    machine = StateMachine(definition, "A", scheduler=scheduler)
    handles["A"].goto_state("A.B")
    assert machine.state == "A.B"
    assert pings.listener_count("ping") == 2

    handles["A.B"].goto_state("A.C")
    assert machine.state == "A.C"
    assert entered == ["A", "A.B", "A.C"]
    assert handles["A"].active
    assert not handles["A.B"].active
    assert pings.listener_count("ping") == 2

    pings.emit("ping")
    parent_pings.assert_called_once_with()


@pytest.mark.asyncio
async def test_asyncio_end_to_end():
    definition = MachineDefinition("Poller")

    @definition.state("waiting")
    def waiting(st, ctx):
        st.interval(2, lambda: ctx.__setitem__("ticks", ctx["ticks"] + 1))
        st.goto_state_on_timeout(20, "done")

    @definition.state("done")
    def done(st, ctx):
        st.immediate(ctx.__setitem__, "finished", True)

    machine = StateMachine(definition, "waiting", {"ticks": 0})
    changes = []
    machine.on("change", changes.append)

    await asyncio.sleep(0.1)
    assert machine.state == "done"
    assert machine.context["finished"] is True
    ticks = machine.context["ticks"]
    assert ticks >= 1
    assert changes == ["waiting", "done"]

    await asyncio.sleep(0.02)
    assert machine.context["ticks"] == ticks
