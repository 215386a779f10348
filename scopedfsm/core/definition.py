# scopedfsm/core/definition.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from scopedfsm.core.paths import decompose, join, prefixes
from scopedfsm.interfaces.types import EntryLogic, EventName, StateName


class MachineDefinition:
    """
    The entry-logic table of one kind of state machine: a mapping from full
    dotted state path to the callable run when that level is entered, plus
    the all-state events every state of the machine must handle.

    Entry callables receive ``(handle, context)``. The table is built once,
    when the definition is written, and looked up by exact path afterwards.

    Example:
        connection = MachineDefinition("Connection", all_state_events=["abort"])

        @connection.state("stopped")
        def stopped(st, ctx):
            st.goto_state_on(ctx["socket"], "open", "connected")
            st.goto_state_on(ctx["socket"], "abort", "stopped")
    """

    def __init__(self, name: str, all_state_events: Iterable[EventName] = ()) -> None:
        """
        :param name: Class tag reported to instrumentation hooks and logs.
        :param all_state_events: Event names every state must subscribe to.
        """
        if not name or not isinstance(name, str):
            raise ValueError("Definition name must be a non-empty string")
        self._name = name
        self._entries: Dict[Tuple[str, ...], EntryLogic] = {}
        self._all_state_events: List[EventName] = []
        for event in all_state_events:
            self.all_state_event(event)

    @property
    def name(self) -> str:
        return self._name

    @property
    def all_state_events(self) -> Tuple[EventName, ...]:
        return tuple(self._all_state_events)

    @property
    def states(self) -> List[StateName]:
        """Dotted names of every state with registered entry logic."""
        return [join(path) for path in self._entries]

    def add_state(self, name: StateName, entry: EntryLogic) -> None:
        """
        Register the entry logic for a state path.

        :param name: Full dotted path, e.g. ``"connected.busy"``.
        :param entry: Callable invoked with ``(handle, context)`` on entry.
        :raises MalformedStateNameError: If the path is malformed.
        :raises ValueError: If the path already has entry logic or the entry
            is not callable.
        """
        path = decompose(name)
        if not callable(entry):
            raise ValueError(f"Entry logic for state '{name}' must be callable")
        if path in self._entries:
            raise ValueError(f"State '{name}' is already defined in {self._name}")
        self._entries[path] = entry

    def state(self, name: StateName) -> Callable[[EntryLogic], EntryLogic]:
        """Decorator form of ``add_state``."""

        def decorator(entry: EntryLogic) -> EntryLogic:
            self.add_state(name, entry)
            return entry

        return decorator

    def all_state_event(self, event: EventName) -> None:
        """
        Declare that every state must keep a subscription to ``event``.

        :param event: Event name.
        """
        if not event or not isinstance(event, str):
            raise ValueError("All-state event names must be non-empty strings")
        if event not in self._all_state_events:
            self._all_state_events.append(event)

    def entry_for(self, path: Tuple[str, ...]) -> Optional[EntryLogic]:
        """Return the entry logic for an exact path, or None."""
        return self._entries.get(tuple(path))

    def validate(self) -> List[str]:
        """
        Report sub-states whose ancestors have no entry logic; such states can
        never be entered.

        :return: A list of human readable problems, empty if none.
        """
        errors = []
        for path in self._entries:
            for ancestor in prefixes(path)[:-1]:
                if decompose(ancestor) not in self._entries:
                    errors.append(f"State '{join(path)}' has no entry logic for ancestor '{ancestor}'")
        return errors

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return tuple(name.split(".")) in self._entries

    def __repr__(self) -> str:
        return f"MachineDefinition({self._name!r}, states={self.states!r})"
