# scopedfsm/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import uuid
from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Tuple

from scopedfsm.core.config import DEFAULT_CONFIG, MachineConfig
from scopedfsm.core.definition import MachineDefinition
from scopedfsm.core.errors import (
    MalformedStateNameError,
    MissingAllStateHandlerError,
    TransitionLoopError,
    TransitionPendingError,
    UnknownStateError,
)
from scopedfsm.core.handle import StateHandle
from scopedfsm.core.hooks import HookManager
from scopedfsm.core.paths import StatePath, common_ancestor_depth, decompose, is_prefix, join
from scopedfsm.interfaces.protocols import Cancellable, InstrumentationHook, Scheduler
from scopedfsm.interfaces.types import EntryLogic, EventName, Listener, StateName
from scopedfsm.runtime.events import EventEmitter
from scopedfsm.runtime.scheduler import AsyncioScheduler


class StateMachine:
    """
    Drives one entity through the states of a MachineDefinition.

    The machine keeps one StateHandle per component of its current path.
    Leaving a level tears its handle down, cancelling every listener, timer
    and guarded callback registered through it. Settled state changes are
    announced to ``on("change", ...)`` listeners on a later scheduler turn.
    """

    def __init__(
        self,
        definition: MachineDefinition,
        initial_state: StateName,
        context: Any = None,
        scheduler: Optional[Scheduler] = None,
        hooks: Optional[List[InstrumentationHook]] = None,
        all_state_events: Iterable[EventName] = (),
        config: Optional[MachineConfig] = None,
    ) -> None:
        """
        Build the machine and enter ``initial_state`` synchronously.

        :param definition: Entry-logic table for this kind of machine.
        :param initial_state: Single-component name of the first state.
        :param context: Object passed to every entry callable; a fresh dict
            when omitted.
        :param scheduler: Cooperative scheduler for timers and notifications;
            an AsyncioScheduler bound to the running loop when omitted.
        :param hooks: Instrumentation hooks for this machine only.
        :param all_state_events: Extra all-state events on top of the
            definition's.
        :param config: Tunables; see MachineConfig.
        """
        self._definition = definition
        self._config = config or DEFAULT_CONFIG
        self._logger = logging.getLogger(self._config.logger_name)
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._context = {} if context is None else context
        self._hooks = HookManager(hooks)
        self._instance_id = uuid.uuid4().hex

        self._all_state_events: List[EventName] = list(definition.all_state_events)
        for event in all_state_events:
            if not event or not isinstance(event, str):
                raise ValueError("All-state event names must be non-empty strings")
            if event not in self._all_state_events:
                self._all_state_events.append(event)

        self._current_path: StatePath = ()
        self._handles: List[StateHandle] = []
        self._pending: Optional[StatePath] = None
        self._transitioning = False
        self._notifications: Deque[str] = deque()
        self._flush_handle: Optional[Cancellable] = None
        self._emitter = EventEmitter()

        initial = decompose(initial_state)
        if len(initial) != 1:
            raise MalformedStateNameError(initial_state, "the initial state must be a top-level state")

        self._hooks.execute_on_create(self.class_tag, self._instance_id)
        self._check_transition_request(initial)
        self._request_transition(initial)

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def class_tag(self) -> str:
        return self._definition.name

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def definition(self) -> MachineDefinition:
        return self._definition

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def context(self) -> Any:
        return self._context

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def hooks(self) -> HookManager:
        return self._hooks

    @property
    def all_state_events(self) -> Tuple[EventName, ...]:
        return tuple(self._all_state_events)

    @property
    def path(self) -> StatePath:
        return self._current_path

    @property
    def state(self) -> str:
        return join(self._current_path)

    @property
    def handles(self) -> Tuple[StateHandle, ...]:
        """Live handles, root first."""
        return tuple(self._handles)

    @property
    def in_transition(self) -> bool:
        return self._transitioning

    def get_state(self) -> str:
        """Return the current full path as a dotted string."""
        return join(self._current_path)

    def is_in_state(self, name: StateName) -> bool:
        """
        True if ``name`` is the current state or one of its ancestors.

        :param name: Dotted path to test.
        """
        return is_prefix(decompose(name), self._current_path)

    # -------------------------------------------------------------------------
    # Notification stream
    # -------------------------------------------------------------------------

    def on(self, event: EventName, listener: Listener) -> None:
        """
        Subscribe to the machine's notifications. Listeners of
        ``config.notify_event`` receive the settled state's dotted path.
        Because the machine is itself an event source, another machine's
        handle can use it with ``goto_state_on``.
        """
        self._emitter.on(event, listener)

    def remove_listener(self, event: EventName, listener: Listener) -> None:
        self._emitter.remove_listener(event, listener)

    def _enqueue_notification(self, state: str) -> None:
        self._notifications.append(state)
        if self._flush_handle is None:
            self._flush_handle = self._scheduler.call_soon(self._flush_notifications)

    def _flush_notifications(self) -> None:
        self._flush_handle = None
        batch = list(self._notifications)
        self._notifications.clear()
        for state in batch:
            self._emitter.emit(self._config.notify_event, state)

    # -------------------------------------------------------------------------
    # Transition algorithm
    # -------------------------------------------------------------------------

    def _check_transition_request(self, target: StatePath) -> None:
        """Raise if a transition to ``target`` cannot be accepted right now."""
        if self._pending is not None:
            raise TransitionPendingError(join(self._pending), join(target))
        self._resolve_entries(target)

    def _request_transition(self, target: StatePath) -> None:
        self._pending = target
        if self._transitioning:
            # Requested from entry logic; the running loop picks it up.
            return
        self._run_transitions()

    def _run_transitions(self) -> None:
        self._transitioning = True
        chain: List[str] = []
        try:
            while self._pending is not None:
                target, self._pending = self._pending, None
                chain.append(join(target))
                if len(chain) > self._config.max_chained_transitions:
                    raise TransitionLoopError(self._config.max_chained_transitions, chain)
                self._transition(target)
        finally:
            self._transitioning = False
            self._pending = None
        self._enqueue_notification(self.get_state())

    def _transition(self, target: StatePath) -> None:
        entries = self._resolve_entries(target)
        old = self._current_path
        old_name, new_name = join(old), join(target)

        keep = common_ancestor_depth(old, target)
        if keep == len(old) == len(target) and keep > 0:
            # Same state requested: re-enter the leaf level.
            keep -= 1

        self._hooks.execute_on_transition_start(self.class_tag, self._instance_id, old_name, new_name)
        self._logger.debug(
            "%s[%s] transition %r -> %r (keeping %d level(s))",
            self.class_tag,
            self._instance_id,
            old_name,
            new_name,
            keep,
        )

        while len(self._handles) > keep:
            handle = self._handles.pop()
            self._current_path = handle.path[:-1]
            self._logger.debug("%s[%s] exit %r", self.class_tag, self._instance_id, handle.state)
            handle._teardown()

        for depth in range(keep, len(target)):
            handle = StateHandle(self, target[: depth + 1])
            self._handles.append(handle)
            self._current_path = handle.path
            entries[depth](handle, self._context)
            if self._pending is not None:
                self._logger.debug(
                    "%s[%s] entry of %r redirected to %r",
                    self.class_tag,
                    self._instance_id,
                    handle.state,
                    join(self._pending),
                )
                self._hooks.execute_on_transition_end(self.class_tag, self._instance_id, old_name, self.get_state())
                return

        self._check_all_state_events()
        self._hooks.execute_on_transition_end(self.class_tag, self._instance_id, old_name, new_name)

    def _resolve_entries(self, target: StatePath) -> List[EntryLogic]:
        entries = []
        for depth in range(len(target)):
            prefix = target[: depth + 1]
            entry = self._definition.entry_for(prefix)
            if entry is None:
                raise UnknownStateError(join(prefix), self.class_tag)
            entries.append(entry)
        return entries

    def _check_all_state_events(self) -> None:
        for event in self._all_state_events:
            if not any(event in handle.registry.event_names() for handle in self._handles):
                raise MissingAllStateHandlerError(event, self.get_state())

    def __repr__(self) -> str:
        return f"<StateMachine {self.class_tag}[{self._instance_id}] state={self.get_state()!r}>"
