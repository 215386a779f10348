# scopedfsm/core/handle.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Iterable, Optional, Union

from scopedfsm.core.disposables import (
    DeferredCall,
    DisposableRegistry,
    GuardedCallback,
    OneShotTimer,
    RepeatingTimer,
    Subscription,
)
from scopedfsm.core.errors import AlreadySetError, InvalidTransitionError, UseAfterTransitionError
from scopedfsm.core.paths import StatePath, decompose, join
from scopedfsm.interfaces.types import EventName, Listener, Milliseconds, StateName

if TYPE_CHECKING:
    from scopedfsm.core.state_machine import StateMachine
    from scopedfsm.interfaces.protocols import EventSource


class StateHandle:
    """
    The object handed to a state's entry logic. Everything registered through
    it lives exactly as long as its state level stays active, and it may
    request at most one transition.
    """

    def __init__(self, machine: "StateMachine", path: StatePath) -> None:
        """
        :param machine: The owning state machine.
        :param path: Full path of the level this handle belongs to.
        """
        self._machine = machine
        self._path = tuple(path)
        self._state = join(self._path)
        self._registry = DisposableRegistry(self._state)
        self._valid_transitions: Optional[FrozenSet[str]] = None
        self._used = False

    @property
    def machine(self) -> "StateMachine":
        return self._machine

    @property
    def context(self) -> Any:
        """The context object of the owning machine."""
        return self._machine.context

    @property
    def state(self) -> str:
        """Full dotted path of this handle's level."""
        return self._state

    @property
    def path(self) -> StatePath:
        return self._path

    @property
    def depth(self) -> int:
        return len(self._path) - 1

    @property
    def active(self) -> bool:
        """False once the machine has left this level."""
        return not self._registry.released

    @property
    def used(self) -> bool:
        """True once a transition has been requested through this handle."""
        return self._used

    @property
    def registry(self) -> DisposableRegistry:
        return self._registry

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def goto_state(self, name: StateName) -> None:
        """
        Request a transition to ``name``. Runs synchronously, unless called
        from entry logic, in which case the transition starts as soon as that
        entry logic returns.

        :param name: Dotted target path.
        :raises UseAfterTransitionError: If this handle already requested a
            transition or its level was exited.
        :raises InvalidTransitionError: If ``valid_transitions`` was set and
            does not include ``name``.
        :raises TransitionPendingError: If another transition is pending.
        :raises UnknownStateError: If the target cannot be entered.
        """
        target = decompose(name)
        if self._used:
            raise UseAfterTransitionError(self._state)
        if not self.active:
            raise UseAfterTransitionError(self._state, "its state level has already been exited")
        if self._valid_transitions is not None and join(target) not in self._valid_transitions:
            raise InvalidTransitionError(self._state, join(target))
        self._machine._check_transition_request(target)
        self._used = True
        self._machine._request_transition(target)

    def goto_state_on(self, source: "EventSource", event: EventName, name: StateName) -> Subscription:
        """
        Transition to ``name`` when ``source`` emits ``event``.

        :return: The subscription, cancellable early.
        """
        return self.on(source, event, lambda *args, **kwargs: self.goto_state(name))

    def goto_state_on_timeout(self, delay_ms: Milliseconds, name: StateName) -> OneShotTimer:
        """
        Transition to ``name`` after ``delay_ms`` unless the level is exited first.

        :return: The timer, cancellable early.
        """
        return self.timeout(delay_ms, self.goto_state, name)

    def valid_transitions(self, names: Union[StateName, Iterable[StateName]]) -> None:
        """
        Restrict ``goto_state`` on this handle to the given targets.

        :param names: A dotted name or an iterable of them.
        :raises AlreadySetError: If called a second time on this handle.
        """
        if self._valid_transitions is not None:
            raise AlreadySetError(self._state)
        if isinstance(names, str):
            names = [names]
        self._valid_transitions = frozenset(join(decompose(n)) for n in names)

    # -------------------------------------------------------------------------
    # Scoped registrations
    # -------------------------------------------------------------------------

    def on(self, source: "EventSource", event: EventName, callback: Listener) -> Subscription:
        """
        Subscribe ``callback`` to ``event`` on ``source`` for the lifetime of
        this level. The callback receives the event's arguments unchanged.
        """
        return self._registry.register(Subscription(source, event, callback))

    def immediate(self, callback: Callable[..., None], *args: Any) -> DeferredCall:
        """Run ``callback(*args)`` on the next scheduler turn."""
        return self._registry.register(DeferredCall(self._machine.scheduler, callback, args))

    def timeout(self, delay_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> OneShotTimer:
        """Run ``callback(*args)`` once after ``delay_ms``."""
        return self._registry.register(OneShotTimer(self._machine.scheduler, delay_ms, callback, args))

    def interval(self, interval_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> RepeatingTimer:
        """Run ``callback(*args)`` every ``interval_ms``."""
        return self._registry.register(RepeatingTimer(self._machine.scheduler, interval_ms, callback, args))

    def callback(self, fn: Callable[..., Any]) -> GuardedCallback:
        """
        Wrap ``fn`` so it stops doing anything once this level is exited.
        Useful for callbacks passed to APIs outside the handle's knowledge.
        """
        return self._registry.guard(fn)

    def _teardown(self) -> None:
        self._registry.release_all()

    def __repr__(self) -> str:
        status = "active" if self.active else "inactive"
        return f"<StateHandle {self._state} {status}>"
