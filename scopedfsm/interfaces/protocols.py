# scopedfsm/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Protocol, runtime_checkable

from scopedfsm.interfaces.types import ClassTag, EventName, InstanceID, Listener, Milliseconds


@runtime_checkable
class Cancellable(Protocol):
    """
    Anything that can be cancelled. ``cancel()`` must be idempotent: calling it
    on an already cancelled or already fired entry is a no-op.
    """

    def cancel(self) -> None:
        ...


@runtime_checkable
class EventSource(Protocol):
    """
    Named-event subscription contract required by ``StateHandle.on`` and
    ``StateHandle.goto_state_on``.

    Runtime Invariants:
    - ``remove_listener`` is called with the very object passed to ``on``,
      so sources may rely on identity to find the subscription.
    - Removing a listener that is not subscribed is a no-op.
    """

    def on(self, event: EventName, listener: Listener) -> Any:
        """Subscribe ``listener`` to ``event``."""
        ...

    def remove_listener(self, event: EventName, listener: Listener) -> Any:
        """Unsubscribe ``listener`` from ``event``."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """
    Cooperative scheduling contract. All callbacks run on the same single
    execution context as the state machine; delays are in milliseconds.
    """

    def call_soon(self, callback: Callable[..., None], *args: Any) -> Cancellable:
        """Run ``callback`` on a later turn of the scheduler."""
        ...

    def call_later(self, delay_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> Cancellable:
        """Run ``callback`` once after ``delay_ms``."""
        ...

    def call_every(self, interval_ms: Milliseconds, callback: Callable[..., None], *args: Any) -> Cancellable:
        """Run ``callback`` every ``interval_ms`` until cancelled."""
        ...


@runtime_checkable
class InstrumentationHook(Protocol):
    """
    Tracing probe notified of machine creation and of each transition.

    Error Handling:
    - Exceptions raised by hooks are caught and logged by the dispatcher;
      they never reach the state machine.
    - Hooks may implement any subset of these methods.
    """

    def on_create(self, class_tag: ClassTag, instance_id: InstanceID) -> None:
        ...

    def on_transition_start(self, class_tag: ClassTag, instance_id: InstanceID, old: str, new: str) -> None:
        ...

    def on_transition_end(self, class_tag: ClassTag, instance_id: InstanceID, old: str, new: str) -> None:
        ...
