# scopedfsm/core/disposables.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional, Set

from scopedfsm.core.errors import UseAfterTransitionError
from scopedfsm.interfaces.types import EventName, Listener, Milliseconds

if TYPE_CHECKING:
    from scopedfsm.interfaces.protocols import Cancellable, EventSource, Scheduler


class Disposable:
    """
    A single cancellable registration owned by one DisposableRegistry.

    ``cancel()`` is idempotent. Once cancelled, the wrapped callback is never
    invoked again, even if the external scheduler or event source still holds a
    reference to it.
    """

    def __init__(self) -> None:
        self._active = True
        self._registry: Optional[DisposableRegistry] = None

    @property
    def active(self) -> bool:
        """True until the disposable is cancelled, released or has fired for good."""
        return self._active

    def cancel(self) -> None:
        """
        Undo the registration. Safe to call any number of times.
        """
        if not self._active:
            return
        self._active = False
        self._detach()
        self._dispose()

    def _start(self) -> None:
        """Hook the registration up to its external collaborator."""

    def _dispose(self) -> None:
        """Undo whatever ``_start`` did."""

    def _detach(self) -> None:
        if self._registry is not None:
            self._registry.discard(self)
            self._registry = None


class Subscription(Disposable):
    """
    Subscription to a named event on an event source. The listener handed to
    the source is created once so ``remove_listener`` sees the same object.
    """

    def __init__(self, source: "EventSource", event: EventName, callback: Listener) -> None:
        super().__init__()
        self.source = source
        self.event = event
        self._callback = callback
        self._listener = self._fire

    def _start(self) -> None:
        self.source.on(self.event, self._listener)

    def _fire(self, *args: Any, **kwargs: Any) -> None:
        if self._active:
            self._callback(*args, **kwargs)

    def _dispose(self) -> None:
        self.source.remove_listener(self.event, self._listener)


class _ScheduledCall(Disposable):
    """
    Shared behaviour for registrations backed by a scheduler handle.
    """

    def __init__(self, scheduler: "Scheduler", callback: Callable[..., None], args: tuple) -> None:
        super().__init__()
        self._scheduler = scheduler
        self._callback = callback
        self._args = args
        self._handle: Optional["Cancellable"] = None

    def _dispose(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class OneShotTimer(_ScheduledCall):
    """Runs its callback once after ``delay_ms`` unless cancelled first."""

    def __init__(self, scheduler: "Scheduler", delay_ms: Milliseconds, callback: Callable[..., None], args: tuple = ()) -> None:
        super().__init__(scheduler, callback, args)
        self.delay_ms = delay_ms

    def _start(self) -> None:
        self._handle = self._scheduler.call_later(self.delay_ms, self._fire)

    def _fire(self) -> None:
        if not self._active:
            return
        # Fired timers leave the registry before the callback can transition.
        self._active = False
        self._handle = None
        self._detach()
        self._callback(*self._args)


class DeferredCall(OneShotTimer):
    """Runs its callback on the next turn of the scheduler unless cancelled first."""

    def __init__(self, scheduler: "Scheduler", callback: Callable[..., None], args: tuple = ()) -> None:
        super().__init__(scheduler, 0, callback, args)

    def _start(self) -> None:
        self._handle = self._scheduler.call_soon(self._fire)


class RepeatingTimer(_ScheduledCall):
    """Runs its callback every ``interval_ms`` until cancelled."""

    def __init__(self, scheduler: "Scheduler", interval_ms: Milliseconds, callback: Callable[..., None], args: tuple = ()) -> None:
        super().__init__(scheduler, callback, args)
        self.interval_ms = interval_ms

    def _start(self) -> None:
        self._handle = self._scheduler.call_every(self.interval_ms, self._fire)

    def _fire(self) -> None:
        if self._active:
            self._callback(*self._args)


class GuardedCallback(Disposable):
    """
    Callable wrapper that forwards to ``fn`` while active and does nothing
    afterwards. Meant to be handed to APIs the registry knows nothing about.

    A guarded callback is not stored in its owner's entries; it reads the
    owner's ``released`` flag on every call, so wrapping many callbacks in a
    long-lived level does not grow the registry.
    """

    def __init__(self, fn: Callable[..., Any], owner: Optional["DisposableRegistry"] = None) -> None:
        super().__init__()
        self._fn = fn
        self._owner = owner

    @property
    def active(self) -> bool:
        if self._owner is not None and self._owner.released:
            return False
        return self._active

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if not self.active:
            return None
        return self._fn(*args, **kwargs)


class DisposableRegistry:
    """
    Records the disposables registered during one state level's lifetime and
    undoes all of them at once.
    """

    def __init__(self, owner: str = "") -> None:
        """
        :param owner: Dotted name of the state level owning this registry,
            used in error messages.
        """
        self._owner = owner
        self._entries: List[Disposable] = []
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def register(self, disposable: Disposable) -> Disposable:
        """
        Start ``disposable`` and take ownership of it.

        :param disposable: A fresh, not yet started disposable.
        :return: The same disposable, for chaining.
        :raises UseAfterTransitionError: If the registry was already released.
            The disposable is left unstarted.
        """
        self._check_live(disposable)
        try:
            disposable._start()
        except Exception:
            # Not started: kept out of the entries.
            disposable._active = False
            raise
        disposable._registry = self
        self._entries.append(disposable)
        return disposable

    def guard(self, fn: Callable[..., Any]) -> GuardedCallback:
        """
        Wrap ``fn`` in a GuardedCallback tied to this registry's lifetime.
        The wrapper is not counted among the entries.

        :raises UseAfterTransitionError: If the registry was already released.
        """
        guarded = GuardedCallback(fn, owner=self)
        self._check_live(guarded)
        return guarded

    def _check_live(self, disposable: Disposable) -> None:
        if self._released:
            disposable._active = False
            raise UseAfterTransitionError(self._owner, "its state level has already been exited")


    def discard(self, disposable: Disposable) -> None:
        """Forget a disposable that was cancelled or finished on its own."""
        try:
            self._entries.remove(disposable)
        except ValueError:
            pass

    def release_all(self) -> None:
        """
        Cancel every live entry and mark the registry released. The first
        failure raised by an external collaborator is re-raised once every
        entry has been cancelled.
        """
        if self._released:
            return
        self._released = True
        entries, self._entries = self._entries, []
        first_error: Optional[BaseException] = None
        for disposable in entries:
            disposable._registry = None
            try:
                disposable.cancel()
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def event_names(self) -> Set[EventName]:
        """Names of events with a live subscription in this registry."""
        return {d.event for d in self._entries if isinstance(d, Subscription) and d.active}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
