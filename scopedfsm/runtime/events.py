# scopedfsm/runtime/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict, List, Optional

from scopedfsm.interfaces.types import EventName, Listener


class EventEmitter:
    """
    In-memory event source with synchronous delivery. Satisfies the
    EventSource protocol, so state handles can subscribe to it directly.
    """

    def __init__(self) -> None:
        self._listeners: Dict[EventName, List[Listener]] = {}

    def on(self, event: EventName, listener: Listener) -> None:
        """
        Subscribe ``listener`` to ``event``. Subscribing the same listener
        twice makes it fire twice.
        """
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: EventName, listener: Listener) -> None:
        """
        Remove one subscription of ``listener`` to ``event``. Unknown
        listeners are ignored.
        """
        listeners = self._listeners.get(event)
        if listeners is None:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def emit(self, event: EventName, *args: Any, **kwargs: Any) -> bool:
        """
        Call every listener of ``event`` with the given arguments, in
        subscription order. Listeners added during emission wait for the next
        emit.

        :return: True if the event had listeners.
        """
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args, **kwargs)
        return bool(listeners)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(event, ()))
