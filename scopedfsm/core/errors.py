# scopedfsm/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Optional


class FSMError(Exception):
    """
    Base exception class for errors raised by the state machine core. Every
    error here signals a defect in a machine's wiring, never an environmental
    failure, so none of them is retried or swallowed.
    """


class MalformedStateNameError(FSMError, ValueError):
    """
    Raised when a dotted state path is empty or contains an empty component.
    """

    def __init__(self, name: object, reason: str = "empty path component") -> None:
        super().__init__(f"Malformed state name {name!r}: {reason}")
        self.name = name


class UnknownStateError(FSMError):
    """
    Raised when no entry logic is registered for a required path prefix.
    """

    def __init__(self, state: str, class_tag: Optional[str] = None) -> None:
        where = f" in {class_tag}" if class_tag else ""
        super().__init__(f"No entry logic registered for state '{state}'{where}")
        self.state = state
        self.class_tag = class_tag


class InvalidTransitionError(FSMError):
    """
    Raised when a handle with an allow-list requests a target outside of it.
    """

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Transition from '{source}' to '{target}' is not in the list of valid transitions")
        self.source = source
        self.target = target


class UseAfterTransitionError(FSMError):
    """
    Raised when a handle that already requested a transition, or whose level
    has been torn down, is asked to act again.
    """

    def __init__(self, state: str, detail: str = "a transition was already requested through this handle") -> None:
        super().__init__(f"State handle for '{state}' cannot be used: {detail}")
        self.state = state


class AlreadySetError(FSMError):
    """
    Raised when ``valid_transitions`` is called twice on the same handle.
    """

    def __init__(self, state: str) -> None:
        super().__init__(f"Valid transitions for state '{state}' were already set")
        self.state = state


class MissingAllStateHandlerError(FSMError):
    """
    Raised at the end of a transition when a declared all-state event has no
    live subscription among the active handles.
    """

    def __init__(self, event: str, state: str) -> None:
        super().__init__(f"State '{state}' does not handle all-state event '{event}'")
        self.event = event
        self.state = state


class TransitionPendingError(FSMError):
    """
    Raised when a transition is requested while another request is still
    waiting to be carried out.
    """

    def __init__(self, pending: str, requested: str) -> None:
        super().__init__(f"Cannot request transition to '{requested}': transition to '{pending}' is pending")
        self.pending = pending
        self.requested = requested


class TransitionLoopError(FSMError):
    """
    Raised when entry logic keeps requesting transitions synchronously beyond
    the configured limit.
    """

    def __init__(self, limit: int, chain: list) -> None:
        tail = " -> ".join(chain[-5:])
        super().__init__(f"More than {limit} chained transitions without settling (last: {tail})")
        self.limit = limit
        self.chain = chain
