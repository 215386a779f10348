# scopedfsm/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import Any, List, Optional

from scopedfsm.interfaces.protocols import InstrumentationHook
from scopedfsm.interfaces.types import ClassTag, InstanceID

logger = logging.getLogger(__name__)

_global_hooks: List[InstrumentationHook] = []


def register_global_hook(hook: InstrumentationHook) -> None:
    """
    Attach a hook to every state machine created from now on.

    :param hook: An object implementing any of the InstrumentationHook methods.
    """
    if hook not in _global_hooks:
        _global_hooks.append(hook)


def unregister_global_hook(hook: InstrumentationHook) -> None:
    """Detach a hook previously passed to ``register_global_hook``."""
    try:
        _global_hooks.remove(hook)
    except ValueError:
        pass


def global_hooks() -> List[InstrumentationHook]:
    """Return a copy of the process-wide hook list."""
    return list(_global_hooks)


class HookManager:
    """
    Manages the instrumentation hooks of one state machine. Hooks see machine
    creation and the start and end of every transition. Tracing must never
    destabilize the machine, so every hook failure is logged and dropped.
    """

    def __init__(self, hooks: Optional[List[InstrumentationHook]] = None, include_global: bool = True) -> None:
        """
        :param hooks: Hooks specific to this machine.
        :param include_global: Also dispatch to hooks registered with
            ``register_global_hook`` (looked up at dispatch time).
        """
        self._hooks: List[InstrumentationHook] = list(hooks or [])
        self._include_global = include_global

    def register_hook(self, hook: InstrumentationHook) -> None:
        """
        Add a new hook to the manager's list of hooks.

        :param hook: An object implementing InstrumentationHook methods.
        """
        self._hooks.append(hook)

    def execute_on_create(self, class_tag: ClassTag, instance_id: InstanceID) -> None:
        self._invoke("on_create", class_tag, instance_id)

    def execute_on_transition_start(self, class_tag: ClassTag, instance_id: InstanceID, old: str, new: str) -> None:
        self._invoke("on_transition_start", class_tag, instance_id, old, new)

    def execute_on_transition_end(self, class_tag: ClassTag, instance_id: InstanceID, old: str, new: str) -> None:
        self._invoke("on_transition_end", class_tag, instance_id, old, new)

    def _all_hooks(self) -> List[InstrumentationHook]:
        if self._include_global:
            return _global_hooks + self._hooks
        return list(self._hooks)

    def _invoke(self, method: str, *args: Any) -> None:
        for hook in self._all_hooks():
            fn = getattr(hook, method, None)
            if fn is None:
                continue
            try:
                fn(*args)
            except Exception:
                logger.exception("Instrumentation hook %r failed in %s", hook, method)
