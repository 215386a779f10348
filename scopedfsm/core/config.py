# scopedfsm/core/config.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MachineConfig:
    """
    Tunables for a StateMachine instance.

    :param max_chained_transitions: How many transitions entry logic may chain
        synchronously before the machine gives up with TransitionLoopError.
    :param notify_event: Event name under which settled state changes are
        delivered to listeners.
    :param logger_name: Name of the logger transitions are reported to.
    """

    max_chained_transitions: int = 100
    notify_event: str = "change"
    logger_name: str = "scopedfsm"

    def __post_init__(self) -> None:
        if not isinstance(self.max_chained_transitions, int) or self.max_chained_transitions < 1:
            raise ValueError("max_chained_transitions must be a positive integer")
        if not self.notify_event:
            raise ValueError("notify_event must be a non-empty string")
        if not self.logger_name:
            raise ValueError("logger_name must be a non-empty string")


DEFAULT_CONFIG = MachineConfig()
