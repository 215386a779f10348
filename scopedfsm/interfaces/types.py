# scopedfsm/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Union

StateName = str
EventName = str
ClassTag = str
InstanceID = str
Milliseconds = Union[int, float]

# Callback Types
Listener = Callable[..., None]
EntryLogic = Callable[[Any, Any], None]
