"""
Runtime package: concrete collaborators for the core (schedulers and an
in-memory event source).
"""

from .events import EventEmitter
from .scheduler import AsyncioScheduler, ManualScheduler

__all__ = ["EventEmitter", "AsyncioScheduler", "ManualScheduler"]
