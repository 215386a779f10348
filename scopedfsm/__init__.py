"""scopedfsm: scoped finite state machines for single-threaded, event-driven code

A state's entry function registers listeners, timers and callbacks through the
StateHandle it receives. When the machine leaves that state (or the ancestor
level that owns the registration), all of them are cancelled at once.

Example:
    from scopedfsm import EventEmitter, MachineDefinition, StateMachine

    definition = MachineDefinition("Door")

    @definition.state("closed")
    def closed(st, ctx):
        st.goto_state_on(ctx["button"], "press", "open")

    @definition.state("open")
    def opened(st, ctx):
        st.goto_state_on_timeout(5000, "closed")

    # inside a running asyncio loop
    door = StateMachine(definition, "closed", context={"button": EventEmitter()})
"""

from scopedfsm.core.config import MachineConfig
from scopedfsm.core.definition import MachineDefinition
from scopedfsm.core.disposables import (
    DeferredCall,
    Disposable,
    DisposableRegistry,
    GuardedCallback,
    OneShotTimer,
    RepeatingTimer,
    Subscription,
)
from scopedfsm.core.errors import (
    AlreadySetError,
    FSMError,
    InvalidTransitionError,
    MalformedStateNameError,
    MissingAllStateHandlerError,
    TransitionLoopError,
    TransitionPendingError,
    UnknownStateError,
    UseAfterTransitionError,
)
from scopedfsm.core.handle import StateHandle
from scopedfsm.core.hooks import HookManager, register_global_hook, unregister_global_hook
from scopedfsm.core.state_machine import StateMachine
from scopedfsm.runtime.events import EventEmitter
from scopedfsm.runtime.scheduler import AsyncioScheduler, ManualScheduler

__version__ = "0.1.0"

__all__ = [
    # Definition and engine
    "MachineDefinition",
    "MachineConfig",
    "StateMachine",
    "StateHandle",
    # Disposables
    "Disposable",
    "DisposableRegistry",
    "Subscription",
    "OneShotTimer",
    "RepeatingTimer",
    "DeferredCall",
    "GuardedCallback",
    # Instrumentation
    "HookManager",
    "register_global_hook",
    "unregister_global_hook",
    # Runtime collaborators
    "AsyncioScheduler",
    "ManualScheduler",
    "EventEmitter",
    # Errors
    "FSMError",
    "MalformedStateNameError",
    "UnknownStateError",
    "InvalidTransitionError",
    "UseAfterTransitionError",
    "AlreadySetError",
    "MissingAllStateHandlerError",
    "TransitionPendingError",
    "TransitionLoopError",
]
