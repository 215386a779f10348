"""
Core package: the state-transition engine.

- paths: dotted state path decomposition and common-ancestor depth
- disposables: scoped registrations and their registry
- handle: the per-level StateHandle given to entry logic
- definition: entry-logic tables and all-state events
- state_machine: transition algorithm and deferred change notification
- hooks: isolated instrumentation hooks
"""
