"""
Interfaces package: protocols and type aliases for the collaborators the core
relies on (schedulers, event sources, instrumentation hooks).
"""
