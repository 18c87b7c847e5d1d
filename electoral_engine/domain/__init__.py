"""Domain layer: entities, value objects, events and errors.

Nothing in this package performs I/O. Every entity is an immutable
dataclass and every state change returns a new instance.
"""
