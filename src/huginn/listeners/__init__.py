"""
Path listeners for state changes.

Listeners subscribe to parts of the state tree with patterns instead of
diffing snapshots themselves. Patterns are "/"-separated segments; a
segment starting with ":" is a placeholder whose matched text is passed to
the callback.

Example usage:
    from huginn.listeners import StateContainer

    container = StateContainer({"players": {}})
    container.listen(
        "players/:id",
        lambda change: print(change.operation, change.path_variables["id"]),
    )
    container.set({"players": {"key1": {"x": 0}}})
    # Operation.ADD key1
"""

from huginn.listeners.container import StateContainer
from huginn.listeners.events import (
    ChangeCallback,
    DataChange,
    FallbackListener,
    Listener,
    PatchCallback,
)
from huginn.listeners.matching import (
    BUILTIN_PLACEHOLDERS,
    CompiledPattern,
    PlaceholderRegistry,
    SegmentMatcher,
)

__all__ = [
    "BUILTIN_PLACEHOLDERS",
    "ChangeCallback",
    "CompiledPattern",
    "DataChange",
    "FallbackListener",
    "Listener",
    "PatchCallback",
    "PlaceholderRegistry",
    "SegmentMatcher",
    "StateContainer",
]
