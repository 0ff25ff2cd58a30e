"""
Change events and listener handles.

These define the data structures passed between the container and its
subscribers:
- DataChange: What a path listener receives for each matching patch
- Listener: A registered path listener (also its removal handle)
- FallbackListener: The catch-all listener for unmatched patches
"""

from __future__ import annotations

import dataclasses as _dataclasses
import typing as _typing

import huginn.listeners.matching as matching
import huginn.tree.patches as patches
import huginn.tree.values as values


@_dataclasses.dataclass(frozen=True, slots=True)
class DataChange:
    """
    Change delivered to a path listener.

    Attributes:
        path_variables: Placeholder name -> captured path segment, e.g. {"id": "key1"}
            for pattern "players/:id" and patch path ("players", "key1").
        operation: add, remove or replace.
        value: New value (None for remove).
    """

    path_variables: dict[str, str]
    operation: patches.Operation
    value: values.TreeValue = None

    @classmethod
    def from_patch(cls, patch: patches.Patch, path_variables: dict[str, str]) -> DataChange:
        return cls(path_variables=path_variables, operation=patch.operation, value=patch.value)

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, _typing.Any] = {
            "operation": self.operation.value,
            "path_variables": dict(self.path_variables),
        }
        if self.operation is not patches.Operation.REMOVE:
            result["value"] = self.value
        return result


ChangeCallback: _typing.TypeAlias = _typing.Callable[[DataChange], object]
"""Callback of a path listener."""

PatchCallback: _typing.TypeAlias = _typing.Callable[[patches.Patch], object]
"""Callback of the fallback listener; receives the raw patch."""


@_dataclasses.dataclass(eq=False, slots=True)
class Listener:
    """
    A path listener.

    Instances are compared by identity and double as the handle passed
    to StateContainer.remove_listener().
    """

    pattern: matching.CompiledPattern
    callback: ChangeCallback

    def match(self, patch: patches.Patch) -> DataChange | None:
        """Build the change for a patch, or None if the path does not match."""
        path_variables = self.pattern.match(patch.path)
        if path_variables is None:
            return None
        return DataChange.from_patch(patch, path_variables)


@_dataclasses.dataclass(eq=False, slots=True)
class FallbackListener:
    """Catch-all listener, called with patches no path listener matched."""

    callback: PatchCallback
