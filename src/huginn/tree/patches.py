"""
Patch dataclasses and patch application.

A Patch is one add/remove/replace operation produced by the diff engine.
apply_patches() replays a patch list on a copy of a tree, which is how the
round-trip law of the diff engine is checked:

    >>> old = {"players": {"a": 1}}
    >>> new = {"players": {"b": 2}}
    >>> apply_patches(old, diff.get_patch_list(old, new)) == new
    True
"""

from __future__ import annotations

import copy as _copy
import dataclasses as _dataclasses
import enum as _enum
import typing as _typing

import huginn.tree.values as values


class Operation(_enum.Enum):
    """Kind of change described by a patch."""

    ADD = "add"
    """Key did not exist in the old tree."""

    REMOVE = "remove"
    """Key no longer exists in the new tree."""

    REPLACE = "replace"
    """Key exists in both trees with a different value."""


@_dataclasses.dataclass(frozen=True, slots=True)
class Patch:
    """
    A single change between two trees.

    Attributes:
        operation: add, remove or replace.
        path: Segments from the root to the changed node. Sequence
            indices are stringified.
        value: New value for add/replace. Always None for remove.
    """

    operation: Operation
    path: values.Path
    value: values.TreeValue = None

    @classmethod
    def add(cls, path: values.Path, value: values.TreeValue) -> Patch:
        return cls(Operation.ADD, path, value)

    @classmethod
    def remove(cls, path: values.Path) -> Patch:
        return cls(Operation.REMOVE, path)

    @classmethod
    def replace(cls, path: values.Path, value: values.TreeValue) -> Patch:
        return cls(Operation.REPLACE, path, value)

    @property
    def has_value(self) -> bool:
        """Whether this patch carries a value (add and replace do)."""
        return self.operation is not Operation.REMOVE

    @property
    def pointer(self) -> str:
        """The path as an RFC 6901 JSON pointer, e.g. "/players/key1"."""
        escaped = (segment.replace("~", "~0").replace("/", "~1") for segment in self.path)
        return "".join(f"/{segment}" for segment in escaped)

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, _typing.Any] = {
            "operation": self.operation.value,
            "path": list(self.path),
        }
        if self.has_value:
            result["value"] = self.value
        return result


class PatchApplyError(Exception):
    """Raised when a patch does not fit the tree it is applied to."""

    def __init__(self, patch: Patch, message: str) -> None:
        self.patch = patch
        operation = getattr(patch.operation, "value", patch.operation)
        super().__init__(f"Cannot apply {operation} at {patch.pointer!r}: {message}")


class _IndexedSequence(dict[str, _typing.Any]):
    """Sequence held as an index-keyed dict while patches are applied."""


def _to_indexed(value: values.TreeValue) -> values.TreeValue:
    shape = values.shape_of(value)
    if shape is values.Shape.MAP:
        return {key: _to_indexed(item) for key, item in value.items()}
    if shape is values.Shape.SEQUENCE:
        return _IndexedSequence(
            (str(index), _to_indexed(item)) for index, item in enumerate(value)
        )
    return value


def _from_indexed(value: values.TreeValue) -> values.TreeValue:
    if isinstance(value, _IndexedSequence):
        ordered = sorted(value.items(), key=lambda entry: int(entry[0]))
        return [_from_indexed(item) for _, item in ordered]
    if isinstance(value, dict):
        return {key: _from_indexed(item) for key, item in value.items()}
    return value


def _is_redundant_add(patch: Patch, add_paths: set[values.Path]) -> bool:
    """An add nested under another add of the same list is covered by it."""
    return any(patch.path[:depth] in add_paths for depth in range(1, len(patch.path)))


def _resolve_parent(root: dict[str, _typing.Any], patch: Patch) -> dict[str, _typing.Any]:
    node: _typing.Any = root
    for segment in patch.path[:-1]:
        if not isinstance(node, dict) or segment not in node:
            raise PatchApplyError(patch, f"missing parent segment {segment!r}")
        node = node[segment]
    if not isinstance(node, dict):
        raise PatchApplyError(patch, "parent is not a map or sequence")
    return _typing.cast(dict[str, _typing.Any], node)


def apply_patches(
    tree: values.TreeMap,
    patches: _typing.Iterable[Patch],
) -> dict[str, _typing.Any]:
    """
    Apply a sequence of patches to a copy of a tree.

    The input tree is never modified. Sequences are patched as index-keyed
    maps and converted back to lists at the end, so removals of trailing
    indices may appear in any order. Every sequence in the result is a
    list, including ones that were tuples in the input.

    Args:
        tree: The tree to start from (the old snapshot).
        patches: Patches in the order produced by the diff engine.

    Returns:
        New tree with all patches applied.

    Raises:
        PatchApplyError: If a patch addresses a missing node or has an
            unknown operation.
    """
    patch_list = list(patches)
    add_paths = {p.path for p in patch_list if p.operation is Operation.ADD}
    root = _to_indexed(_copy.deepcopy(dict(values.ensure_map(tree))))

    for patch in patch_list:
        if not patch.path:
            raise PatchApplyError(patch, "empty path")

        if patch.operation is Operation.ADD:
            if _is_redundant_add(patch, add_paths):
                continue
            parent = _resolve_parent(root, patch)
            parent[patch.path[-1]] = _to_indexed(_copy.deepcopy(patch.value))
        elif patch.operation is Operation.REPLACE:
            parent = _resolve_parent(root, patch)
            if patch.path[-1] not in parent:
                raise PatchApplyError(patch, "key does not exist")
            parent[patch.path[-1]] = _to_indexed(_copy.deepcopy(patch.value))
        elif patch.operation is Operation.REMOVE:
            parent = _resolve_parent(root, patch)
            if patch.path[-1] not in parent:
                raise PatchApplyError(patch, "key does not exist")
            del parent[patch.path[-1]]
        else:
            raise PatchApplyError(patch, "unknown operation")

    return _typing.cast(dict[str, _typing.Any], _from_indexed(root))
