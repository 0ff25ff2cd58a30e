"""
Value model for state trees.

A state tree is built from three shapes:
- Map: string-keyed mapping (dict), insertion ordered
- Sequence: list or tuple, addressed by stringified index when diffed
- Scalar: None, bool, int, float or str

Every shape decision in the diff engine goes through shape_of() so that
comparisons are tag comparisons rather than ad-hoc isinstance checks.
"""

from __future__ import annotations

import collections.abc as _abc
import enum as _enum
import math as _math
import typing as _typing

TreeValue: _typing.TypeAlias = _typing.Any
"""Any value of a state tree (map, sequence or scalar)."""

TreeMap: _typing.TypeAlias = _abc.Mapping[str, _typing.Any]
"""A map node; snapshots are always maps."""

Path: _typing.TypeAlias = tuple[str, ...]
"""Segments from the snapshot root to a node, e.g. ("players", "key1", "x")."""

_SCALAR_TYPES = (type(None), bool, int, float, str)


class InvalidTreeError(TypeError):
    """Raised when a value cannot be part of a state tree."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        location = "/".join(path) if path else "<root>"
        super().__init__(f"Invalid state tree at {location}: {message}")


class Shape(_enum.Enum):
    """Closed set of node shapes."""

    MAP = "map"
    SEQUENCE = "sequence"
    SCALAR = "scalar"

    @property
    def is_container(self) -> bool:
        """Whether nodes of this shape hold children."""
        return self is not Shape.SCALAR

    def empty(self) -> TreeValue:
        """Return an empty node of this shape (None for scalars)."""
        if self is Shape.MAP:
            return {}
        if self is Shape.SEQUENCE:
            return []
        return None


def shape_of(value: TreeValue) -> Shape:
    """Classify a value. Strings and bytes are scalars, never sequences."""
    if isinstance(value, _abc.Mapping):
        return Shape.MAP
    if isinstance(value, (list, tuple)):
        return Shape.SEQUENCE
    return Shape.SCALAR


def as_mapping(value: TreeValue) -> _abc.Mapping[str, TreeValue]:
    """
    View a container node as a string-keyed mapping.

    Sequences become {"0": item0, "1": item1, ...} so maps and sequences
    can share one comparison routine.

    Raises:
        InvalidTreeError: If value is a scalar.
    """
    shape = shape_of(value)
    if shape is Shape.MAP:
        return value
    if shape is Shape.SEQUENCE:
        return {str(index): item for index, item in enumerate(value)}
    raise InvalidTreeError((), f"expected a map or sequence, got {type(value).__name__}")


def values_equal(old: TreeValue, new: TreeValue) -> bool:
    """
    Value equality between two tree values.

    Booleans only equal booleans, so True -> 1 is reported as a change
    even though Python considers them equal. NaN equals NaN, otherwise a
    snapshot holding one would change on every comparison.
    """
    if isinstance(old, bool) != isinstance(new, bool):
        return False
    if shape_of(old) is not shape_of(new):
        return False
    if isinstance(old, float) and isinstance(new, float) and _math.isnan(old):
        return _math.isnan(new)
    return bool(old == new)


def ensure_map(value: TreeValue) -> TreeMap:
    """
    Check that a snapshot root is a map.

    Raises:
        InvalidTreeError: If the root is a sequence or scalar.
    """
    if shape_of(value) is not Shape.MAP:
        raise InvalidTreeError((), f"snapshot root must be a map, got {type(value).__name__}")
    return _typing.cast(TreeMap, value)


def validate_tree(value: TreeValue, path: Path = ()) -> None:
    """
    Recursively validate that value only contains supported shapes.

    Map keys must be strings and leaves must be None, bool, int, float
    or str.

    Raises:
        InvalidTreeError: On the first unsupported key or value.
    """
    shape = shape_of(value)
    if shape is Shape.MAP:
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidTreeError(
                    path, f"map keys must be strings, got {type(key).__name__} {key!r}"
                )
            validate_tree(item, (*path, key))
    elif shape is Shape.SEQUENCE:
        for index, item in enumerate(value):
            validate_tree(item, (*path, str(index)))
    elif not isinstance(value, _SCALAR_TYPES):
        raise InvalidTreeError(path, f"unsupported value type {type(value).__name__}")
