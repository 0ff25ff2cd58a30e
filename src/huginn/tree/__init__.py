"""
State tree model and structural diff.

Example:
    >>> from huginn.tree import get_patch_list
    >>> get_patch_list({"turn": "none"}, {"turn": "p1"})
    [Patch(operation=<Operation.REPLACE: 'replace'>, path=('turn',), value='p1')]
"""

from huginn.tree.diff import get_patch_list
from huginn.tree.patches import Operation, Patch, PatchApplyError, apply_patches
from huginn.tree.values import (
    InvalidTreeError,
    Path,
    Shape,
    TreeMap,
    TreeValue,
    ensure_map,
    shape_of,
    validate_tree,
)

__all__ = [
    "InvalidTreeError",
    "Operation",
    "Patch",
    "PatchApplyError",
    "Path",
    "Shape",
    "TreeMap",
    "TreeValue",
    "apply_patches",
    "ensure_map",
    "get_patch_list",
    "shape_of",
    "validate_tree",
]
