"""
Structural diff between two state trees.

Produces the ordered patch list that turns one snapshot into another.
Unlike a generic tree edit distance this is a keyed comparison: map
entries are matched by key and sequence items by index, which is what
subscribers addressing state by path expect.

Ordering rules, per container:
    1. remove/replace patches first, in the old container's key order
    2. add patches after, in the new container's key order
    3. a newly added container emits its nested adds before its own add
    4. a changed container never gets a patch of its own, only its
       changed descendants do
"""

from __future__ import annotations

import huginn.tree.patches as patches
import huginn.tree.values as values


def get_patch_list(
    tree1: values.TreeMap,
    tree2: values.TreeMap,
) -> list[patches.Patch]:
    """
    Compute the patches that turn tree1 into tree2.

    Args:
        tree1: The currently held snapshot (the mirror).
        tree2: The incoming snapshot.

    Returns:
        Ordered list of patches; empty when the trees are equal.
    """
    result: list[patches.Patch] = []
    generate(tree1, tree2, result, ())
    return result


def generate(
    mirror: values.TreeValue,
    obj: values.TreeValue,
    result: list[patches.Patch],
    path: values.Path,
) -> None:
    """
    Append the patches between two container nodes to result.

    Both nodes must be containers. Sequences are compared as maps keyed
    by stringified index.
    """
    old_node = values.as_mapping(mirror)
    new_node = values.as_mapping(obj)
    deleted = False

    for key, old_value in old_node.items():
        child_path = (*path, str(key))

        if key not in new_node:
            result.append(patches.Patch.remove(child_path))
            deleted = True
            continue

        new_value = new_node[key]
        old_shape = values.shape_of(old_value)
        if old_shape.is_container and old_shape is values.shape_of(new_value):
            generate(old_value, new_value, result, child_path)
        elif not values.values_equal(old_value, new_value):
            result.append(patches.Patch.replace(child_path, new_value))

    # Nothing deleted and same size means no key can be new
    if not deleted and len(new_node) == len(old_node):
        return

    for key, new_value in new_node.items():
        if key in old_node:
            continue

        child_path = (*path, str(key))
        new_shape = values.shape_of(new_value)
        if new_shape.is_container:
            generate(new_shape.empty(), new_value, result, child_path)
        result.append(patches.Patch.add(child_path, new_value))
