"""
Huginn - state snapshot synchronization with path listeners.

Keeps a local copy of shared state in step with the snapshots a transport
delivers, and tells subscribers what changed, where.
Named after Odin's raven, who flies over the world and reports back.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("huginn")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "Huginn Contributors"

from huginn.config import Settings  # noqa: E402
from huginn.listeners import DataChange, PlaceholderRegistry, StateContainer  # noqa: E402
from huginn.tree import Operation, Patch, apply_patches, get_patch_list  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    "DataChange",
    "Operation",
    "Patch",
    "PlaceholderRegistry",
    "Settings",
    "StateContainer",
    "apply_patches",
    "get_patch_list",
]
