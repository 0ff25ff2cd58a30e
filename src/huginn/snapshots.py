"""
Snapshot loading from JSON and YAML documents.

Transports hand the container already-decoded trees. This module is the
decoding step for snapshots kept in files, used by the command line and
by tests.
"""

import json as _json
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

import huginn.tree.values as values

SnapshotFormat: _typing.TypeAlias = _typing.Literal["json", "yaml"]

_SUFFIX_FORMATS: dict[str, SnapshotFormat] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class SnapshotLoadError(Exception):
    """Error loading or decoding a snapshot document."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"Cannot load snapshot {source}: {message}")


def detect_format(path: _pathlib.Path) -> SnapshotFormat:
    """
    Pick the decoder for a file from its suffix.

    Raises:
        SnapshotLoadError: If the suffix is not .json, .yaml or .yml.
    """
    fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        supported = ", ".join(sorted(_SUFFIX_FORMATS))
        raise SnapshotLoadError(str(path), f"unsupported file type (expected {supported})")
    return fmt


def load_snapshot_text(
    text: str,
    fmt: SnapshotFormat = "json",
    *,
    source: str = "<string>",
) -> dict[str, _typing.Any]:
    """
    Decode a snapshot document.

    Args:
        text: Document contents.
        fmt: "json" or "yaml".
        source: Name used in error messages.

    Returns:
        The decoded tree. An empty YAML document is an empty map.

    Raises:
        SnapshotLoadError: If the document is malformed, its root is not a
            map, or it holds values a state tree cannot.
    """
    try:
        if fmt == "json":
            data = _json.loads(text)
        else:
            data = _yaml.safe_load(text)
            if data is None:
                data = {}
    except (_json.JSONDecodeError, _yaml.YAMLError) as e:
        raise SnapshotLoadError(source, f"invalid {fmt.upper()}: {e}") from e
    except RecursionError as e:
        raise SnapshotLoadError(source, "document is nested too deeply") from e

    try:
        values.ensure_map(data)
        values.validate_tree(data)
    except values.InvalidTreeError as e:
        raise SnapshotLoadError(source, str(e)) from e
    except RecursionError as e:
        raise SnapshotLoadError(source, "document is nested too deeply") from e

    return _typing.cast(dict[str, _typing.Any], data)


def load_snapshot(path: _pathlib.Path) -> dict[str, _typing.Any]:
    """
    Load a snapshot from a .json, .yaml or .yml file.

    Raises:
        SnapshotLoadError: If the file cannot be read or decoded.
    """
    fmt = detect_format(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotLoadError(str(path), f"cannot read file: {e}") from e
    except UnicodeDecodeError as e:
        raise SnapshotLoadError(str(path), f"not valid UTF-8: {e}") from e
    return load_snapshot_text(text, fmt, source=str(path))
