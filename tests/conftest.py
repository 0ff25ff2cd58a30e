"""
Shared pytest fixtures for Huginn tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

import huginn.listeners as listeners

# =============================================================================
# State fixtures
# =============================================================================


def make_raw_data() -> dict[str, _typing.Any]:
    """A game-like snapshot touching every shape: maps, sequence, scalars, null."""
    return {
        "game": {"turn": 0},
        "players": {
            "key1": {"id": "key1", "position": {"x": 0, "y": 10}},
            "key2": {"id": "key2", "position": {"x": 10, "y": 20}},
        },
        "turn": "none",
        "null": None,
        "messages": ["one", "two", "three"],
    }


@_pytest.fixture
def raw_data() -> dict[str, _typing.Any]:
    """Fresh copy of the reference snapshot."""
    return make_raw_data()


@_pytest.fixture
def new_data() -> dict[str, _typing.Any]:
    """Second fresh copy of the reference snapshot, for tests to mutate."""
    return make_raw_data()


@_pytest.fixture
def container(raw_data: dict[str, _typing.Any]) -> _typing.Iterator[listeners.StateContainer]:
    """Container holding the reference snapshot."""
    state = listeners.StateContainer(raw_data)
    yield state
    state.remove_all_listeners()


# =============================================================================
# Config isolation
# =============================================================================


@_pytest.fixture
def isolated_config(
    tmp_path: _pathlib.Path,
    monkeypatch: _pytest.MonkeyPatch,
) -> _pathlib.Path:
    """
    Isolate settings from the developer's environment.

    Clears HUGINN_* variables, points the user config dir into tmp_path and
    makes tmp_path the working directory (project config lives in
    tmp_path/.huginn/config.yaml).

    Returns:
        The project root (tmp_path). The user config dir is tmp_path/"user".
    """
    for key in list(_os.environ):
        if key.startswith("HUGINN_"):
            monkeypatch.delenv(key)
    user_dir = tmp_path / "user"
    user_dir.mkdir()
    monkeypatch.setenv("HUGINN_CONFIG_DIR", str(user_dir))
    monkeypatch.chdir(tmp_path)
    return tmp_path
