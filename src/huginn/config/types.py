"""Configuration type definitions for Huginn settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:
- MatchingConfig: placeholder marker and extra placeholders
- ContainerConfig: pattern separator, listener error policy, validation
- LoggingConfig: log level used by the CLI

Design decision: All types use `extra="allow"` to preserve unknown fields,
so typos in config files can be audited with `get_extra_fields()`.
"""

import logging as _logging
import re as _re
import typing as _typing

import pydantic as _pydantic

import huginn.constants as constants


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are preserved rather than silently dropped.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Return fields that were provided but not in the schema.

        Returns:
            Dict of field_name → value for all unrecognized fields.
        """
        return dict(self.model_extra) if self.model_extra else {}

    def has_extra_fields(self) -> bool:
        """Check if this config has any unrecognized fields."""
        return bool(self.model_extra)


class MatchingConfig(ConfigBase):
    """Listener pattern matching settings."""

    marker: str = constants.DEFAULT_MARKER
    """Prefix that turns a pattern segment into a placeholder."""

    placeholders: dict[str, str] = _pydantic.Field(default_factory=dict)
    """Extra placeholders (token → regular expression), added to the built-ins."""

    @_pydantic.field_validator("marker")
    @classmethod
    def _check_marker(cls, value: str) -> str:
        if not value:
            raise ValueError("marker must not be empty")
        return value

    @_pydantic.field_validator("placeholders")
    @classmethod
    def _check_placeholders(cls, value: dict[str, str]) -> dict[str, str]:
        for token, expression in value.items():
            try:
                _re.compile(expression)
            except _re.error as e:
                raise ValueError(f"placeholder {token!r} has an invalid expression: {e}") from e
        return value


class ContainerConfig(ConfigBase):
    """State container behavior."""

    separator: str = constants.DEFAULT_SEPARATOR
    """Separator between listener pattern segments."""

    on_listener_error: _typing.Literal["raise", "log"] = "raise"
    """What to do when a listener callback raises: propagate, or log and continue."""

    validate_snapshots: bool = False
    """Validate every node of incoming snapshots, not only the root."""

    @_pydantic.field_validator("separator")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        if not value:
            raise ValueError("separator must not be empty")
        return value


class LoggingConfig(ConfigBase):
    """Logging settings for the command line."""

    level: str = "WARNING"
    """Log level name (DEBUG, INFO, WARNING, ERROR)."""

    @_pydantic.field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(_logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level
