"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with HUGINN_ prefix
3. .env file (if HUGINN_ENV_FILE points at one)
4. Layered YAML config files:
   - Project config: .huginn/config.yaml (highest)
   - User config: ~/.config/huginn/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  HUGINN_CONTAINER__ON_LISTENER_ERROR=log
  HUGINN_MATCHING__MARKER=$
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import huginn.config.sources as sources
import huginn.config.types as types
import huginn.constants as constants


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only an explicit HUGINN_ENV_FILE is honored. If it is set but the file
    does not exist, no .env is loaded rather than falling back silently.
    """
    if env_file := _os.environ.get(constants.ENV_FILE):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


class Settings(_pydantic_settings.BaseSettings):
    """
    Huginn configuration settings.

    All settings can be overridden via environment variables with HUGINN_ prefix.
    For nested config, use double underscore: HUGINN_LOGGING__LEVEL=DEBUG

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (HUGINN_*)
    3. .env file
    4. Project config (.huginn/config.yaml)
    5. User config (~/.config/huginn/config.yaml)
    6. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (HUGINN_* env vars)
        3. dotenv_settings (.env file)
        4. YAML layers (project, user, built-in)
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.YamlSettingsSource(settings_cls, _pathlib.Path.cwd()),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables and YAML only, without a .env file.

        Useful for test isolation and for reproducing issues without
        .env interference.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    version: int = _pydantic.Field(default=1, description="Config schema version")

    matching: types.MatchingConfig = _pydantic.Field(default_factory=types.MatchingConfig)
    """Pattern matching (placeholder marker, extra placeholders)."""

    container: types.ContainerConfig = _pydantic.Field(default_factory=types.ContainerConfig)
    """State container behavior."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    @property
    def log_level(self) -> str:
        """Log level (alias to logging.level)."""
        return self.logging.level

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Collect unrecognized keys from all sections, as dotted paths.

        Returns:
            Flat dict of path → value, e.g. {"container.seperator": "."}.
        """
        extra: dict[str, _typing.Any] = dict(self.model_extra or {})
        for name in ("matching", "container", "logging"):
            section: types.ConfigBase = getattr(self, name)
            for key, value in section.get_extra_fields().items():
                extra[f"{name}.{key}"] = value
        return extra
