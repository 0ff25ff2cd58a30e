"""
Configuration module for Huginn.

Uses pydantic-settings for environment variable and YAML file loading.
"""

from huginn.config.settings import Settings
from huginn.config.sources import ConfigFileError
from huginn.config.types import ContainerConfig, LoggingConfig, MatchingConfig

__all__ = ["ConfigFileError", "ContainerConfig", "LoggingConfig", "MatchingConfig", "Settings"]
