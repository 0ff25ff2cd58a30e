"""
Shared constants for Huginn.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Listener pattern syntax
DEFAULT_SEPARATOR = "/"
"""Separator between listener pattern segments ("players/:id")."""

DEFAULT_MARKER = ":"
"""Prefix that turns a pattern segment into a placeholder."""

WILDCARD_NAME = "*"
"""Name of the unconstrained placeholder, used for unknown placeholders."""

# Config locations
ENV_PREFIX = "HUGINN_"
"""Prefix for environment variable overrides."""

ENV_CONFIG_DIR = "HUGINN_CONFIG_DIR"
"""Overrides the user config directory (~/.config/huginn)."""

ENV_FILE = "HUGINN_ENV_FILE"
"""Explicit .env file to load settings from."""

PROJECT_CONFIG_DIR = ".huginn"
"""Project-level config directory, relative to the working directory."""
