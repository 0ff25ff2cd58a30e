"""
CLI module for Huginn.

Provides the command-line interface using Click.
"""

from huginn.cli.main import cli, main

__all__ = ["main", "cli"]
