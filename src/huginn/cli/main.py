"""
Main CLI entry point for Huginn.

Provides developer tooling around the state container using Click:
diffing snapshot files, previewing what a listener pattern would
receive, and inspecting configuration.
"""

import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import click as _click
import pydantic as _pydantic
import rich.console as _rich_console
import rich.logging as _rich_logging
import rich.table as _rich_table
import yaml as _yaml

import huginn
import huginn.config as config
import huginn.listeners as listeners
import huginn.snapshots as snapshots
import huginn.tree as tree

CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_SNAPSHOT_PATH = _click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path)


def _configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    handler = _rich_logging.RichHandler(
        console=_rich_console.Console(stderr=True),
        show_path=False,
    )
    _logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def _load(path: _pathlib.Path) -> dict[str, _typing.Any]:
    """Load a snapshot, turning load failures into CLI errors."""
    try:
        return snapshots.load_snapshot(path)
    except snapshots.SnapshotLoadError as e:
        raise _click.ClickException(str(e)) from None


def _format_value(value: tree.TreeValue) -> str:
    return _json.dumps(value, ensure_ascii=False)


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(huginn.__version__, "-v", "--version", prog_name="huginn")
@_click.option("--verbose", is_flag=True, help="Enable debug logging")
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool) -> None:
    """
    Huginn - state snapshot diffing and path listeners.

    \b
    Examples:
        huginn diff old.json new.json                  # Show patches
        huginn watch "players/:id" old.json new.json   # Preview listener events
        huginn placeholders                            # List placeholders
        huginn config show                             # Show configuration
    """
    try:
        settings = config.Settings()
    except (config.ConfigFileError, _pydantic.ValidationError) as e:
        raise _click.ClickException(str(e)) from None

    _configure_logging("DEBUG" if verbose else settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_click.argument("old", type=_SNAPSHOT_PATH)
@_click.argument("new", type=_SNAPSHOT_PATH)
@_click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def diff(old: _pathlib.Path, new: _pathlib.Path, json_output: bool) -> None:
    """Show the patches that turn snapshot OLD into snapshot NEW."""
    patch_list = tree.get_patch_list(_load(old), _load(new))

    if json_output:
        _click.echo(_json.dumps([p.to_dict() for p in patch_list], indent=2))
        return

    if not patch_list:
        _click.echo("No changes.")
        return

    table = _rich_table.Table(title=f"{len(patch_list)} patches")
    table.add_column("#", justify="right")
    table.add_column("Operation")
    table.add_column("Path")
    table.add_column("Value", overflow="fold")
    for index, patch in enumerate(patch_list):
        value = _format_value(patch.value) if patch.has_value else ""
        table.add_row(str(index), patch.operation.value, patch.pointer, value)
    _rich_console.Console().print(table)


@cli.command()
@_click.argument("pattern")
@_click.argument("old", type=_SNAPSHOT_PATH)
@_click.argument("new", type=_SNAPSHOT_PATH)
@_click.option("--immediate", is_flag=True, help="Also report values already in OLD")
@_click.option("--fallback", is_flag=True, help="Also report patches the pattern does not match")
@_click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@_click.pass_context
def watch(
    ctx: _click.Context,
    pattern: str,
    old: _pathlib.Path,
    new: _pathlib.Path,
    immediate: bool,
    fallback: bool,
    json_output: bool,
) -> None:
    """Show the events a PATTERN listener receives when OLD becomes NEW.

    Events are listed in dispatch order.

    \b
    Examples:
        huginn watch "players/:id/position/:axis" old.json new.json
        huginn watch "messages/:number" old.yaml new.yaml --fallback
    """
    settings: config.Settings = ctx.obj["settings"]
    container = listeners.StateContainer.from_settings(_load(old), settings)
    received: list[dict[str, _typing.Any]] = []

    def on_change(change: listeners.DataChange) -> None:
        received.append({"listener": "pattern", **change.to_dict()})

    def on_unmatched(patch: tree.Patch) -> None:
        received.append({"listener": "fallback", **patch.to_dict()})

    container.listen(pattern, on_change, immediate=immediate)
    if fallback:
        container.listen_fallback(on_unmatched)
    container.set(_load(new))

    if json_output:
        _click.echo(_json.dumps(received, indent=2))
        return

    if not received:
        _click.echo(f"No events for {pattern!r}.")
        return

    table = _rich_table.Table(title=f"{len(received)} events for {pattern!r}")
    table.add_column("#", justify="right")
    table.add_column("Listener")
    table.add_column("Operation")
    table.add_column("Match")
    table.add_column("Value", overflow="fold")
    for index, event in enumerate(received):
        if event["listener"] == "pattern":
            where = ", ".join(f"{k}={v}" for k, v in event["path_variables"].items()) or "-"
        else:
            where = "/".join(event["path"])
        value = _format_value(event["value"]) if "value" in event else ""
        table.add_row(str(index), event["listener"], event["operation"], where, value)
    _rich_console.Console().print(table)


@cli.command()
@_click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@_click.pass_context
def placeholders(ctx: _click.Context, json_output: bool) -> None:
    """List placeholders available in listener patterns."""
    settings: config.Settings = ctx.obj["settings"]
    registry = listeners.PlaceholderRegistry.from_placeholders(
        settings.matching.placeholders,
        marker=settings.matching.marker,
    )
    table_data = {token: matcher.pattern for token, matcher in registry}

    if json_output:
        _click.echo(_json.dumps(table_data, indent=2))
        return

    table = _rich_table.Table(title="Placeholders")
    table.add_column("Token")
    table.add_column("Expression")
    for token, expression in table_data.items():
        table.add_row(token, expression)
    _rich_console.Console().print(table)


@cli.group(name="config")
def config_cmd() -> None:
    """Configuration commands."""


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.pass_context
def config_show(ctx: _click.Context, as_json: bool) -> None:
    """Show effective configuration from all sources.

    Displays the merged configuration from built-in defaults, user config,
    project config and HUGINN_* environment variables.
    """
    settings: config.Settings = ctx.obj["settings"]
    full_config = settings.model_dump(mode="json")

    if as_json:
        _click.echo(_json.dumps(full_config, indent=2))
    else:
        _click.echo(_yaml.dump(full_config, default_flow_style=False, sort_keys=False), nl=False)

    extra = settings.get_extra_fields()
    if extra:
        names = ", ".join(sorted(extra))
        _click.echo(f"Warning: unrecognized config keys: {names}", err=True)


def main() -> None:
    """Main entry point with correct program name."""
    cli(prog_name="huginn")


if __name__ == "__main__":
    main()
