"""CLI entry point for afvikle.

Provides commands: add, list, show, run, delete, info, config.

Errors from the store, directory resolution and dispatch are printed as
``Error: ...`` on stdout and the process still exits 0. Only a database
that cannot be opened aborts with a non-zero status.
"""

import logging
from datetime import datetime

import click

from afvikle import __version__
from afvikle.config import Config, get_config_path, load_config, save_config
from afvikle.db import Command, Database, StoreError
from afvikle.resolve import ResolveError, resolve_directory
from afvikle.runner import ExecutionError, choose_working_dir, run_command

logger = logging.getLogger(__name__)

_AGE_UNITS = [
    ("month", 2592000),
    ("week", 604800),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
]


def _age(record: Command) -> str:
    """How long ago a command was added, e.g. "3 days ago"."""
    added = record.added_at
    if added is None:
        return record.created_at

    seconds = int((datetime.now() - added).total_seconds())
    for unit, size in _AGE_UNITS:
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def _error(message: str) -> None:
    click.echo(f"Error: {message}")


def _get_db(ctx: click.Context) -> Database:
    """Open the database on first use and close it when the CLI exits."""
    root = ctx.find_root()
    db = root.obj.get("db")
    if db is not None:
        return db

    config = load_config()
    path = root.obj.get("db_path") or config.db_path
    try:
        db = Database(
            path,
            timeout=config.lock_timeout,
            default_description=config.default_description,
        )
    except StoreError as e:
        click.echo(f"Failed to initialize database: {e}", err=True)
        ctx.exit(1)

    root.obj["db"] = db
    root.call_on_close(db.close)
    return db


@click.group()
@click.option("--db", "db_path", default=None, metavar="PATH", help="Use this database file instead of the one next to afv.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.version_option(__version__, prog_name="afv")
@click.pass_context
def cli(ctx, db_path, verbose):
    """afv, short for afvikle. Store commands once and run them from anywhere."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command()
@click.option("--name", default="", help="Command name")
@click.option("--desc", default="", help="Command description")
@click.option("--cmd", "command", default="", help="Command to execute")
@click.option("--dir", "directory", default="", help="Working directory for the command (optional). Accepts '.', '~' and '~/path'.")
@click.pass_context
def add(ctx, name: str, desc: str, command: str, directory: str):
    """Add a new command to the database."""
    if not name.strip():
        _error("name is required")
        return
    if not command.strip():
        _error("cmd is required")
        return

    db = _get_db(ctx)

    try:
        resolved_dir = resolve_directory(directory)
    except ResolveError as e:
        _error(f"failed to resolve directory: {e}")
        return

    try:
        record = db.add(name, desc, command, resolved_dir)
    except StoreError as e:
        _error(f"failed to add command: {e}")
        return

    click.echo(f"Command '{record.name}' added successfully.")
    if record.working_dir:
        click.echo(f"Working directory: {record.working_dir}")


@cli.command(name="list")
@click.option("--long", "long_format", is_flag=True, help="Also show when each command was added.")
@click.pass_context
def list_commands(ctx, long_format: bool):
    """Returns a list of commands runnable with afv."""
    db = _get_db(ctx)
    width = load_config().name_width

    try:
        commands = db.get_all()
    except StoreError as e:
        _error(f"failed to get commands: {e}")
        return

    if not commands:
        click.echo("No commands found. Use 'afv add' to add commands.")
        return

    click.echo("Available commands:")
    for cmd in commands:
        line = f"  {cmd.name:<{width}} {cmd.description}"
        if cmd.working_dir:
            line += f" (dir: {cmd.working_dir})"
        if long_format:
            line += f"  · added {_age(cmd)}"
        click.echo(line)


@cli.command()
@click.option("--name", default="", help="Command name to show")
@click.pass_context
def show(ctx, name: str):
    """Show every stored field of a command."""
    if not name:
        _error("name is required")
        return

    db = _get_db(ctx)
    try:
        record = db.get(name)
    except StoreError as e:
        _error(f"failed to get command: {e}")
        return

    click.echo(f"  name         {record.name}")
    click.echo(f"  description  {record.description}")
    click.echo(f"  command      {click.style(record.command, bold=True)}")
    click.echo(f"  directory    {record.working_dir or '(current directory)'}")
    click.echo(f"  added        {record.created_at}  ({_age(record)})")


@cli.command()
@click.option("--name", default="", help="Command name to run")
@click.option("--dir", "directory", default="", help="Working directory to run the command in (optional)")
@click.pass_context
def run(ctx, name: str, directory: str):
    """Run a stored command."""
    if not name:
        _error("name is required")
        return

    db = _get_db(ctx)
    try:
        record = db.get(name)
    except StoreError as e:
        _error(f"failed to get command: {e}")
        return

    try:
        cwd = choose_working_dir(directory, record.working_dir)
    except ResolveError as e:
        _error(f"failed to resolve working directory: {e}")
        return

    logger.debug("Running %r from %s", name, cwd)

    click.echo(f"Executing: {record.command}")
    if cwd:
        click.echo(f"Working directory: {cwd}")

    try:
        run_command(record.command, cwd)
    except ExecutionError as e:
        _error(str(e))


@cli.command()
@click.option("--name", default="", help="Command name to delete")
@click.option("--all", "delete_all", is_flag=True, help="Delete all commands")
@click.pass_context
def delete(ctx, name: str, delete_all: bool):
    """Delete a stored command."""
    if delete_all:
        db = _get_db(ctx)
        try:
            commands = db.get_all()
        except StoreError as e:
            _error(f"failed to get commands: {e}")
            return

        if not commands:
            click.echo("No commands to delete.")
            return

        click.echo(f"This will delete {len(commands)} command(s). Are you sure? (y/N): ", nl=False)
        response = click.get_text_stream("stdin").readline()

        if response.strip().lower() not in ("y", "yes"):
            click.echo("Operation cancelled.")
            return

        # Each delete commits on its own; an interrupted loop leaves the rest in place
        for cmd in commands:
            try:
                db.delete(cmd.name)
            except StoreError as e:
                _error(f"failed to delete command '{cmd.name}': {e}")
                return

        click.echo(f"Successfully deleted {len(commands)} command(s).")
        return

    if not name:
        _error("either --name or --all is required")
        return

    db = _get_db(ctx)
    try:
        db.delete(name)
    except StoreError as e:
        _error(f"failed to delete command: {e}")
        return

    click.echo(f"Command '{name}' deleted successfully.")


@cli.command()
@click.pass_context
def info(ctx):
    """Show database information."""
    db = _get_db(ctx)
    try:
        total = db.count()
    except StoreError as e:
        _error(f"failed to get commands: {e}")
        return

    click.echo(f"Database location: {db.path}")
    click.echo(f"Total commands: {total}")


@cli.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--reset", is_flag=True, help="Reset all settings to defaults")
def config(key, value, reset):
    """View or update configuration settings.

    Show current config:
        afv config

    Update a setting:
        afv config name_width 20

    Reset to defaults:
        afv config --reset

    Available settings:
        lock_timeout          Seconds to wait for a locked database (default: 1.0)
        default_description   Description stored when none is given
        name_width            Width of the name column in `afv list` (default: 15)
        db_path               Database file to use instead of the one next to afv
    """
    config_path = get_config_path()

    if reset:
        save_config(Config())
        click.echo("  config   reset to defaults")
        return

    # Show current config
    if key is None:
        cfg = load_config()
        click.echo(f"Configuration file: {config_path}")
        click.echo()
        click.echo(f"  lock_timeout        = {cfg.lock_timeout}")
        click.echo(f"  default_description = {cfg.default_description}")
        click.echo(f"  name_width          = {cfg.name_width}")
        if cfg.db_path:
            click.echo(f"  db_path             = {cfg.db_path}")
        return

    valid_keys = ["lock_timeout", "default_description", "name_width", "db_path"]
    if key not in valid_keys:
        click.echo(f"Error: Unknown setting '{key}'", err=True)
        click.echo(f"Valid settings: {', '.join(valid_keys)}", err=True)
        return

    cfg = load_config()

    if value is None:
        click.echo(f"  {key} = {getattr(cfg, key)}")
        return

    if key == "name_width":
        try:
            value = int(value)
        except ValueError:
            click.echo(f"Error: {key} must be a number", err=True)
            return
        if value < 1 or value > 80:
            click.echo(f"Error: {key} must be between 1 and 80", err=True)
            return
    elif key == "lock_timeout":
        try:
            value = float(value)
        except ValueError:
            click.echo(f"Error: {key} must be a number", err=True)
            return
        if value <= 0:
            click.echo(f"Error: {key} must be greater than 0", err=True)
            return
    elif not value.strip():
        click.echo(f"Error: {key} must not be empty", err=True)
        return

    setattr(cfg, key, value)
    save_config(cfg)
    click.echo(f"  config   {key} = {value}")
