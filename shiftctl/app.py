"""Main Typer application for the shiftctl CLI.

This module contains the main Typer app instance and registers all command
groups. It provides the entry point for the CLI and handles global options
like profile, debug mode, output format and retry settings.
"""

import os
import sys
from functools import wraps
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.traceback import install

from . import __version__
from .config import ENV_ANON_KEY, ENV_API_URL, ConfigManager
from .render import OutputFormatter
from .exceptions import ShiftCtlError, ConfigError
from .utils.exceptions import format_error_for_user

# Rich tracebacks for unexpected errors
install(show_locals=False)

app = typer.Typer(
    name="shiftctl",
    help="Command-line client for care worker shifts, timesheets and documents",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared by every command through ctx.obj
console = Console()
err_console = Console(stderr=True)
config_manager = ConfigManager()
output_formatter = OutputFormatter(console)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"shiftctl {__version__}")
        raise typer.Exit()


def validate_profile_callback(ctx: typer.Context, param: typer.CallbackParam, value: Optional[str]) -> Optional[str]:
    """Load the profile named by --profile into ctx.meta."""
    if value is None:
        return value

    try:
        profile = config_manager.get_profile(value)
        ctx.meta["profile"] = profile
        return value
    except ConfigError as e:
        err_console.print(f"[red]Error loading profile '{value}': {e}[/red]")
        raise typer.Exit(1)


def show_environment_info(debug: bool) -> None:
    """Print which SHIFTCTL_* variables are set (the key itself is never shown)."""
    if not debug:
        return

    err_console.print("[dim]Environment variables:[/dim]")
    env_vars = {
        ENV_API_URL: os.getenv(ENV_API_URL, "[not set]"),
        ENV_ANON_KEY: "[set]" if os.getenv(ENV_ANON_KEY) else "[not set]",
    }

    for var, value in env_vars.items():
        err_console.print(f"  {var}: {value}", markup=False)


# Global options
@app.callback()
def main(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        "-p",
        help="Configuration profile to use",
        callback=validate_profile_callback,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output (requests, responses and retries)",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format (table, json, yaml)",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds (overrides the profile)",
    ),
    max_retries: Optional[int] = typer.Option(
        None,
        "--max-retries",
        help="Maximum number of retry attempts (overrides the profile)",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """shiftctl - clock in and out, and manage your timesheets, schedules and documents.

    Examples:
        # Set up a backend project
        shiftctl config init --url https://xyz.supabase.co --anon-key eyJ...

        # Sign in and start a shift
        shiftctl auth login --email jane@example.com
        shiftctl shifts clock-in --lat 51.5 --lng -0.12

        # End the shift with notes
        shiftctl shifts clock-out --notes "Morning visit complete"

        # This week's hours
        shiftctl timesheets week
    """
    # Global options for the command groups
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["output_format"] = output_format
    ctx.obj["timeout"] = timeout
    ctx.obj["max_retries"] = max_retries
    ctx.obj["console"] = console
    ctx.obj["config_manager"] = config_manager
    ctx.obj["output_formatter"] = output_formatter

    # Environment variables take precedence over stored profiles
    profile_obj = ctx.meta.get("profile")
    if profile_obj is None:
        if config_manager.has_environment_config():
            try:
                profile_obj = config_manager.get_environment_profile()
                if debug:
                    err_console.print("[dim]Created temporary profile from environment variables[/dim]")
            except ConfigError as e:
                if debug:
                    err_console.print(f"[dim]Failed to create profile from environment: {e}[/dim]")
        if profile_obj is None:
            try:
                profile_obj = config_manager.get_default_profile()
            except ConfigError:
                profile_obj = None

    ctx.obj["profile"] = profile_obj

    if debug:
        err_console.print("[dim]Debug mode enabled[/dim]")
        show_environment_info(debug)
        if profile_obj:
            err_console.print(f"[dim]Using profile: {profile_obj.name}[/dim]")


def handle_exceptions(func):
    """Print ShiftCtlError messages and exit 1 instead of showing a traceback."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ShiftCtlError as e:
            ctx = typer.get_current_context(silent=True)
            debug = ctx.obj.get("debug", False) if ctx and ctx.obj else False
            error_msg = format_error_for_user(e, debug)
            err_console.print(f"[red]{escape(error_msg)}[/red]", highlight=False)
            if not debug and not isinstance(e, ConfigError):
                err_console.print("[dim]Use --debug for more details[/dim]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(130)
    return wrapper


def register_commands():
    """Attach the command groups to the root app."""
    from .cmds import (
        auth_app,
        config_app,
        documents_app,
        schedules_app,
        shifts_app,
        timesheets_app,
    )

    app.add_typer(config_app, name="config", help="Manage configuration profiles")
    app.add_typer(auth_app, name="auth", help="Sign in and out")
    app.add_typer(shifts_app, name="shifts", help="Clock in and out of shifts")
    app.add_typer(timesheets_app, name="timesheets", help="View worked time")
    app.add_typer(schedules_app, name="schedules", help="View scheduled shifts")
    app.add_typer(documents_app, name="documents", help="Manage your documents")


# Commands import handle_exceptions from this module, so they are
# registered by cli() rather than at import time


def cli():
    """Entry point for the CLI."""
    register_commands()

    try:
        app()
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    cli()
