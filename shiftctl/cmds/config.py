"""Configuration management commands for the shiftctl CLI.

This module provides commands for managing backend configuration profiles
including initialization, inspection, switching and deletion.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ..app import handle_exceptions
from ..client import BackendClient
from ..exceptions import ConfigError
from ..utils.client_factory import validate_client_connection

app = typer.Typer()
console = Console()


@app.command()
@handle_exceptions
def init(
    ctx: typer.Context,
    profile_name: str = typer.Option("default", "--name", help="Profile name"),
    url: Optional[str] = typer.Option(None, "--url", help="Backend project URL"),
    anon_key: Optional[str] = typer.Option(None, "--anon-key", help="Anonymous API key"),
    timezone: Optional[str] = typer.Option(None, "--timezone", help="IANA timezone for weekly timesheets"),
    bucket: str = typer.Option("worker-documents", "--bucket", help="Storage bucket for documents"),
    retry_attempts: int = typer.Option(3, "--retry-attempts", help="Retries for network failures"),
    initial_delay: int = typer.Option(1000, "--initial-delay", help="First retry delay in milliseconds"),
    max_delay: int = typer.Option(10000, "--max-delay", help="Longest retry delay in milliseconds"),
    interactive: bool = typer.Option(True, "--interactive/--no-interactive", help="Prompt for missing values"),
    test: bool = typer.Option(True, "--test/--no-test", help="Test the connection before saving"),
) -> None:
    """Initialize a new configuration profile.

    Examples:
        # Interactive setup
        shiftctl config init

        # Non-interactive setup
        shiftctl config init --no-interactive --url "https://xyz.supabase.co" --anon-key "eyJ..."

        # Create a named profile
        shiftctl config init --name staging --url "https://staging.supabase.co"
    """
    config_manager = ctx.obj["config_manager"]

    if interactive:
        console.print(f"[bold blue]Setting up profile: {profile_name}[/bold blue]")
        console.print()
        if not url:
            url = Prompt.ask("Backend project URL", default="https://your-project.supabase.co")
        if not anon_key:
            anon_key = Prompt.ask("Anonymous API key", password=True, show_default=False)
        if not timezone:
            timezone = Prompt.ask("Timezone (blank for system local)", default="", show_default=False) or None

    if not url:
        raise ConfigError("URL is required")
    if not anon_key:
        raise ConfigError("Anonymous API key is required")

    if test:
        console.print("\n[blue]Testing connection...[/blue]")
        client = BackendClient(url=url, anon_key=anon_key, timeout=10, debug=ctx.obj["debug"])
        if client.test_connection():
            console.print("[green]✓ Connection successful![/green]")
        else:
            console.print("[yellow]⚠ Connection test failed[/yellow]")
            if interactive and not Confirm.ask("Save profile anyway?", default=True):
                console.print("[yellow]Profile creation cancelled[/yellow]")
                raise typer.Exit(1)

    profile = config_manager.create_profile(
        name=profile_name,
        url=url,
        anon_key=anon_key,
        retry_attempts=retry_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        timezone=timezone,
        document_bucket=bucket,
    )

    if config_manager.get_active_profile() == profile.name:
        console.print(f"[green]Profile '{profile.name}' saved and set as active![/green]")
    else:
        console.print(f"[green]Profile '{profile.name}' saved![/green]")


@app.command("list")
@handle_exceptions
def list_profiles(ctx: typer.Context) -> None:
    """List all configuration profiles (keys are masked)."""
    config_manager = ctx.obj["config_manager"]
    formatter = ctx.obj["output_formatter"]

    profiles = config_manager.list_profiles()
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'shiftctl config init' to create one.[/yellow]")
        return

    if formatter.determine_format(ctx.obj["output_format"]) != "table":
        formatter.render(profiles, format=ctx.obj["output_format"])
        return

    table = Table(title="Configuration Profiles")
    table.add_column("Name", style="bold")
    table.add_column("URL", style="cyan")
    table.add_column("Retries", justify="right")
    table.add_column("Delays (ms)", style="dim")
    table.add_column("Timezone", style="dim")
    table.add_column("Active", style="yellow")

    for profile in profiles:
        table.add_row(
            profile["name"],
            profile["url"],
            str(profile["retry_attempts"]),
            f"{profile['initial_delay']} / {profile['max_delay']}",
            profile["timezone"] or "local",
            "✓" if profile["active"] else "—",
        )

    console.print(table)


@app.command()
@handle_exceptions
def use(
    ctx: typer.Context,
    profile_name: str = typer.Argument(..., help="Profile to make active"),
) -> None:
    """Switch the active profile."""
    ctx.obj["config_manager"].set_active_profile(profile_name)
    console.print(f"[green]Active profile is now '{profile_name}'[/green]")


@app.command()
@handle_exceptions
def show(
    ctx: typer.Context,
    profile_name: Optional[str] = typer.Argument(None, help="Profile to show (default: active)"),
) -> None:
    """Show a profile's settings."""
    config_manager = ctx.obj["config_manager"]
    formatter = ctx.obj["output_formatter"]

    if profile_name:
        profile = config_manager.get_profile(profile_name)
    elif ctx.obj.get("profile"):
        profile = ctx.obj["profile"]
    else:
        profile = config_manager.get_default_profile()

    data = profile.model_dump()
    data["anon_key"] = f"{profile.anon_key[:8]}..."
    formatter.render(data, format=ctx.obj["output_format"], title=f"Profile: {profile.name}")


@app.command("set")
@handle_exceptions
def set_values(
    ctx: typer.Context,
    profile_name: str = typer.Argument(..., help="Profile to change"),
    url: Optional[str] = typer.Option(None, "--url", help="Backend project URL"),
    anon_key: Optional[str] = typer.Option(None, "--anon-key", help="Anonymous API key"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Request timeout in seconds"),
    retry_attempts: Optional[int] = typer.Option(None, "--retry-attempts", help="Retries for network failures"),
    initial_delay: Optional[int] = typer.Option(None, "--initial-delay", help="First retry delay in milliseconds"),
    max_delay: Optional[int] = typer.Option(None, "--max-delay", help="Longest retry delay in milliseconds"),
    timezone: Optional[str] = typer.Option(None, "--timezone", help="IANA timezone"),
    bucket: Optional[str] = typer.Option(None, "--bucket", help="Storage bucket for documents"),
) -> None:
    """Change settings of an existing profile."""
    profile = ctx.obj["config_manager"].update_profile(
        profile_name,
        url=url,
        anon_key=anon_key,
        timeout=timeout,
        retry_attempts=retry_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        timezone=timezone,
        document_bucket=bucket,
    )
    console.print(f"[green]Profile '{profile.name}' updated[/green]")


@app.command()
@handle_exceptions
def delete(
    ctx: typer.Context,
    profile_name: str = typer.Argument(..., help="Profile to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a configuration profile."""
    if not yes and not Confirm.ask(f"Delete profile '{profile_name}'?", default=False):
        console.print("[yellow]Cancelled[/yellow]")
        return

    ctx.obj["config_manager"].delete_profile(profile_name)
    console.print(f"[green]Profile '{profile_name}' deleted[/green]")


@app.command("test")
@handle_exceptions
def test_profile(ctx: typer.Context) -> None:
    """Check that the active profile can reach the backend."""
    if not validate_client_connection(ctx):
        raise typer.Exit(1)
