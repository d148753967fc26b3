"""Sign-in commands for the shiftctl CLI."""

import asyncio
from datetime import datetime, timezone

import typer
from rich.console import Console

from ..app import handle_exceptions
from ..utils.client_factory import get_workforce_and_formatter

app = typer.Typer()
console = Console()


@app.command()
@handle_exceptions
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Worker email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Password"),
) -> None:
    """Sign in with email and password.

    Examples:
        shiftctl auth login --email jane@example.com
    """
    service, _ = get_workforce_and_formatter(ctx)
    worker = asyncio.run(service.login(email, password))
    console.print(f"[green]✓ Signed in as {worker.name or worker.email}[/green]")


@app.command()
@handle_exceptions
def identify(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Worker email"),
    full_name: str = typer.Option(..., "--name", prompt="Full name", help="Full name as registered"),
    uuid_last4: str = typer.Option(..., "--uuid-last4", prompt="Last 4 digits of your worker ID", help="Last four characters of your worker ID"),
) -> None:
    """Identify yourself without a password (email, name and worker ID suffix).

    Examples:
        shiftctl auth identify --email jane@example.com --name "Jane Doe" --uuid-last4 9f3a
    """
    service, _ = get_workforce_and_formatter(ctx)
    worker = asyncio.run(service.identify_worker(email, full_name, uuid_last4))
    console.print(f"[green]✓ Identified as {worker.name or worker.email}[/green]")


@app.command()
@handle_exceptions
def logout(ctx: typer.Context) -> None:
    """Sign out and forget the stored worker and shift."""
    service, _ = get_workforce_and_formatter(ctx)
    asyncio.run(service.logout())
    console.print("[green]✓ Signed out[/green]")


@app.command()
@handle_exceptions
def status(ctx: typer.Context) -> None:
    """Show who is signed in and whether the session is still valid."""
    service, formatter = get_workforce_and_formatter(ctx)
    worker = service.current_worker()
    session = service.client.auth.session

    data = {
        "worker_id": worker.id if worker else None,
        "name": worker.name if worker else None,
        "email": worker.email if worker else None,
        "session": "none",
        "session_expires_at": None,
        "current_shift_id": service.store.current_shift_id,
    }
    if session is not None:
        data["session"] = "expired" if session.is_expired() else "valid"
        if session.expires_at:
            data["session_expires_at"] = datetime.fromtimestamp(session.expires_at, tz=timezone.utc).isoformat()

    if worker is None:
        console.print("[yellow]Not signed in. Run 'shiftctl auth login' first.[/yellow]")
    formatter.render(data, format=ctx.obj["output_format"], title="Auth Status")
