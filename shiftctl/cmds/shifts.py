"""Shift clocking commands for the shiftctl CLI."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from ..app import handle_exceptions
from ..exceptions import ValidationError
from ..models import Location, Shift
from ..utils.client_factory import get_workforce_and_formatter
from ..utils.dates import format_duration

app = typer.Typer()
console = Console()

DATE_FORMATS = ["%Y-%m-%d"]


def parse_location(lat: Optional[float], lng: Optional[float]) -> Optional[Location]:
    """Build a location from optional coordinates; both or neither must be given."""
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise ValidationError("Provide both --lat and --lng, or neither")
    try:
        return Location(lat=lat, lng=lng)
    except ValueError as e:
        raise ValidationError(f"Invalid location: {e}")


def shift_row(shift: Shift) -> Dict[str, Any]:
    """Table row for a shift or timesheet."""
    clock_out = shift.clock_out_time.astimezone().strftime("%Y-%m-%d %H:%M") if shift.clock_out_time else "active"
    return {
        "id": shift.id,
        "clock_in": shift.clock_in_time.astimezone().strftime("%Y-%m-%d %H:%M"),
        "clock_out": clock_out,
        "duration": shift.shift_duration or format_duration(shift.elapsed()),
        "notes": shift.shift_notes or "",
    }


@app.command("clock-in")
@handle_exceptions
def clock_in(
    ctx: typer.Context,
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude of where you are"),
    lng: Optional[float] = typer.Option(None, "--lng", help="Longitude of where you are"),
) -> None:
    """Start a shift.

    Examples:
        shiftctl shifts clock-in
        shiftctl shifts clock-in --lat 51.5072 --lng -0.1276
    """
    location = parse_location(lat, lng)
    service, _ = get_workforce_and_formatter(ctx)
    shift = asyncio.run(service.clock_in(location))
    started = shift.clock_in_time.astimezone().strftime("%H:%M")
    console.print(f"[green]✓ Clocked in at {started}[/green] (shift {shift.id})")


@app.command("clock-out")
@handle_exceptions
def clock_out(
    ctx: typer.Context,
    notes: str = typer.Option(..., "--notes", "-n", prompt="Shift notes", help="What happened during the shift"),
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude of where you are"),
    lng: Optional[float] = typer.Option(None, "--lng", help="Longitude of where you are"),
) -> None:
    """End the active shift. You are signed out afterwards.

    Examples:
        shiftctl shifts clock-out --notes "Medication round done, handed over to night staff"
    """
    location = parse_location(lat, lng)
    service, _ = get_workforce_and_formatter(ctx)
    shift = asyncio.run(service.clock_out(notes, location))
    console.print(f"[green]✓ Clocked out. Shift duration: {shift.shift_duration}[/green]")
    console.print("[dim]You have been signed out. Sign in again to start your next shift.[/dim]")


@app.command()
@handle_exceptions
def status(ctx: typer.Context) -> None:
    """Show the active shift, if any."""
    service, formatter = get_workforce_and_formatter(ctx)
    shift = asyncio.run(service.restore_active_shift())
    if shift is None:
        console.print("[yellow]Not clocked in[/yellow]")
        return

    if formatter.determine_format(ctx.obj["output_format"]) == "table":
        elapsed = format_duration(shift.elapsed(datetime.now(timezone.utc)))
        started = shift.clock_in_time.astimezone().strftime("%Y-%m-%d %H:%M")
        console.print(f"[green]Clocked in[/green] since {started} ({elapsed})")
    else:
        formatter.render(shift, format=ctx.obj["output_format"])


@app.command("list")
@handle_exceptions
def list_shifts(
    ctx: typer.Context,
    date_from: Optional[datetime] = typer.Option(None, "--from", formats=DATE_FORMATS, help="First day (YYYY-MM-DD)"),
    date_to: Optional[datetime] = typer.Option(None, "--to", formats=DATE_FORMATS, help="Last day (YYYY-MM-DD)"),
    completed: bool = typer.Option(False, "--completed", help="Only completed shifts"),
) -> None:
    """List your shifts, newest first."""
    service, formatter = get_workforce_and_formatter(ctx)
    worker = service.require_worker()
    shifts = asyncio.run(service.list_shifts(
        worker_id=worker.id,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
        completed_only=completed,
    ))

    if formatter.determine_format(ctx.obj["output_format"]) == "table":
        formatter.render_table([shift_row(s) for s in shifts], title="Shifts")
    else:
        formatter.render(shifts, format=ctx.obj["output_format"])
