"""Timesheet commands for the shiftctl CLI."""

import asyncio
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer
from rich.console import Console

from ..app import handle_exceptions
from ..exceptions import ValidationError
from ..utils.client_factory import get_workforce_and_formatter
from .shifts import DATE_FORMATS, shift_row

app = typer.Typer()
console = Console()


@app.command("list")
@handle_exceptions
def list_timesheets(
    ctx: typer.Context,
    date_from: Optional[datetime] = typer.Option(None, "--from", formats=DATE_FORMATS, help="First day (YYYY-MM-DD)"),
    date_to: Optional[datetime] = typer.Option(None, "--to", formats=DATE_FORMATS, help="Last day (YYYY-MM-DD)"),
    completed: bool = typer.Option(False, "--completed", help="Only completed entries"),
) -> None:
    """List timesheet entries recorded for you, newest first."""
    service, formatter = get_workforce_and_formatter(ctx)
    worker = service.require_worker()
    entries = asyncio.run(service.list_timesheets(
        worker_id=worker.id,
        date_from=date_from.date() if date_from else None,
        date_to=date_to.date() if date_to else None,
        completed_only=completed,
    ))

    if formatter.determine_format(ctx.obj["output_format"]) == "table":
        formatter.render_table([shift_row(e) for e in entries], title="Timesheets")
    else:
        formatter.render(entries, format=ctx.obj["output_format"])


@app.command()
@handle_exceptions
def week(
    ctx: typer.Context,
    week_of: Optional[datetime] = typer.Option(None, "--week-of", formats=DATE_FORMATS, help="Any day in the week (YYYY-MM-DD)"),
    tz_name: Optional[str] = typer.Option(None, "--timezone", help="IANA timezone (default: profile or system)"),
) -> None:
    """Show one Monday-to-Sunday week of shifts with the total worked time.

    Examples:
        shiftctl timesheets week
        shiftctl timesheets week --week-of 2024-04-03 --timezone Europe/London
    """
    tz = None
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError(f"Unknown timezone: {tz_name}")

    service, formatter = get_workforce_and_formatter(ctx)
    group = asyncio.run(service.weekly_timesheet(week_of.date() if week_of else None, tz))

    if formatter.determine_format(ctx.obj["output_format"]) == "table":
        formatter.render_table([shift_row(s) for s in group.shifts], title=group.week_range)
        console.print(f"[bold]Total:[/bold] {group.total_hours}")
    else:
        formatter.render({
            "week_start": group.week_start.isoformat(),
            "week_end": group.week_end.isoformat(),
            "week_range": group.week_range,
            "total_hours": group.total_hours,
            "shifts": group.shifts,
        }, format=ctx.obj["output_format"])
