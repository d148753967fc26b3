"""Schedule commands for the shiftctl CLI."""

import asyncio
from datetime import date, datetime
from typing import Optional

import typer
from rich.console import Console

from ..app import handle_exceptions
from ..utils.client_factory import get_workforce_and_formatter
from ..utils.dates import format_schedule_date, format_time_range, get_week_end, get_week_start
from .shifts import DATE_FORMATS

app = typer.Typer()
console = Console()


@app.command("list")
@handle_exceptions
def list_schedules(
    ctx: typer.Context,
    date_from: Optional[datetime] = typer.Option(None, "--from", formats=DATE_FORMATS, help="First day (default: this Monday)"),
    date_to: Optional[datetime] = typer.Option(None, "--to", formats=DATE_FORMATS, help="Last day (default: this Sunday)"),
    status: str = typer.Option("all", "--status", help="BOOKED, STARTED, COMPLETED or all"),
) -> None:
    """List scheduled shifts in date order.

    Examples:
        shiftctl schedules list
        shiftctl schedules list --from 2024-04-01 --to 2024-04-30 --status BOOKED
    """
    today = date.today()
    start = date_from.date() if date_from else get_week_start(today)
    end = date_to.date() if date_to else get_week_end(start)

    service, formatter = get_workforce_and_formatter(ctx)
    worker = service.current_worker()
    schedules = asyncio.run(service.list_schedules(
        date_from=start,
        date_to=end,
        status=status,
        worker_id=worker.id if worker else None,
    ))

    if formatter.determine_format(ctx.obj["output_format"]) != "table":
        formatter.render(schedules, format=ctx.obj["output_format"])
        return

    rows = [
        {
            "date": format_schedule_date(s.scheduled_date),
            "time": format_time_range(s.start_time, s.end_time),
            "location": s.location_name or s.location_address or "",
            "status": s.status.value,
            "notes": s.notes or "",
        }
        for s in schedules
    ]
    formatter.render_table(rows, title=f"Schedule {start.isoformat()} to {end.isoformat()}")
