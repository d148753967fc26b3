"""Output rendering and formatting utilities.

Records and pydantic models are printed as rich tables, JSON or YAML.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional, get_args

import yaml
from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table
from typing_extensions import Literal

from .exceptions import ValidationError

OutputFormat = Literal["table", "json", "yaml"]
OUTPUT_FORMATS = get_args(OutputFormat)
ENV_OUTPUT_FORMAT = "SHIFTCTL_OUTPUT_FORMAT"


def to_plain(data: Any) -> Any:
    """Convert models (or lists of models) to JSON-compatible data."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [to_plain(item) for item in data]
    if isinstance(data, dict):
        return {key: to_plain(value) for key, value in data.items()}
    return data


class OutputFormatter:
    """Writes records as a rich table, JSON or YAML."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def determine_format(self, format_override: Optional[str] = None) -> OutputFormat:
        """Pick the output format.

        ``--output`` wins, then ``SHIFTCTL_OUTPUT_FORMAT``; otherwise a table
        on a terminal and JSON when piped.
        """
        chosen = format_override or os.environ.get(ENV_OUTPUT_FORMAT)
        if chosen:
            return chosen.lower()
        return "table" if sys.stdout.isatty() else "json"

    def render(self, data: Any, format: Optional[str] = None, **kwargs: Any) -> None:
        """Render models or records in ``format`` (see :meth:`determine_format`).

        Extra keyword arguments go to the table renderer (``title``,
        ``columns``) and are ignored by JSON and YAML.
        """
        format_name = self.determine_format(format)
        if format_name not in OUTPUT_FORMATS:
            raise ValidationError(
                f"Unknown output format: {format_name} (expected one of: {', '.join(OUTPUT_FORMATS)})"
            )
        data = to_plain(data)

        if format_name == "table":
            self.render_table(data, **kwargs)
        elif format_name == "json":
            self.render_json(data, **kwargs)
        else:
            self.render_yaml(data, **kwargs)

    def render_table(
        self,
        data: Any,
        columns: Optional[List[str]] = None,
        title: Optional[str] = None,
        show_header: bool = True,
        show_lines: bool = False,
        **kwargs: Any,
    ) -> None:
        """Render one record or a list of records as a table.

        Columns default to every key seen, in first-seen order.
        """
        data = to_plain(data)
        if not data:
            self.console.print("[dim]No data to display[/dim]")
            return
        rows: List[Dict[str, Any]] = [data] if isinstance(data, dict) else data

        if not columns:
            columns = list(dict.fromkeys(key for row in rows for key in row))

        table = Table(title=title, show_header=show_header, show_lines=show_lines, box=box.ROUNDED)
        for column in columns:
            table.add_column(column.replace("_", " ").title(), overflow="fold")
        for row in rows:
            table.add_row(*(_cell(row.get(column)) for column in columns))

        self.console.print(table)

    def render_json(self, data: Any, indent: int = 2, **kwargs: Any) -> None:
        data = to_plain(data)
        try:
            output = json.dumps([] if data is None else data, indent=indent, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Failed to serialize data to JSON: {e}")
        print(output)

    def render_yaml(self, data: Any, **kwargs: Any) -> None:
        data = to_plain(data)
        try:
            output = yaml.safe_dump(
                [] if data is None else data, default_flow_style=False, allow_unicode=True, sort_keys=False
            )
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to serialize data to YAML: {e}")
        print(output)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)
