"""Document commands for the shiftctl CLI."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Confirm

from ..app import handle_exceptions
from ..services.documents import MAX_DOCUMENTS
from ..utils.client_factory import get_documents_and_formatter

app = typer.Typer()
console = Console()


def _size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / 1024 / 1024:.2f} MB"
    return f"{num_bytes / 1024:.1f} KB"


@app.command("list")
@handle_exceptions
def list_documents(ctx: typer.Context) -> None:
    """List your uploaded documents."""
    service, formatter = get_documents_and_formatter(ctx)
    documents = asyncio.run(service.list_documents())

    if formatter.determine_format(ctx.obj["output_format"]) != "table":
        formatter.render(documents, format=ctx.obj["output_format"])
        return

    rows = [
        {
            "id": d.id,
            "title": d.display_title,
            "file": d.file_name,
            "size": _size(d.file_size),
            "uploaded": d.created_at.astimezone().strftime("%Y-%m-%d %H:%M") if d.created_at else "",
        }
        for d in documents
    ]
    formatter.render_table(rows, title=f"Documents ({len(documents)}/{MAX_DOCUMENTS})")


@app.command()
@handle_exceptions
def upload(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="PDF or DOCX file"),
    title: Optional[str] = typer.Option(None, "--title", help="Title (default: file name)"),
    description: Optional[str] = typer.Option(None, "--description", help="Description"),
) -> None:
    """Upload a document (PDF or DOCX, up to 10 MB).

    Examples:
        shiftctl documents upload ./dbs-certificate.pdf --title "DBS certificate"
    """
    service, _ = get_documents_and_formatter(ctx)
    document = asyncio.run(service.upload_document(path, title, description))
    console.print(f"[green]✓ Uploaded '{document.display_title}'[/green] ({_size(document.file_size)})")


@app.command()
@handle_exceptions
def update(
    ctx: typer.Context,
    document_id: str = typer.Argument(..., help="Document ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", help="New description"),
) -> None:
    """Change a document's title or description."""
    service, _ = get_documents_and_formatter(ctx)
    document = asyncio.run(service.update_document(document_id, title, description))
    console.print(f"[green]✓ Updated '{document.display_title}'[/green]")


@app.command()
@handle_exceptions
def delete(
    ctx: typer.Context,
    document_id: str = typer.Argument(..., help="Document ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a document."""
    if not yes and not Confirm.ask(f"Delete document {document_id}?", default=False):
        console.print("[yellow]Cancelled[/yellow]")
        return

    service, _ = get_documents_and_formatter(ctx)
    document = asyncio.run(service.delete_document(document_id))
    console.print(f"[green]✓ Deleted '{document.display_title}'[/green]")


@app.command()
@handle_exceptions
def url(
    ctx: typer.Context,
    document_id: str = typer.Argument(..., help="Document ID"),
) -> None:
    """Print a link to view a document (valid for one hour)."""
    service, _ = get_documents_and_formatter(ctx)
    signed_url = asyncio.run(service.get_document_url(document_id))
    print(signed_url)


@app.command()
@handle_exceptions
def download(
    ctx: typer.Context,
    document_id: str = typer.Argument(..., help="Document ID"),
    dest: Path = typer.Option(Path("."), "--dest", file_okay=False, help="Directory to save into"),
) -> None:
    """Download a document."""
    service, _ = get_documents_and_formatter(ctx)
    target = asyncio.run(service.download_document(document_id, dest))
    console.print(f"[green]✓ Saved to {target}[/green]")
