#!/usr/bin/env python3
"""
Snapshot Management CLI

Works on the file-backed snapshot store of the résumé page (VITAE_STORE_FILE).

Commands:
    show       - List stored fields
    export     - Write the stored snapshot to an enveloped JSON file
    apply      - Load a snapshot file (flat or enveloped) into the store
    reset      - Delete the stored snapshot
    rasterize  - Export an image-only PDF of the page with stored edits applied

Examples:\n

    manage_snapshot.py show

    manage_snapshot.py export --output cv-data.json

    manage_snapshot.py apply saved-cv-data.json

    manage_snapshot.py reset --yes

    manage_snapshot.py rasterize
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from vitae.contexts.editing import EditorSession
from vitae.contexts.editing.exceptions import SnapshotFileError
from vitae.contexts.editing.interchange import read_snapshot_file, write_snapshot_file
from vitae.contexts.editing.logger import setup_editing_logger
from vitae.contexts.editing.storage import STORE_FILE, JsonFileStorage
from vitae.contexts.rendering import RasterExporter
from vitae.utils.logger import session_log_dir

load_dotenv()
SITE_PATH = Path(os.getenv("VITAE_SITE_PATH", "site"))
RESULTS_PATH = Path(os.getenv("VITAE_RESULTS_PATH", "."))


app = typer.Typer(
    help="Inspect, export, apply and reset saved résumé edits",
    add_completion=False,
    invoke_without_command=True,
)


def open_session(**kwargs) -> EditorSession:
    """Editor session on the site's index.html backed by the store file."""
    index = SITE_PATH / "index.html"
    if not index.exists():
        typer.secho(f"Error: page not found: {index}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return EditorSession.from_file(index, JsonFileStorage(STORE_FILE), **kwargs)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    setup_editing_logger(session_log_dir("edit"), storage=str(STORE_FILE))
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("show")
def show_command():
    """
    List the fields held in the store.
    """
    session = open_session()
    data = session.persistence.read_snapshot()
    if not data:
        typer.echo("No saved data; the page shows its defaults.")
        raise typer.Exit(code=0)

    typer.secho(f"\n{len(data)} saved fields in {STORE_FILE}", fg=typer.colors.BLUE, bold=True)
    for key, value in data.items():
        marker = "" if key in session.document else "  (no matching field)"
        typer.echo(f"  {key}: {value[:60]}{marker}")
    typer.echo("")


@app.command("export")
def export_command(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Destination JSON file"),
    ] = Path("cv-data.json"),
):
    """
    Write the stored snapshot to a JSON file with timestamp and version.
    """
    session = open_session()
    data = session.persistence.read_snapshot() or {}
    write_snapshot_file(output, data, envelope=True)
    typer.secho(f"✓ Exported {len(data)} fields to {output}", fg=typer.colors.GREEN, bold=True)


@app.command("apply")
def apply_command(
    snapshot_file: Annotated[
        Path,
        typer.Argument(help="Snapshot file, flat or enveloped"),
    ],
):
    """
    Apply a snapshot file to the page and save it to the store.

    Keys with no matching field on the page are ignored.
    """
    try:
        data = read_snapshot_file(snapshot_file)
    except SnapshotFileError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if data is None:
        typer.secho(f"Error: file not found: {snapshot_file}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    session = open_session()
    restored = session.persistence.apply(data)
    session.persistence.save()
    typer.secho(f"✓ Applied {restored} of {len(data)} fields", fg=typer.colors.GREEN, bold=True)


@app.command("reset")
def reset_command(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
):
    """
    Delete the stored snapshot so the page shows its defaults again.
    """
    session = open_session(confirm=lambda prompt: yes or typer.confirm(prompt))
    if session.panel.reset():
        typer.secho("✓ Changes reset", fg=typer.colors.GREEN, bold=True)
    else:
        typer.echo("Reset cancelled.")


@app.command("rasterize")
def rasterize_command(
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-d", help="Directory for the PDF (default: VITAE_RESULTS_PATH)"),
    ] = None,
):
    """
    Export an image-only PDF of the page with stored edits applied.
    """
    session = open_session()
    session.register_exporter(
        RasterExporter(
            session.to_html,
            output_dir=output_dir or RESULTS_PATH,
            panel_id=session.options.panel_element_id,
            site_dir=SITE_PATH,
        )
    )

    output_path = session.panel.export()
    if output_path is None:
        typer.secho("✗ PDF generation failed (see log)\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho("✓ PDF generated", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  PDF: {output_path}")


if __name__ == "__main__":
    app()
