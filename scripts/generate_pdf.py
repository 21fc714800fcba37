#!/usr/bin/env python3
"""
Résumé PDF Generator CLI

Serves the résumé site locally, loads it in headless Chromium and prints it to
an A4 PDF named cv-YYYY-MM-DD.pdf.

Modes:
    (default)     Export the page's saved data to the snapshot file and store, then print the PDF
    --pdf-only    Print the PDF without exporting the page's data first
    --save-data   Only export the page's saved data (no PDF)

Examples:\n

    generate_pdf.py                 # Export data + generate PDF

    generate_pdf.py --pdf-only      # Generate PDF only

    generate_pdf.py --save-data     # Save browser data only
"""

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from vitae.contexts.rendering import BrowserPDFGenerator
from vitae.contexts.rendering.logger import setup_rendering_logger
from vitae.utils.logger import session_log_dir

load_dotenv()


app = typer.Typer(
    help="Generate a PDF of the résumé page with a headless browser",
    add_completion=False,
)


@app.command()
def main(
    save_data: Annotated[
        bool,
        typer.Option(
            "--save-data",
            help="Only save the page's current data to the snapshot file (no PDF)",
        ),
    ] = False,
    pdf_only: Annotated[
        bool,
        typer.Option(
            "--pdf-only",
            help="Generate the PDF without exporting the page's data first",
        ),
    ] = False,
):
    """
    Generate the résumé PDF (or only save the page data).
    """
    setup_rendering_logger(session_log_dir("render"), strategy="browser")
    generator = BrowserPDFGenerator()

    try:
        if save_data:
            typer.secho("\nSaving data from browser...", fg=typer.colors.BLUE, bold=True)
            data = generator.save_data()
            if data is None:
                typer.echo("  Page holds no saved data; nothing written.")
            else:
                typer.secho(f"✓ Data saved ({len(data)} fields)", fg=typer.colors.GREEN, bold=True)
                typer.echo(f"  File: {generator.snapshot_file}")
        else:
            typer.secho("\nGenerating PDF...", fg=typer.colors.BLUE, bold=True)
            output_path = generator.generate(export_data=not pdf_only)
            typer.secho("✓ PDF generated", fg=typer.colors.GREEN, bold=True)
            typer.echo(f"  PDF: {output_path}")
    except Exception as e:
        typer.secho(f"✗ Failed: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")


if __name__ == "__main__":
    app()
