"""
Rendering Context

Responsibilities:
- Serves the résumé page locally
- Prints the page to PDF through a headless browser
- Rasterizes the live document into an image-only PDF
- Names and sanity-checks exported artifacts

Owns: Browser lifecycle, PDF generation, output management
Never: Edits field content (snapshots are only seeded or copied)
"""

from vitae.contexts.rendering.browser_export import BrowserPDFGenerator, GeneratorState
from vitae.contexts.rendering.raster_export import RasterExporter

__all__ = ["BrowserPDFGenerator", "GeneratorState", "RasterExporter"]
