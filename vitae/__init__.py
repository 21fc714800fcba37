"""
VITAE - editable résumé page with PDF export

A small toolkit around a static HTML résumé: fields marked in the markup become
editable in place, edits persist to a key-value store, and the page can be
exported as a PDF.

Architecture:
- Editing Context: Editable fields, snapshot persistence, control panel
- Rendering Context: Local page server, browser print-to-PDF, raster export
"""

__version__ = "0.1.0"
