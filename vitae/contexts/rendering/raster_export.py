"""
Raster PDF export.

Renders the live document in headless Chromium, takes one full-page screenshot
and lays it across A4 pages as images. No text layer survives: the PDF is
pixels only, and tall pages are cut wherever a page boundary falls.

With a site directory the markup is captured over the local static server: the
page URL is answered with the live markup and every other request (styles,
scripts, images) is served from the site, so relative assets load same-origin.
"""

import time
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

from bs4 import BeautifulSoup
from PIL import Image
from playwright.sync_api import sync_playwright
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from vitae.contexts.rendering.browser_export import (
    CHROME_PATH,
    CHROMIUM_ARGS,
    DEVICE_SCALE_FACTOR,
    NAV_TIMEOUT_MS,
    RESULTS_PATH,
    VIEWPORT,
    hide_controls_css,
)
from vitae.contexts.rendering.logger import _log_debug, _log_info, log_export_result
from vitae.contexts.rendering.output import resolve_output_path, write_pdf
from vitae.contexts.rendering.pagination import page_slices
from vitae.contexts.rendering.server import StaticSiteServer
from vitae.utils.pdf_processing import page_count


def prepare_capture_html(html: str, panel_id: str = "control-panel") -> str:
    """Copy of the page markup with the control panel (found by id) removed."""
    soup = BeautifulSoup(html, "lxml")

    panel = soup.find(id=panel_id)
    if panel is not None:
        panel.decompose()

    return str(soup)


def assemble_pdf(png_bytes: bytes) -> bytes:
    """
    Lay a full-page screenshot across as many A4 pages as it needs.

    Returns:
        PDF bytes, one cropped image per page
    """
    image = Image.open(BytesIO(png_bytes))
    image.load()
    if image.mode != "RGB":
        image = image.convert("RGB")

    width, height = image.size
    page_width, page_height = A4

    buffer = BytesIO()
    report = canvas.Canvas(buffer, pagesize=A4)
    for page_slice in page_slices(width, height):
        crop = image.crop((0, page_slice.top_px, width, page_slice.bottom_px))
        drawn_height = crop.height * page_width / width
        # reportlab's origin is bottom-left; keep the slice at the top of the page
        report.drawImage(
            ImageReader(crop), 0, page_height - drawn_height, width=page_width, height=drawn_height
        )
        report.showPage()
    report.save()
    return buffer.getvalue()


class RasterExporter:
    """
    Control-panel exporter producing an image-only PDF of the live document.

    Args:
        html_source: Returns the current page markup (e.g. EditorSession.to_html)
        output_dir: Where the date-stamped PDF is written
        panel_id: DOM id of the control panel to leave out of the capture
        site_dir: Site directory served alongside the markup (None = markup only)
        chrome_path: Chromium executable (None = Playwright's bundled browser)
    """

    def __init__(
        self,
        html_source: Callable[[], str],
        output_dir: Path = RESULTS_PATH,
        panel_id: str = "control-panel",
        site_dir: Optional[Path] = None,
        chrome_path: Optional[str] = CHROME_PATH,
        timeout_ms: int = NAV_TIMEOUT_MS,
    ):
        self.html_source = html_source
        self.output_dir = Path(output_dir)
        self.panel_id = panel_id
        self.site_dir = Path(site_dir) if site_dir is not None else None
        self.chrome_path = chrome_path
        self.timeout_ms = timeout_ms

    def _load(self, page, html: str) -> Optional[StaticSiteServer]:
        if self.site_dir is None:
            page.set_content(html, wait_until="load", timeout=self.timeout_ms)
            return None

        server = StaticSiteServer(self.site_dir, port=0).start()
        try:
            page.route(
                server.url,
                lambda route: route.fulfill(
                    status=200, content_type="text/html; charset=utf-8", body=html
                ),
            )
            page.goto(server.url, wait_until="networkidle", timeout=self.timeout_ms)
        except Exception:
            server.stop()
            raise
        return server

    def capture(self) -> bytes:
        """Full-page PNG screenshot of the current document, control panel excluded."""
        html = prepare_capture_html(self.html_source(), self.panel_id)

        server = None
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=True, executable_path=self.chrome_path, args=CHROMIUM_ARGS
            )
            try:
                page = browser.new_page(viewport=VIEWPORT, device_scale_factor=DEVICE_SCALE_FACTOR)
                server = self._load(page, html)
                # Page scripts may rebuild their own panel after load
                page.add_style_tag(content=hide_controls_css([f"#{self.panel_id}"]))
                png_bytes = page.screenshot(full_page=True, type="png")
            finally:
                browser.close()
                if server is not None:
                    server.stop()

        _log_debug(f"Captured screenshot ({len(png_bytes)} bytes)")
        return png_bytes

    def export(self, output_path: Optional[Path] = None) -> Path:
        start_time = time.time()
        output_path = resolve_output_path(output_path, self.output_dir)

        _log_info("Rasterizing page...")
        pdf_bytes = assemble_pdf(self.capture())
        output_path = write_pdf(pdf_bytes, output_path)

        log_export_result(
            output_path, len(pdf_bytes), page_count(output_path), time.time() - start_time
        )
        return output_path
