"""
Automated-browser PDF export.

Serves the site locally, drives headless Chromium (Playwright) to load the page,
optionally seeds the page's saved snapshot before load, writes the saved edits
into the page's fields, optionally copies the snapshot back out, hides the
control panel and prints the page to an A4 PDF.

The seed comes from the editor's snapshot store (VITAE_STORE_FILE), falling back
to the flat snapshot file; exported data goes to both, so edits saved by either
side reach the printed page.

States:
    IDLE -> SERVER_STARTED -> BROWSER_LAUNCHED -> (DATA_LOADED) -> PAGE_LOADED
         -> (DATA_APPLIED) -> (DATA_EXPORTED) -> PDF_WRITTEN -> CLEANED_UP

Any failure is logged, recorded as FAILED and re-raised after cleanup, so the
browser process and the listening socket are released on every path.
"""

import json
import os
import time
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv
from jinja2 import Environment, FileSystemLoader
from playwright.sync_api import sync_playwright

from vitae.contexts.editing.exceptions import SnapshotFileError
from vitae.contexts.editing.interchange import read_snapshot_file, write_snapshot_file
from vitae.contexts.editing.persistence import decode_snapshot
from vitae.contexts.editing.storage import (
    STORE_FILE,
    BrowserLocalStorage,
    JsonFileStorage,
    KeyValueStore,
)
from vitae.contexts.rendering.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_export_failure,
    log_export_result,
    log_state,
)
from vitae.contexts.rendering.output import resolve_output_path, write_pdf
from vitae.contexts.rendering.server import DEFAULT_PORT, StaticSiteServer
from vitae.utils.pdf_processing import page_count

load_dotenv()

SITE_PATH = Path(os.getenv("VITAE_SITE_PATH", "site"))
RESULTS_PATH = Path(os.getenv("VITAE_RESULTS_PATH", "."))
SNAPSHOT_FILE = os.getenv("VITAE_SNAPSHOT_FILE")
CHROME_PATH = os.getenv("VITAE_CHROME_PATH") or None
NAV_TIMEOUT_MS = int(os.getenv("VITAE_NAV_TIMEOUT_MS", "30000"))
PDF_MARGIN_MM = os.getenv("VITAE_PDF_MARGIN_MM", "0.5")

SNAPSHOT_FILENAME = "saved-cv-data.json"
STORAGE_KEY = "cvData"
KEY_ATTRIBUTE = "data-src"
TEMPLATES_PATH = Path(__file__).parent / "templates"

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# A4 at 72 dpi, rendered at 2x for sharp output
VIEWPORT = {"width": 595, "height": 842}
DEVICE_SCALE_FACTOR = 2

CONTROL_SELECTORS = ["#control-panel", ".controls", "#pdfButton"]

# Settle delays give page scripts time to initialize after network idle
EXPORT_SETTLE_MS = 2000
PRINT_SETTLE_MS = 3000


class GeneratorState(Enum):
    IDLE = "idle"
    SERVER_STARTED = "server-started"
    BROWSER_LAUNCHED = "browser-launched"
    DATA_LOADED = "data-loaded"
    PAGE_LOADED = "page-loaded"
    DATA_APPLIED = "data-applied"
    DATA_EXPORTED = "data-exported"
    PDF_WRITTEN = "pdf-written"
    FAILED = "failed"
    CLEANED_UP = "cleaned-up"


def hide_controls_css(selectors: List[str] = CONTROL_SELECTORS) -> str:
    """Print-time style override hiding the editor controls."""
    env = Environment(loader=FileSystemLoader(str(TEMPLATES_PATH)))
    return env.get_template("hide_controls.css.jinja").render(selectors=selectors)


def seed_storage_script(storage_key: str, snapshot: Dict[str, str]) -> str:
    """Init script writing a snapshot into localStorage before any page script runs."""
    value = json.dumps(snapshot, ensure_ascii=False)
    # about:blank and opaque origins have no localStorage
    return (
        "(() => { try { window.localStorage.setItem("
        f"{json.dumps(storage_key)}, {json.dumps(value, ensure_ascii=False)}"
        "); } catch (e) {} })();"
    )


# First node per key wins, as in the editor
APPLY_SNAPSHOT_JS = """
({ attribute, snapshot }) => {
  const seen = new Set();
  let applied = 0;
  for (const node of document.querySelectorAll(`[${attribute}]`)) {
    const key = node.getAttribute(attribute);
    if (seen.has(key)) continue;
    seen.add(key);
    if (Object.prototype.hasOwnProperty.call(snapshot, key)) {
      node.innerHTML = snapshot[key];
      applied += 1;
    }
  }
  return applied;
}
"""


class BrowserPDFGenerator:
    """
    Print the résumé page to PDF with a headless browser.

    Args:
        site_dir: Directory holding index.html and its assets
        port: Local server port
        snapshot_file: Flat snapshot file, seed fallback and export target
        store: Editor snapshot store (default: JsonFileStorage at VITAE_STORE_FILE)
        output_dir: Where date-stamped PDFs go when no explicit path is given
        storage_key: localStorage key of the snapshot
        navigation_timeout_ms: Upper bound for page navigation
        settle_ms: Delay after network idle before capture
        margin_mm: Page margin on all sides
        chrome_path: Chromium executable (None = Playwright's bundled browser)
        key_attribute: Attribute naming the field key of a node

    Example:
        >>> generator = BrowserPDFGenerator(site_dir=Path("site"))
        >>> generator.generate()  # cv-YYYY-MM-DD.pdf
    """

    def __init__(
        self,
        site_dir: Path = SITE_PATH,
        port: int = DEFAULT_PORT,
        snapshot_file: Optional[Path] = None,
        output_dir: Path = RESULTS_PATH,
        storage_key: str = STORAGE_KEY,
        navigation_timeout_ms: int = NAV_TIMEOUT_MS,
        settle_ms: int = PRINT_SETTLE_MS,
        margin_mm: str = PDF_MARGIN_MM,
        chrome_path: Optional[str] = CHROME_PATH,
        store: Optional[KeyValueStore] = None,
        key_attribute: str = KEY_ATTRIBUTE,
    ):
        self.site_dir = Path(site_dir)
        self.port = port
        if snapshot_file is None:
            snapshot_file = Path(SNAPSHOT_FILE) if SNAPSHOT_FILE else self.site_dir / SNAPSHOT_FILENAME
        self.snapshot_file = Path(snapshot_file)
        self.output_dir = Path(output_dir)
        self.storage_key = storage_key
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_ms = settle_ms
        self.margin_mm = margin_mm
        self.chrome_path = chrome_path
        self.store = store if store is not None else JsonFileStorage(STORE_FILE)
        self.key_attribute = key_attribute

        self.server: Optional[StaticSiteServer] = None
        self.browser = None
        self.context = None
        self.page = None
        self._playwright = None

        self.state = GeneratorState.IDLE
        self.history: List[GeneratorState] = [GeneratorState.IDLE]

    def _transition(self, state: GeneratorState) -> None:
        log_state(self.state, state)
        self.state = state
        self.history.append(state)

    # Steps

    def start_server(self) -> None:
        self.server = StaticSiteServer(self.site_dir, port=self.port).start()
        self._transition(GeneratorState.SERVER_STARTED)

    def launch_browser(self) -> None:
        _log_info("Launching Chromium...")
        self._playwright = sync_playwright().start()
        self.browser = self._playwright.chromium.launch(
            headless=True,
            executable_path=self.chrome_path,
            args=CHROMIUM_ARGS,
        )
        self.context = self.browser.new_context(
            viewport=VIEWPORT, device_scale_factor=DEVICE_SCALE_FACTOR
        )
        self.page = self.context.new_page()
        self.page.set_default_navigation_timeout(self.navigation_timeout_ms)
        self._transition(GeneratorState.BROWSER_LAUNCHED)

    def _saved_snapshot(self) -> Tuple[Optional[Dict[str, str]], str]:
        snapshot = decode_snapshot(self.store.get_item(self.storage_key))
        if snapshot is not None:
            return snapshot, "snapshot store"
        try:
            return read_snapshot_file(self.snapshot_file), str(self.snapshot_file)
        except SnapshotFileError as e:
            _log_warning(f"Ignoring unusable snapshot file: {e}")
            return None, str(self.snapshot_file)

    def load_saved_data(self) -> bool:
        """
        Seed the page's localStorage before the page loads.

        The editor's snapshot store wins; the flat snapshot file is the fallback.

        Returns:
            True if a snapshot was seeded, False if defaults will be used
        """
        snapshot, source = self._saved_snapshot()
        if snapshot is None:
            _log_info("No saved data found, using page defaults")
            return False

        self.context.add_init_script(script=seed_storage_script(self.storage_key, snapshot))
        self._transition(GeneratorState.DATA_LOADED)
        _log_info(f"Saved data loaded from {source} ({len(snapshot)} fields)")
        return True

    def open_page(self, settle_ms: Optional[int] = None) -> None:
        url = self.server.url
        _log_debug(f"Navigating to {url}")
        self.page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        self.page.wait_for_timeout(self.settle_ms if settle_ms is None else settle_ms)
        self._transition(GeneratorState.PAGE_LOADED)

    def apply_saved_edits(self) -> int:
        """
        Write the page's saved snapshot into its fields, so the print shows the edits.

        Returns:
            Number of fields updated (0 when the page holds no saved state)
        """
        data = decode_snapshot(BrowserLocalStorage(self.page).get_item(self.storage_key))
        if not data:
            return 0

        applied = self.page.evaluate(
            APPLY_SNAPSHOT_JS, {"attribute": self.key_attribute, "snapshot": data}
        )
        self._transition(GeneratorState.DATA_APPLIED)
        _log_info(f"Applied saved edits to {applied} of {len(data)} fields")
        return applied

    def export_current_data(self) -> Optional[Dict[str, str]]:
        """
        Copy the page's current snapshot to the snapshot file and the snapshot store.

        Returns:
            The exported mapping, or None when the page holds no saved state
        """
        data = decode_snapshot(BrowserLocalStorage(self.page).get_item(self.storage_key))
        if data is None:
            _log_info("Page holds no saved data, nothing to export")
            return None

        write_snapshot_file(self.snapshot_file, data, envelope=False)
        self.store.set_item(self.storage_key, json.dumps(data, ensure_ascii=False))
        self._transition(GeneratorState.DATA_EXPORTED)
        _log_info(f"Data exported to {self.snapshot_file}")
        return data

    def print_pdf(self, output_path: Path) -> Path:
        self.page.add_style_tag(content=hide_controls_css())
        margin = f"{self.margin_mm}mm"
        pdf_bytes = self.page.pdf(
            format="A4",
            print_background=True,
            margin={"top": margin, "right": margin, "bottom": margin, "left": margin},
            prefer_css_page_size=True,
        )
        output_path = write_pdf(pdf_bytes, output_path)
        self._transition(GeneratorState.PDF_WRITTEN)
        return output_path

    def cleanup(self) -> None:
        """Close browser, Playwright driver and server. Safe to call repeatedly."""
        if self.browser is not None:
            try:
                self.browser.close()
            except Exception as e:
                _log_warning(f"Browser close failed: {e}")
            self.browser = self.context = self.page = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as e:
                _log_warning(f"Playwright stop failed: {e}")
            self._playwright = None
        if self.server is not None:
            self.server.stop()
            self.server = None
        self._transition(GeneratorState.CLEANED_UP)
        _log_debug("Cleanup complete")

    # Entry points

    def generate(
        self,
        output_path: Optional[Path] = None,
        export_data: bool = True,
        load_data: bool = True,
    ) -> Path:
        """
        Full run: serve, launch, (seed), load, apply edits, (export data), print, clean up.

        Args:
            output_path: Destination PDF (default: cv-YYYY-MM-DD.pdf in output_dir)
            export_data: Copy the page's snapshot to the file and store before printing
            load_data: Seed the page from the store (or snapshot file) before loading

        Returns:
            Path of the written PDF

        Raises:
            Whatever failed (server, browser, navigation, print), after cleanup
        """
        output_path = resolve_output_path(output_path, self.output_dir)
        start_time = time.time()
        try:
            self.start_server()
            self.launch_browser()
            if load_data:
                self.load_saved_data()
            self.open_page()
            self.apply_saved_edits()
            if export_data:
                self.export_current_data()
            output_path = self.print_pdf(output_path)
        except Exception as e:
            log_export_failure(self.state.value, e)
            self._transition(GeneratorState.FAILED)
            raise
        finally:
            self.cleanup()

        log_export_result(
            output_path, output_path.stat().st_size, page_count(output_path), time.time() - start_time
        )
        return output_path

    def save_data(self) -> Optional[Dict[str, str]]:
        """Only copy the page's current snapshot to the snapshot file (no PDF)."""
        try:
            self.start_server()
            self.launch_browser()
            self.open_page(settle_ms=EXPORT_SETTLE_MS)
            return self.export_current_data()
        except Exception as e:
            log_export_failure(self.state.value, e)
            self._transition(GeneratorState.FAILED)
            raise
        finally:
            self.cleanup()
