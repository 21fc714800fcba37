"""Shared fixtures: a manual clock, a counting store, the sample site and a fake Playwright stack."""

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from vitae.contexts.editing.config import load_editor_options
from vitae.contexts.editing.storage import MemoryStorage

FIXTURES_PATH = Path(__file__).parent / "fixtures"
SITE_PATH = FIXTURES_PATH / "site"

FAKE_PDF_BYTES = b"%PDF-1.4 fake pdf bytes %EOF"


# ------------------------------------------------------------------
# Manual scheduler (time only moves when a test says so)
# ------------------------------------------------------------------
class _ManualCall:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.done = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    def __init__(self):
        self.now = 0.0
        self.calls = []

    def call_later(self, delay, callback):
        call = _ManualCall(self.now + delay, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self):
        return [c for c in self.calls if not c.cancelled and not c.done]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [c for c in self.pending if c.due <= target]
            if not due:
                break
            call = min(due, key=lambda c: c.due)
            self.now = call.due
            call.done = True
            call.callback()
        self.now = target


class CountingStorage(MemoryStorage):
    """MemoryStorage that counts writes."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set_item(self, key, value):
        self.writes += 1
        super().set_item(key, value)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return CountingStorage()


@pytest.fixture
def options():
    return load_editor_options()


@pytest.fixture
def site_dir():
    return SITE_PATH


@pytest.fixture
def page_html():
    return (SITE_PATH / "index.html").read_text(encoding="utf-8")


# ------------------------------------------------------------------
# Fake Playwright stack (no real browser download / spawn)
# ------------------------------------------------------------------
class FakeRoute:
    def __init__(self, page, url):
        self.page = page
        self.url = url

    def fulfill(self, status=200, body=None, content_type=None, **kwargs):
        self.page.fulfilled.append({"url": self.url, "status": status, "content_type": content_type})
        self.page.content = body


class FakePage:
    def __init__(self, browser):
        self.browser = browser
        self.local_storage = {}
        self.dom = {}
        self.events = []
        self.visited = []
        self.styles = []
        self.routes = {}
        self.fulfilled = []
        self.content = None
        self.pdf_kwargs = None
        self.screenshot_bytes = b""

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    def route(self, url, handler):
        self.routes[url] = handler

    def goto(self, url, **kwargs):
        if self.browser.fail_navigation:
            raise TimeoutError(f"Navigation to {url} timed out")
        self.visited.append(url)
        self.events.append("goto")
        if url in self.routes:
            self.routes[url](FakeRoute(self, url))
        # Init scripts run before page scripts on every navigation
        for script in self.browser.init_scripts:
            self.browser.seeded.append(script)
            args = script[script.index("setItem(") + len("setItem(") : script.rindex("); } catch")]
            key, value = json.loads(f"[{args}]")
            self.local_storage[key] = value
        if self.browser.storage_after_load is not None:
            self.local_storage.update(self.browser.storage_after_load)

    def wait_for_timeout(self, timeout):
        return None

    def evaluate(self, expression, arg=None):
        if "innerHTML" in expression:
            self.events.append("apply")
            self.dom.update(arg["snapshot"])
            return len(arg["snapshot"])
        if "getItem" in expression:
            return self.local_storage.get(arg)
        if "setItem" in expression:
            key, value = arg
            self.local_storage[key] = value
        if "removeItem" in expression:
            self.local_storage.pop(arg, None)
        return None

    def add_style_tag(self, content=None, **kwargs):
        self.styles.append(content)

    def set_content(self, html, **kwargs):
        self.content = html

    def pdf(self, **kwargs):
        self.events.append("pdf")
        self.pdf_kwargs = kwargs
        return self.browser.pdf_bytes

    def screenshot(self, **kwargs):
        self.events.append("screenshot")
        return self.browser.screenshot_bytes


class FakeContext:
    def __init__(self, browser):
        self.browser = browser

    def add_init_script(self, script=None, **kwargs):
        self.browser.init_scripts.append(script)

    def new_page(self):
        self.browser.page = FakePage(self.browser)
        return self.browser.page


class FakeBrowser:
    def __init__(self):
        self.closed = False
        self.fail_navigation = False
        self.storage_after_load = None
        self.pdf_bytes = FAKE_PDF_BYTES
        self.screenshot_bytes = b""
        self.init_scripts = []
        self.seeded = []
        self.page = None
        self.launch_kwargs = None

    def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return FakeContext(self)

    def new_page(self, **kwargs):
        self.page = FakePage(self)
        return self.page

    def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, browser):
        self.stopped = False
        self.chromium = SimpleNamespace(launch=self._launch)
        self._browser = browser

    def _launch(self, **kwargs):
        self._browser.launch_kwargs = kwargs
        return self._browser

    def start(self):
        return self

    def stop(self):
        self.stopped = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False  # propagate errors


@pytest.fixture
def fake_browser():
    return FakeBrowser()


@pytest.fixture
def fake_playwright(fake_browser):
    return FakePlaywright(fake_browser)
