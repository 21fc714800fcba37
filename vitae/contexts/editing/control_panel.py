"""
Control panel: save, reset and export behind a collapsible affordance.

The panel only coordinates. Saving and resetting go through SnapshotPersistence;
export goes through whatever exporter was registered with register_exporter(),
so the panel never knows how PDF bytes are produced.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol

from bs4 import BeautifulSoup, Tag
from jinja2 import Environment, FileSystemLoader, select_autoescape

from vitae.contexts.editing.debounce import Scheduler
from vitae.contexts.editing.exceptions import ExporterNotRegisteredError
from vitae.contexts.editing.fields import EditableDocument
from vitae.contexts.editing.logger import _log_error, _log_info, _log_success
from vitae.contexts.editing.persistence import SnapshotPersistence

TEMPLATES_PATH = Path(__file__).parent / "templates"

SUCCESS_COLOR = "#28a745"
ERROR_COLOR = "#dc3545"

RESET_PROMPT = "Are you sure you want to reset all changes?"

PANEL_ACTIONS = [
    {"name": "save", "label": "💾 Save"},
    {"name": "reset", "label": "🔄 Reset changes"},
    {"name": "pdf", "label": "📄 Download PDF"},
]


class Exporter(Protocol):
    def export(self) -> Any: ...


@dataclass
class Notification:
    """A transient message shown to the user."""

    message: str
    color: str
    duration: float


class Notifier:
    """
    Transient notifications.

    Each notification is logged, kept in `active` for its display duration and
    then expired through the scheduler. At most `max_active` stay on screen.
    """

    def __init__(self, scheduler: Scheduler, duration: float = 3.0, max_active: int = 5):
        self.scheduler = scheduler
        self.duration = duration
        self.max_active = max_active
        self.active: List[Notification] = []

    def notify(self, message: str, color: str = SUCCESS_COLOR) -> Notification:
        notification = Notification(message=message, color=color, duration=self.duration)
        if color == ERROR_COLOR:
            _log_error(message)
        elif color == SUCCESS_COLOR:
            _log_success(message)
        else:
            _log_info(message)

        self.active.append(notification)
        del self.active[: -self.max_active]
        self.scheduler.call_later(self.duration, lambda: self._expire(notification))
        return notification

    @property
    def messages(self) -> List[str]:
        return [notification.message for notification in self.active]

    def _expire(self, notification: Notification) -> None:
        if notification in self.active:
            self.active.remove(notification)


class ControlPanel:
    """
    Save / reset / export actions for an editor session.

    Args:
        persistence: Snapshot persistence of the edited document
        notifier: Where acknowledgments and errors are shown
        scheduler: Used for the delayed reload after reset
        confirm: Asks the user a yes/no question
        reload: Reloads the document (discarding in-memory state)
        reload_delay: Seconds between reset acknowledgment and reload
        element_id: DOM id of the rendered panel
    """

    def __init__(
        self,
        persistence: SnapshotPersistence,
        notifier: Notifier,
        scheduler: Scheduler,
        confirm: Callable[[str], bool],
        reload: Callable[[], None],
        reload_delay: float = 1.0,
        element_id: str = "control-panel",
    ):
        self.persistence = persistence
        self.notifier = notifier
        self.scheduler = scheduler
        self.confirm = confirm
        self.reload = reload
        self.reload_delay = reload_delay
        self.element_id = element_id
        self.is_open = False
        self.exporter: Optional[Exporter] = None
        self._document: Optional[EditableDocument] = None

        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_PATH)),
            autoescape=select_autoescape(["html", "jinja"]),
        )

    @property
    def toggle_glyph(self) -> str:
        return "◀" if self.is_open else "▶"

    def toggle(self) -> bool:
        """Open or collapse the panel, refreshing it in the document it was rendered into."""
        self.is_open = not self.is_open
        if self._document is not None:
            self.render(self._document)
        return self.is_open

    def register_exporter(self, exporter: Exporter) -> None:
        self.exporter = exporter
        _log_info(f"Exporter registered: {type(exporter).__name__}")

    def save(self) -> None:
        self.persistence.save()
        self.notifier.notify("💾 Data saved!", SUCCESS_COLOR)

    def reset(self) -> bool:
        """
        Clear the snapshot after confirmation, then reload after a short delay.

        Returns:
            True if the reset was confirmed and performed
        """
        if not self.confirm(RESET_PROMPT):
            return False

        self.persistence.reset()
        self.notifier.notify("🔄 Changes reset!", ERROR_COLOR)
        self.scheduler.call_later(self.reload_delay, self.reload)
        return True

    def export(self) -> Any:
        """
        Save, then hand off to the registered exporter.

        Returns:
            Whatever the exporter returns, or None if it failed

        Raises:
            ExporterNotRegisteredError: If no exporter was registered
        """
        if self.exporter is None:
            raise ExporterNotRegisteredError("No exporter registered with the control panel")

        self.persistence.save()
        try:
            return self.exporter.export()
        except Exception as e:
            _log_error(f"Export failed: {e}")
            self.notifier.notify("❌ PDF generation failed", ERROR_COLOR)
            return None

    def render(self, document: EditableDocument) -> Tag:
        """Insert (or refresh) the panel markup at the end of the document body."""
        markup = self._env.get_template("control_panel.html.jinja").render(
            element_id=self.element_id,
            is_open=self.is_open,
            toggle_glyph=self.toggle_glyph,
            title="⚙️ CV Controls",
            actions=PANEL_ACTIONS,
        )
        panel = BeautifulSoup(markup, "html.parser").find(id=self.element_id)

        existing = document.find_by_id(self.element_id)
        if existing is not None:
            existing.replace_with(panel)
        else:
            container = document.soup.body or document.soup
            container.append(panel)
        self._document = document
        return panel
