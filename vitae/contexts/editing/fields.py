"""
Editable fields of a résumé page.

EditableDocument parses the page and marks the designated nodes editable in
place. Each EditableField models what a contenteditable node does with the
keyboard and clipboard: plain-text paste, optional per-field length limit,
Enter commits, Shift+Enter breaks the line. FieldManager wires field events to
persistence: input schedules a debounced save, blur saves immediately.

Text offsets count characters of the field's visible text, where a <br> counts
as a single newline.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from vitae.contexts.editing.config import EditorOptions, load_editor_options
from vitae.contexts.editing.debounce import Debouncer, Scheduler
from vitae.contexts.editing.logger import _log_debug, _log_warning

# Keys that move the caret or delete; never blocked by a length limit
NAVIGATION_KEYS = frozenset(
    ["Backspace", "Delete", "ArrowLeft", "ArrowRight", "ArrowUp", "ArrowDown", "Home", "End", "Tab"]
)

INLINE_EDIT_STYLE = "outline: none; cursor: text;"
LIMIT_COLOR = "#f44336"

FIELD_EVENTS = ("input", "blur", "limit")


class KeyResult(Enum):
    """What a keystroke did to the field."""

    INSERTED = "inserted"
    LINE_BREAK = "line_break"
    DELETED = "deleted"
    MOVED = "moved"
    BLOCKED = "blocked"
    COMMIT = "commit"
    IGNORED = "ignored"


def parse_max_length(raw) -> Optional[int]:
    """Character limit from an attribute value; anything non-numeric or negative means no limit."""
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def _is_text(node) -> bool:
    # Comments, CDATA and doctypes are NavigableStrings too, but never visible text
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _is_line_break(node) -> bool:
    return isinstance(node, Tag) and node.name == "br"


def _atom_length(atom) -> int:
    return 1 if _is_line_break(atom) else len(atom)


class EditableField:
    """
    One editable node, keyed by its stable key attribute.

    Attributes:
        key: Stable field key (value of the key attribute)
        node: The BeautifulSoup tag being edited
        max_length: Character limit, or None for unlimited
        selection: (start, end) text offsets; equal values mean a collapsed caret
        focused: Whether the field currently has focus
    """

    def __init__(self, key: str, node: Tag, soup: BeautifulSoup, max_length: Optional[int] = None):
        self.key = key
        self.node = node
        self.max_length = max_length
        self._soup = soup
        self._listeners: Dict[str, List[Callable[["EditableField"], None]]] = {
            event: [] for event in FIELD_EVENTS
        }
        self.focused = False
        end = len(self.text)
        self.selection: Tuple[int, int] = (end, end)

    def __repr__(self) -> str:
        return f"EditableField(key={self.key!r}, text={self.text!r})"

    # Content

    def _atoms(self) -> Iterator:
        for node in self.node.descendants:
            if _is_text(node) or _is_line_break(node):
                yield node

    @property
    def text(self) -> str:
        return "".join("\n" if _is_line_break(atom) else str(atom) for atom in self._atoms())

    @property
    def value(self) -> str:
        """Inner markup fragment, the form persisted in snapshots."""
        return self.node.decode_contents()

    def set_value(self, fragment: str) -> None:
        """Replace the field's contents with a markup fragment."""
        self.node.clear()
        parsed = BeautifulSoup(fragment, "html.parser")
        for child in list(parsed.contents):
            self.node.append(child.extract())
        end = len(self.text)
        self.selection = (end, end)

    @property
    def selected_text(self) -> str:
        start, end = self.selection
        return self.text[start:end]

    # Events

    def on(self, event: str, callback: Callable[["EditableField"], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown field event '{event}'. Expected one of {FIELD_EVENTS}")
        self._listeners[event].append(callback)

    def _emit(self, event: str) -> None:
        for callback in self._listeners[event]:
            callback(self)

    # Focus and selection

    def focus(self) -> None:
        self.focused = True
        end = len(self.text)
        self.selection = (end, end)

    def blur(self) -> None:
        self.focused = False
        self._emit("blur")

    def select(self, start: int, end: Optional[int] = None) -> None:
        length = len(self.text)
        end = start if end is None else end
        start, end = sorted((max(0, min(start, length)), max(0, min(end, length))))
        self.selection = (start, end)

    # Editing

    def press_key(
        self, key: str, shift: bool = False, ctrl: bool = False, meta: bool = False
    ) -> KeyResult:
        """
        Apply one keydown to the field.

        Args:
            key: DOM key name ("a", "Enter", "Backspace", ...)
            shift, ctrl, meta: Modifier state

        Returns:
            KeyResult describing the outcome
        """
        if key in NAVIGATION_KEYS:
            return self._navigate(key)

        if key == "Enter" and not shift:
            self.blur()
            return KeyResult.COMMIT

        # Shortcuts (copy, select all, undo...) are left to the host
        if ctrl or meta:
            return KeyResult.IGNORED

        if self.max_length is not None and len(self.text) >= self.max_length:
            self._emit("limit")
            return KeyResult.BLOCKED

        if key == "Enter":
            self._replace_selection("\n")
            self._emit("input")
            return KeyResult.LINE_BREAK

        if len(key) == 1:
            self._replace_selection(key)
            self._emit("input")
            return KeyResult.INSERTED

        return KeyResult.IGNORED

    def type_text(self, text: str) -> int:
        """Press one key per character; returns how many were inserted."""
        inserted = 0
        for char in text:
            key = "Enter" if char == "\n" else char
            result = self.press_key(key, shift=(char == "\n"))
            if result in (KeyResult.INSERTED, KeyResult.LINE_BREAK):
                inserted += 1
        return inserted

    def paste(self, clipboard_text: str) -> str:
        """
        Insert clipboard text as plain text, truncated to the field's headroom.

        The selected text is about to be replaced, so it counts as available room.

        Returns:
            The text actually inserted (possibly empty)
        """
        text = (clipboard_text or "").replace("\r\n", "\n").replace("\r", "\n")

        if self.max_length is not None:
            start, end = self.selection
            current_length = len(self.text) - (end - start)
            remaining = self.max_length - current_length
            text = text[:remaining] if remaining > 0 else ""

        if text:
            self._replace_selection(text)
            self._emit("input")
        return text

    def _navigate(self, key: str) -> KeyResult:
        start, end = self.selection
        length = len(self.text)

        if key in ("Backspace", "Delete"):
            if start == end:
                if key == "Backspace" and start > 0:
                    start -= 1
                elif key == "Delete" and end < length:
                    end += 1
                else:
                    return KeyResult.IGNORED
            self._delete(start, end)
            self.selection = (start, start)
            self._emit("input")
            return KeyResult.DELETED

        if key == "Tab":
            # Focus moves to the next control
            self.blur()
            return KeyResult.MOVED

        if key == "ArrowLeft":
            caret = start if start != end else max(0, start - 1)
        elif key == "ArrowRight":
            caret = end if start != end else min(length, end + 1)
        elif key == "Home":
            caret = 0
        elif key == "End":
            caret = length
        else:
            caret = end
        self.selection = (caret, caret)
        return KeyResult.MOVED

    def _replace_selection(self, text: str) -> None:
        start, end = self.selection
        self._delete(start, end)
        self._insert(start, text)
        caret = start + len(text)
        self.selection = (caret, caret)

    def _delete(self, start: int, end: int) -> None:
        if end <= start:
            return
        position = 0
        for atom in list(self._atoms()):
            atom_start = position
            atom_end = position + _atom_length(atom)
            position = atom_end
            if atom_end <= start or atom_start >= end:
                continue
            if _is_line_break(atom):
                atom.extract()
                continue
            content = str(atom)
            cut_from = max(start, atom_start) - atom_start
            cut_to = min(end, atom_end) - atom_start
            atom.replace_with(NavigableString(content[:cut_from] + content[cut_to:]))

    def _pieces(self, text: str) -> List:
        pieces = []
        for index, line in enumerate(text.split("\n")):
            if index:
                pieces.append(self._soup.new_tag("br"))
            if line:
                pieces.append(NavigableString(line))
        return pieces

    def _insert(self, offset: int, text: str) -> None:
        pieces = self._pieces(text)
        if not pieces:
            return

        position = 0
        for atom in list(self._atoms()):
            length = _atom_length(atom)
            if _is_text(atom) and position <= offset <= position + length:
                cut = offset - position
                content = str(atom)
                anchor = NavigableString(content[:cut])
                atom.replace_with(anchor)
                for piece in pieces:
                    anchor.insert_after(piece)
                    anchor = piece
                if content[cut:]:
                    anchor.insert_after(NavigableString(content[cut:]))
                return
            if offset <= position:
                for piece in pieces:
                    atom.insert_before(piece)
                return
            position += length

        for piece in pieces:
            self.node.append(piece)


class EditableDocument:
    """
    A résumé page whose designated nodes are editable.

    Discovery follows EditorOptions: every node carrying the key attribute, or
    only nodes matching the configured selectors. Either way fields are keyed by
    the key attribute, so snapshots survive markup reordering.

    Example:
        >>> document = EditableDocument('<p data-src="name" data-max-length="20">Ada</p>')
        >>> document.field("name").paste(" Lovelace")
        ' Lovelace'
        >>> document.field("name").value
        'Ada Lovelace'
    """

    def __init__(self, html: str, options: Optional[EditorOptions] = None):
        self.options = options or load_editor_options()
        self.soup = BeautifulSoup(html, "lxml")
        self.fields: Dict[str, EditableField] = {}
        self._discover()

    @classmethod
    def from_file(cls, path: Path, options: Optional[EditorOptions] = None) -> "EditableDocument":
        return cls(Path(path).read_text(encoding="utf-8"), options=options)

    def __iter__(self) -> Iterator[EditableField]:
        return iter(self.fields.values())

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def field(self, key: str) -> EditableField:
        try:
            return self.fields[key]
        except KeyError:
            raise KeyError(f"No editable field with key '{key}'") from None

    def to_html(self) -> str:
        return str(self.soup)

    def find_by_id(self, element_id: str) -> Optional[Tag]:
        return self.soup.find(id=element_id)

    def on(self, event: str, callback: Callable[[EditableField], None]) -> None:
        """Subscribe to an event on every field."""
        for field in self:
            field.on(event, callback)

    def _candidates(self) -> List[Tag]:
        key_attribute = self.options.key_attribute
        if not self.options.uses_selectors:
            return self.soup.select(f"[{key_attribute}]")

        seen = set()
        nodes = []
        for selector in self.options.selectors:
            for node in self.soup.select(selector):
                if id(node) not in seen:
                    seen.add(id(node))
                    nodes.append(node)
        return nodes

    def _discover(self) -> None:
        key_attribute = self.options.key_attribute
        for node in self._candidates():
            key = node.get(key_attribute)
            if not key:
                _log_warning(f"Skipping <{node.name}> without '{key_attribute}' attribute")
                continue
            if key in self.fields:
                _log_warning(f"Duplicate field key '{key}', keeping the first occurrence")
                continue

            node["contenteditable"] = "true"
            if self.options.inline_styles:
                existing = node.get("style", "").strip()
                if existing and not existing.endswith(";"):
                    existing += ";"
                node["style"] = f"{existing} {INLINE_EDIT_STYLE}".strip()

            max_length = parse_max_length(node.get(self.options.max_length_attribute))
            self.fields[key] = EditableField(key, node, self.soup, max_length=max_length)

        _log_debug(f"Discovered {len(self.fields)} editable fields")


class FieldManager:
    """
    Connects field events to persistence.

    - input: debounced save after the quiet period; bursts coalesce into one write
    - blur: immediate save
    - limit: "limit reached" notification, when a notifier is given
    """

    def __init__(
        self,
        document: EditableDocument,
        save: Callable[[], None],
        scheduler: Scheduler,
        notify: Optional[Callable[[str, str], None]] = None,
        debounce_seconds: Optional[float] = None,
    ):
        if debounce_seconds is None:
            debounce_seconds = document.options.debounce_seconds
        self.document = document
        self.save = save
        self.notify = notify
        self.debouncer = Debouncer(debounce_seconds, save, scheduler)

        document.on("input", self._on_input)
        document.on("blur", self._on_blur)
        document.on("limit", self._on_limit)

    def _on_input(self, field: EditableField) -> None:
        self.debouncer.trigger()

    def _on_blur(self, field: EditableField) -> None:
        self.save()

    def _on_limit(self, field: EditableField) -> None:
        if self.notify is not None:
            self.notify(f"Limit of {field.max_length} characters reached", LIMIT_COLOR)
