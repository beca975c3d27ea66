"""
Editor buffer capabilities used by the insertion engine.

The engine never talks to a real editor directly. Hosts supply an object
implementing `EditorBuffer`; two implementations ship here:
  - TextBuffer: in-memory multi-line buffer with a cursor (CLI, tests)
  - RecordingBuffer: records edits for a remote host to replay (service)
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sevenmote.autocomplete.protocol import CursorPosition, EditOperation


class EditorBuffer(ABC):
    """What the insertion engine needs from an editor."""

    @abstractmethod
    def get_range(self, start: CursorPosition, end: CursorPosition) -> str:
        """Text between two positions."""

    @abstractmethod
    def replace_range(self, text: str, start: CursorPosition, end: CursorPosition) -> None:
        """Replace [start, end) with text and leave the cursor after it."""

    @abstractmethod
    def replace_selection(self, text: str) -> None:
        """Insert text at the cursor."""


class TextBuffer(EditorBuffer):
    """In-memory buffer with a single cursor."""

    def __init__(self, text: str = "", cursor: Optional[CursorPosition] = None):
        self.lines: List[str] = text.split('\n')
        if cursor is None:
            cursor = CursorPosition(len(self.lines) - 1, len(self.lines[-1]))
        self.cursor = cursor

    @property
    def text(self) -> str:
        return '\n'.join(self.lines)

    def get_line(self, line: int) -> str:
        return self.lines[line]

    def _offset(self, pos: CursorPosition) -> int:
        line = max(0, min(pos.line, len(self.lines) - 1))
        column = max(0, min(pos.character, len(self.lines[line])))
        return sum(len(l) + 1 for l in self.lines[:line]) + column

    def _position(self, offset: int) -> CursorPosition:
        before = self.text[:offset].split('\n')
        return CursorPosition(len(before) - 1, len(before[-1]))

    def get_range(self, start: CursorPosition, end: CursorPosition) -> str:
        return self.text[self._offset(start):self._offset(end)]

    def replace_range(self, text: str, start: CursorPosition, end: CursorPosition) -> None:
        begin, finish = self._offset(start), self._offset(end)
        full = self.text
        self.lines = (full[:begin] + text + full[finish:]).split('\n')
        self.cursor = self._position(begin + len(text))

    def replace_selection(self, text: str) -> None:
        self.replace_range(text, self.cursor, self.cursor)


class RecordingBuffer(EditorBuffer):
    """
    Buffer stand-in for a remote editor.

    Range reads are answered from the text the host sent with the
    request; mutations are recorded as EditOperations.
    """

    def __init__(self, range_text: str = ""):
        self.range_text = range_text
        self.edits: List[EditOperation] = []

    def get_range(self, start: CursorPosition, end: CursorPosition) -> str:
        return self.range_text

    def replace_range(self, text: str, start: CursorPosition, end: CursorPosition) -> None:
        self.edits.append(EditOperation(op='replace_range', text=text, start=start, end=end))

    def replace_selection(self, text: str) -> None:
        self.edits.append(EditOperation(op='replace_selection', text=text))
