"""
Trigger detection for `:NAME` emote codes.

Decides, for a cursor position inside a single line, whether a suggestion
popup should open and which span the accepted emote will replace.
"""

import re
from typing import Optional

from sevenmote.autocomplete.protocol import CursorPosition, TriggerResult


DELIMITER = ':'

# Delimiter, one or more word characters, optional closing delimiter,
# anchored at the cursor. `\Z` so a trailing newline never matches.
TRIGGER_PATTERN = re.compile(r':([a-zA-Z0-9_]+):?\Z')


def detect_trigger(line_text: str, cursor_column: int, line: int = 0) -> Optional[TriggerResult]:
    """
    Detect an emote code ending at the cursor.

    Args:
        line_text: Full text of the current line
        cursor_column: Cursor column (0-indexed) within the line
        line: Line number, copied into the returned positions

    Returns:
        TriggerResult, or None when no popup should open
    """
    cursor_column = max(0, min(cursor_column, len(line_text)))
    before_cursor = line_text[:cursor_column]

    match = TRIGGER_PATTERN.search(before_cursor)
    if not match:
        return None

    matched_span = match.group(0)
    start = max(0, cursor_column - len(matched_span))

    return TriggerResult(
        start=CursorPosition(line=line, character=start),
        end=CursorPosition(line=line, character=cursor_column),
        query=match.group(1)
    )
