"""
Demo script for the Sevenmote engines.

Walks through trigger detection, suggestions and insertion without an
editor or network access.
"""

import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from sevenmote.autocomplete import EmoteMappingStore, InsertionEngine, SuggestionEngine, detect_trigger
from sevenmote.autocomplete.editor import TextBuffer


def demo_basic():
    """Type `:o` at the end of a line and accept the first suggestion."""
    print("=" * 60)
    print("DEMO: :NAME completion")
    print("=" * 60)

    store = EmoteMappingStore({
        "HUH": "01FFMS6Q4G0009CAK0J14692AY",
        "OMEGALUL": "01F00Z3A9G0007E4VV006YKSK9",
        "PogU": "01EZTD6KQ800012PTN006Q50PV",
    })
    suggestions = SuggestionEngine(store)
    insertion = InsertionEngine(store)

    buffer = TextBuffer("that was :o")
    line = buffer.get_line(0)
    trigger = detect_trigger(line, buffer.cursor.character)
    print(f"Line:     {line!r}")
    print(f"Trigger:  {trigger}")

    names = suggestions.get_suggestions(trigger.query)
    print(f"Suggests: {names}")

    insertion.accept(names[0], trigger, buffer)
    print(f"Result:   {buffer.text!r}")


if __name__ == "__main__":
    demo_basic()
