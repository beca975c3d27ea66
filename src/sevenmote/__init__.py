"""
Sevenmote - Inline emote autocomplete for text editors.

Type `:NAME` in a line of text and get the matching 7TV emotes for a
Twitch channel, expanded in place into an inline image fragment.
"""

__version__ = "0.1.0"
__author__ = "Sevenmote Team"

from sevenmote.autocomplete import (
    EmoteMappingStore,
    EmoteResolver,
    InsertionEngine,
    SuggestionEngine,
    detect_trigger,
)

__all__ = [
    "EmoteMappingStore",
    "EmoteResolver",
    "InsertionEngine",
    "SuggestionEngine",
    "detect_trigger",
    "__version__",
]
