"""
Emote autocomplete for `:NAME` codes in the interactive composer.
"""

from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from sevenmote.autocomplete.formatting import delimited
from sevenmote.autocomplete.suggestion_engine import SuggestionEngine
from sevenmote.autocomplete.trigger import detect_trigger


class EmoteCompleter(Completer):
    """
    Offers emote names when the text left of the cursor ends in `:NAME`.

    Accepting a completion replaces the typed code (including a typed
    closing delimiter) with the full `:NAME:` code.
    """

    def __init__(self, suggestion_engine: SuggestionEngine):
        self.suggestion_engine = suggestion_engine

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        """
        Generate emote completions at the cursor.

        Args:
            document: Current prompt document
            complete_event: Completion event

        Yields:
            Completion objects for matching emotes
        """
        trigger = detect_trigger(document.current_line, document.cursor_position_col)
        if trigger is None:
            return

        start_position = trigger.start.character - trigger.end.character
        for item in self.suggestion_engine.render(trigger.query):
            yield Completion(
                text=delimited(item.name),
                start_position=start_position,
                display=item.label,
                display_meta=item.identifier,
            )
