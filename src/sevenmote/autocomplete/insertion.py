"""
Insertion engine: replaces a typed `:NAME` code with the emote fragment.
"""

import re
from typing import Optional

from sevenmote.autocomplete.cache import EmoteImageCache
from sevenmote.autocomplete.editor import EditorBuffer, TextBuffer
from sevenmote.autocomplete.formatting import emote_image_url, format_fragment
from sevenmote.autocomplete.mapping_store import EmoteMappingStore, FALLBACK_ID, FALLBACK_NAME
from sevenmote.autocomplete.protocol import TriggerResult
from sevenmote.autocomplete.trigger import DELIMITER, detect_trigger
from sevenmote.config import DEFAULT_CDN_BASE
from sevenmote.errors import NotFound
from sevenmote.utils.logger import logger


CLOSED_CODE_PATTERN = re.compile(r":[a-zA-Z0-9_]+:")


class InsertionEngine:
    """Accepts suggestions into an editor buffer."""

    def __init__(
        self,
        store: EmoteMappingStore,
        image_cache: Optional[EmoteImageCache] = None,
        cdn_base: str = DEFAULT_CDN_BASE,
    ):
        """
        Initialize insertion engine.

        Args:
            store: Mapping store names are looked up in
            image_cache: Optional local image cache; without one every
                fragment points at the CDN
            cdn_base: CDN base URL
        """
        self.store = store
        self.image_cache = image_cache
        self.cdn_base = cdn_base

    def image_source(self, identifier: str) -> str:
        if self.image_cache is not None:
            return self.image_cache.source_for(identifier)
        return emote_image_url(identifier, self.cdn_base)

    def fragment_for(self, name: str, identifier: str) -> str:
        return format_fragment(name, self.image_source(identifier))

    def accept(self, chosen: str, trigger: TriggerResult, buffer: EditorBuffer) -> str:
        """
        Replace the trigger span with the chosen emote.

        Args:
            chosen: Selected emote name
            trigger: Trigger computed when the popup opened
            buffer: Editor buffer to mutate

        Returns:
            The inserted fragment

        Raises:
            NotFound: The name is no longer in the mapping; the buffer is
                left untouched
        """
        identifier = self.store.get(chosen)
        if identifier is None:
            logger.insertion_not_found(chosen)
            raise NotFound(chosen)

        typed = buffer.get_range(trigger.start, trigger.end)
        if typed.endswith(DELIMITER) and len(typed) > 1:
            logger.debug('INSERT', f"Typed code {typed!r} already closed")

        # `end` is the cursor at trigger time, so a typed closing
        # delimiter is already inside the range.
        buffer.replace_range('', trigger.start, trigger.end)

        fragment = self.fragment_for(chosen, identifier)
        buffer.replace_selection(fragment)
        logger.insertion(chosen, identifier)
        return fragment

    def expand_codes(self, line_text: str) -> str:
        """
        Expand every closed `:NAME:` code in a line, right to left.

        Unknown names are left as typed.
        """
        buffer = TextBuffer(line_text)
        for match in reversed(list(CLOSED_CODE_PATTERN.finditer(line_text))):
            trigger = detect_trigger(line_text, match.end())
            if trigger is None:
                continue
            buffer.cursor = trigger.end
            try:
                self.accept(trigger.query, trigger, buffer)
            except NotFound:
                continue
        return buffer.text

    def insert_fallback(self, buffer: EditorBuffer) -> str:
        """Insert the fallback emote at the cursor, whatever the mapping holds."""
        fragment = self.fragment_for(FALLBACK_NAME, FALLBACK_ID)
        buffer.replace_selection(fragment)
        logger.insertion(FALLBACK_NAME, FALLBACK_ID)
        return fragment
