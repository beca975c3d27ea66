"""
Suggestion engine for emote autocomplete.

Filters the loaded emote mapping by case-insensitive substring match.
"""

from typing import List, Mapping

from sevenmote.autocomplete.formatting import delimited, emote_image_url
from sevenmote.autocomplete.mapping_store import EmoteMappingStore
from sevenmote.autocomplete.protocol import SuggestionItem
from sevenmote.config import DEFAULT_CDN_BASE


MAX_SUGGESTIONS = 25


def suggest(query: str, mapping: Mapping[str, str], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """
    Return emote names containing `query`, in mapping order.

    Scanning stops as soon as `limit` names have been collected.

    Args:
        query: Typed text after the delimiter (may be empty)
        mapping: Emote name -> identifier mapping
        limit: Maximum number of names returned

    Returns:
        Matching names, at most `limit` of them
    """
    needle = query.lower()
    matches: List[str] = []
    if limit <= 0:
        return matches

    for name in mapping:
        if needle in name.lower():
            matches.append(name)
            if len(matches) >= limit:
                break

    return matches


class SuggestionEngine:
    """Produces popup rows for a query against the mapping store."""

    def __init__(self, store: EmoteMappingStore, cdn_base: str = DEFAULT_CDN_BASE,
                 limit: int = MAX_SUGGESTIONS):
        self.store = store
        self.cdn_base = cdn_base
        self.limit = limit

    def get_suggestions(self, query: str) -> List[str]:
        """Names matching the query."""
        return suggest(query, self.store.snapshot(), self.limit)

    def render(self, query: str) -> List[SuggestionItem]:
        """
        Names matching the query, with what the popup needs to draw them.
        """
        mapping = self.store.snapshot()
        items = []
        for name in suggest(query, mapping, self.limit):
            identifier = mapping[name]
            items.append(SuggestionItem(
                name=name,
                identifier=identifier,
                image_url=emote_image_url(identifier, self.cdn_base),
                label=delimited(name)
            ))
        return items
