"""
Sevenmote Autocomplete Module

Trigger detection, suggestion filtering and insertion for `:NAME` emote
codes, backed by a swappable emote mapping.
"""

from .trigger import detect_trigger
from .mapping_store import EmoteMappingStore
from .suggestion_engine import SuggestionEngine, suggest
from .resolver import EmoteResolver, ResolveResult, ResolveStatus
from .insertion import InsertionEngine

__all__ = [
    'detect_trigger',
    'EmoteMappingStore',
    'SuggestionEngine',
    'suggest',
    'EmoteResolver',
    'ResolveResult',
    'ResolveStatus',
    'InsertionEngine',
]
