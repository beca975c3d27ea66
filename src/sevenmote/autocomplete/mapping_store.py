"""
Name -> identifier table for the currently loaded emote set.

The table is never mutated in place: a refresh builds a new mapping and
swaps it in whole, so readers always see either the old or the new set.
"""

import threading
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from sevenmote.utils.logger import logger


FALLBACK_NAME = "HUH"
FALLBACK_ID = "01FFMS6Q4G0009CAK0J14692AY"


def fallback_mapping() -> Dict[str, str]:
    """Return a fresh mapping holding only the fallback emote."""
    return {FALLBACK_NAME: FALLBACK_ID}


class EmoteMappingStore:
    """
    Holds the current emote mapping.

    Written only by a completed refresh via `replace()`; read by the
    suggestion and insertion engines through `snapshot()` and `get()`.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._lock = threading.Lock()
        self._mapping: Mapping[str, str] = MappingProxyType(
            dict(initial) if initial else fallback_mapping()
        )
        self.generation = 0

    def snapshot(self) -> Mapping[str, str]:
        """Return the current mapping as a read-only view."""
        return self._mapping

    def get(self, name: str) -> Optional[str]:
        return self._mapping.get(name)

    def replace(self, new_mapping: Mapping[str, str]) -> bool:
        """
        Swap in a new mapping.

        Empty mappings are ignored so the store always holds at least one
        entry.

        Returns:
            True if the mapping was replaced
        """
        if not new_mapping:
            logger.mapping_kept("refresh produced no emotes")
            return False

        frozen = MappingProxyType(dict(new_mapping))
        with self._lock:
            before = len(self._mapping)
            self._mapping = frozen
            self.generation += 1

        logger.mapping_swapped(before, len(frozen))
        return True

    def has_loaded_emotes(self) -> bool:
        """True when more than the fallback emote is available."""
        return len(self._mapping) > 1

    def __contains__(self, name: object) -> bool:
        return name in self._mapping

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)
