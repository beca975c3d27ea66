"""
Tests for the mapping store and suggestion filtering.
"""

import sys
import threading
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sevenmote.autocomplete.mapping_store import (
    EmoteMappingStore, FALLBACK_ID, FALLBACK_NAME, fallback_mapping,
)
from sevenmote.autocomplete.suggestion_engine import MAX_SUGGESTIONS, SuggestionEngine, suggest


def make_mapping(count):
    mapping = fallback_mapping()
    for i in range(count):
        mapping[f"emote{i:03d}"] = f"id{i:03d}"
    return mapping


class TestMappingStore:
    def test_starts_with_fallback_only(self):
        store = EmoteMappingStore()
        assert dict(store.snapshot()) == {FALLBACK_NAME: FALLBACK_ID}
        assert not store.has_loaded_emotes()

    def test_replace_swaps_whole_mapping(self):
        store = EmoteMappingStore()
        old = store.snapshot()
        assert store.replace({"HUH": FALLBACK_ID, "OMG": "02AA"})

        assert list(store) == ["HUH", "OMG"]
        assert store.get("OMG") == "02AA"
        assert store.generation == 1
        # earlier snapshots are unaffected
        assert dict(old) == {FALLBACK_NAME: FALLBACK_ID}

    def test_replace_ignores_empty_mapping(self):
        store = EmoteMappingStore({"HUH": FALLBACK_ID, "OMG": "02AA"})
        assert not store.replace({})
        assert "OMG" in store
        assert store.generation == 0

    def test_replace_copies_input(self):
        source = {"HUH": FALLBACK_ID, "OMG": "02AA"}
        store = EmoteMappingStore()
        store.replace(source)
        source["LATE"] = "x"
        assert "LATE" not in store

    def test_snapshot_is_read_only(self):
        store = EmoteMappingStore()
        try:
            store.snapshot()["X"] = "y"
            assert False, "Expected TypeError"
        except TypeError:
            pass

    def test_concurrent_replace_and_read(self):
        store = EmoteMappingStore()
        mappings = [make_mapping(n) for n in (5, 10, 20)]
        valid_sizes = {1} | {len(m) for m in mappings}
        seen = set()

        def writer():
            for _ in range(200):
                for m in mappings:
                    store.replace(m)

        thread = threading.Thread(target=writer)
        thread.start()
        while thread.is_alive():
            seen.add(len(list(store.snapshot())))
        thread.join()
        assert seen <= valid_sizes


class TestSuggest:
    def test_substring_case_insensitive(self):
        mapping = {"HUH": "01FF", "OMG": "02AA"}
        assert suggest("o", mapping) == ["OMG"]
        assert suggest("h", mapping) == ["HUH"]
        assert suggest("MG", mapping) == ["OMG"]

    def test_empty_query_returns_first_names_in_order(self):
        mapping = make_mapping(40)
        result = suggest("", mapping)
        assert result == list(mapping)[:MAX_SUGGESTIONS]
        assert result[0] == FALLBACK_NAME

    def test_capped_at_limit(self):
        mapping = make_mapping(100)
        result = suggest("emote", mapping)
        assert len(result) == 25
        assert all("emote" in name.lower() for name in result)

    def test_no_match(self):
        assert suggest("zzz", make_mapping(5)) == []

    def test_stops_scanning_once_full(self):
        scanned = []

        class CountingMapping(dict):
            def __iter__(self):
                for key in super().__iter__():
                    scanned.append(key)
                    yield key

        mapping = CountingMapping(make_mapping(100))
        suggest("", mapping, limit=3)
        assert len(scanned) == 3

    def test_zero_limit(self):
        assert suggest("", make_mapping(3), limit=0) == []


class TestSuggestionEngine:
    def test_render_rows(self):
        store = EmoteMappingStore({"HUH": FALLBACK_ID, "OMG": "02AA"})
        engine = SuggestionEngine(store, cdn_base="https://cdn.example")

        items = engine.render("om")
        assert len(items) == 1
        assert items[0].name == "OMG"
        assert items[0].label == ":OMG:"
        assert items[0].image_url == "https://cdn.example/emote/02AA/1x.webp"

    def test_sees_swapped_mapping(self):
        store = EmoteMappingStore()
        engine = SuggestionEngine(store)
        assert engine.get_suggestions("pog") == []
        store.replace({"HUH": FALLBACK_ID, "PogU": "03"})
        assert engine.get_suggestions("pog") == ["PogU"]
