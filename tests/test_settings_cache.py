"""
Tests for persisted settings and the emote image cache.
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sevenmote.autocomplete.cache import CacheStrategy, EmoteImageCache
from sevenmote.errors import NetworkError, ParseError
from sevenmote.settings import (
    Settings, SettingsManager, STREAMER_ID_MAP, sorted_streamers, validate_account_id,
)


class TestValidateAccountId:
    def test_numeric_is_valid(self):
        assert validate_account_id("71092938") is None

    def test_empty_is_valid(self):
        assert validate_account_id("") is None
        assert validate_account_id("   ") is None

    def test_non_numeric_warns(self):
        assert "digits" in validate_account_id("xqc")
        assert validate_account_id("12a") is not None


class TestSettings:
    def test_from_dict_tolerates_missing_and_unknown_fields(self):
        settings = Settings.from_dict({"account_id": "1", "legacy": True})
        assert settings.account_id == "1"
        assert settings.cache_strategy == "on-demand"

    def test_from_dict_resets_bad_strategy(self):
        assert Settings.from_dict({"cache_strategy": "bogus"}).cache_strategy == "on-demand"

    def test_streamers_sorted_by_name(self):
        names = [name for name, _, _ in sorted_streamers()]
        assert names == sorted(names, key=str.lower)


class TestSettingsManager:
    def test_defaults_when_missing(self, tmp_path):
        manager = SettingsManager(tmp_path / "settings.json")
        assert manager.settings == Settings()
        assert manager.active_account_id() is None

    def test_set_account_id_saves_and_requests_refresh(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        manager = SettingsManager(path)

        should_refresh, warning = manager.set_account_id(" 22484632 ")

        assert should_refresh is True
        assert warning is None
        assert json.loads(path.read_text())["account_id"] == "22484632"
        assert SettingsManager(path).active_account_id() == "22484632"

    def test_non_numeric_account_id_is_saved_with_warning(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        should_refresh, warning = manager.set_account_id("forsen")
        assert should_refresh is True
        assert warning is not None
        assert manager.settings.account_id == "forsen"

    def test_empty_account_id_does_not_refresh(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        assert manager.set_account_id("") == (False, None)

    def test_select_streamer(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        account_id = manager.select_streamer("Forsen")

        assert account_id == STREAMER_ID_MAP["forsen"]
        assert manager.settings.selected_streamer == "forsen"
        assert manager.source_label() == "Forsen"

    def test_unknown_streamer(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        with pytest.raises(KeyError):
            manager.select_streamer("nobody")

    def test_manual_id_clears_streamer(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        manager.select_streamer("xqc")
        manager.set_account_id("123456")
        assert manager.settings.selected_streamer == ""
        assert manager.active_account_id() == "123456"

    def test_streamer_used_when_no_manual_id(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        manager.settings.selected_streamer = "ninja"
        assert manager.active_account_id() == STREAMER_ID_MAP["ninja"]

    def test_override_wins(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json", account_override="999")
        manager.set_account_id("123")
        assert manager.active_account_id() == "999"

    def test_clear(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        manager.select_streamer("xqc")
        manager.clear()
        assert manager.active_account_id() is None

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json")
        assert SettingsManager(path).settings == Settings()

    def test_set_cache_strategy(self, tmp_path):
        manager = SettingsManager(tmp_path / "s.json")
        assert manager.set_cache_strategy("pre-cache") == CacheStrategy.PRE_CACHE
        with pytest.raises(ValueError):
            manager.set_cache_strategy("sometimes")


def make_cache(tmp_path, strategy=CacheStrategy.ON_DEMAND, response=None):
    session = MagicMock()
    if response is not None:
        session.get.return_value = response
    return EmoteImageCache(
        root=tmp_path, cache_dir="cache", cdn_base="https://cdn.example",
        strategy=strategy, session=session,
    ), session


def ok_response(content=b"webp"):
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.content = content
    return response


class TestEmoteImageCache:
    def test_no_cache_strategy_skips_directory(self, tmp_path):
        cache, _ = make_cache(tmp_path, CacheStrategy.NO_CACHE)
        cache.ensure_initialized()
        assert not (tmp_path / "cache").exists()

    def test_download_writes_file(self, tmp_path):
        cache, session = make_cache(tmp_path, response=ok_response(b"abc"))
        cache.ensure_initialized()

        path = cache.download("ID1")

        assert path.read_bytes() == b"abc"
        assert cache.cached_path("ID1") == "./cache/ID1.webp"
        session.get.assert_called_once_with("https://cdn.example/emote/ID1/1x.webp", timeout=10.0)

    def test_download_http_error(self, tmp_path):
        response = MagicMock(ok=False, status_code=500)
        cache, _ = make_cache(tmp_path, response=response)
        with pytest.raises(NetworkError):
            cache.download("ID1")

    def test_download_connection_error(self, tmp_path):
        cache, session = make_cache(tmp_path)
        session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(NetworkError):
            cache.download("ID1")

    @pytest.mark.parametrize("identifier", ["../../escaped", "a/b", "..", "", "ID1.webp"])
    def test_download_rejects_path_like_identifier(self, tmp_path, identifier):
        root = tmp_path / "docs"
        cache, session = make_cache(root, response=ok_response())
        cache.ensure_initialized()

        with pytest.raises(ParseError):
            cache.download(identifier)

        session.get.assert_not_called()
        assert list(tmp_path.rglob("*.webp")) == []

    def test_source_for_path_like_identifier_uses_cdn(self, tmp_path):
        cache, _ = make_cache(tmp_path)
        cache.ensure_initialized()
        with patch.object(cache, "download_in_background") as background:
            src = cache.source_for("../x")
        assert src.startswith("https://cdn.example/")
        background.assert_not_called()

    def test_precache_counts_path_like_identifier_as_failed(self, tmp_path):
        cache, session = make_cache(tmp_path, response=ok_response())
        cache.BATCH_PAUSE = 0
        cache.ensure_initialized()

        stats = cache.precache(["A", "../../escaped"])

        assert stats == {"downloaded": 1, "cached": 0, "failed": 1}
        assert session.get.call_count == 1
        assert not (tmp_path.parent / "escaped.webp").exists()

    def test_source_for_miss_uses_cdn_and_schedules_download(self, tmp_path):
        cache, _ = make_cache(tmp_path)
        cache.ensure_initialized()
        with patch.object(cache, "download_in_background") as background:
            src = cache.source_for("ID1")
        assert src == "https://cdn.example/emote/ID1/1x.webp"
        background.assert_called_once_with("ID1")

    def test_source_for_hit(self, tmp_path):
        cache, _ = make_cache(tmp_path)
        cache.ensure_initialized()
        (tmp_path / "cache" / "ID1.webp").write_bytes(b"x")
        assert cache.source_for("ID1") == "./cache/ID1.webp"

    def test_source_for_no_cache_ignores_local_files(self, tmp_path):
        cache, _ = make_cache(tmp_path, CacheStrategy.NO_CACHE)
        (tmp_path / "cache").mkdir()
        (tmp_path / "cache" / "ID1.webp").write_bytes(b"x")
        assert cache.source_for("ID1").startswith("https://")

    def test_background_download(self, tmp_path):
        cache, _ = make_cache(tmp_path, response=ok_response())
        cache.ensure_initialized()
        thread = cache.download_in_background("ID1")
        thread.join(timeout=5)
        assert cache.is_cached("ID1")

    def test_precache_counts(self, tmp_path):
        cache, session = make_cache(tmp_path)
        cache.BATCH_PAUSE = 0
        cache.ensure_initialized()
        (tmp_path / "cache" / "A.webp").write_bytes(b"x")
        session.get.side_effect = [ok_response(), requests.Timeout("slow")] + [ok_response()] * 5

        stats = cache.precache(["A", "B", "C", "D", "D", "E", "F", "G"])

        assert stats == {"downloaded": 5, "cached": 1, "failed": 1}

    def test_stats(self, tmp_path):
        cache, _ = make_cache(tmp_path)
        cache.ensure_initialized()
        (tmp_path / "cache" / "A.webp").write_bytes(b"x")
        stats = cache.get_stats()
        assert stats["images"] == 1
        assert stats["strategy"] == "on-demand"

    def test_strategy_parse(self):
        assert CacheStrategy.parse("no-cache") == CacheStrategy.NO_CACHE
        with pytest.raises(ValueError):
            CacheStrategy.parse("never")
