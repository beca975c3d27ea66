"""
User settings for Sevenmote.

Handles the persisted account ID, built-in streamer selection and image
cache strategy.
"""

import json
import re
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sevenmote.autocomplete.cache import CacheStrategy
from sevenmote.utils.logger import logger


# (display name, Twitch ID, key)
BUILT_IN_STREAMERS: List[Tuple[str, str, str]] = [
    ('xQc', '71092938', 'xqc'),
    ('Forsen', '22484632', 'forsen'),
    ('Mizkif', '34161162', 'mizkif'),
    ('Pokimane', '217592995', 'pokimane'),
    ('Shroud', '37402157', 'shroud'),
    ('Tfue', '108899889', 'tfue'),
    ('Ninja', '19571641', 'ninja'),
    ('Asmongold', '26490481', 'asmongold'),
    ('Ludwig', '50615467', 'ludwig'),
    ('HasanAbi', '15796662', 'hasanabi'),
]

STREAMER_DISPLAY_MAP = {key: name for name, _, key in BUILT_IN_STREAMERS}
STREAMER_ID_MAP = {key: twitch_id for _, twitch_id, key in BUILT_IN_STREAMERS}

ACCOUNT_ID_PATTERN = re.compile(r'^\d+$')


def validate_account_id(value: str) -> Optional[str]:
    """
    Check an account ID.

    Returns:
        A warning message, or None if the value looks valid. Empty is valid.
    """
    value = value.strip()
    if value and not ACCOUNT_ID_PATTERN.match(value):
        return f"Account ID {value!r} should contain digits only"
    return None


def sorted_streamers() -> List[Tuple[str, str, str]]:
    """Built-in streamers ordered by display name."""
    return sorted(BUILT_IN_STREAMERS, key=lambda s: s[0].lower())


@dataclass
class Settings:
    """Persisted user settings."""

    account_id: str = ""
    selected_streamer: str = ""
    cache_strategy: str = CacheStrategy.ON_DEMAND.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary."""
        # Handle missing or unknown fields
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        settings = cls(**known)
        try:
            CacheStrategy.parse(settings.cache_strategy)
        except ValueError:
            settings.cache_strategy = CacheStrategy.ON_DEMAND.value
        return settings


class SettingsManager:
    """
    Loads and saves Settings as JSON.

    Every change is saved immediately.
    """

    def __init__(self, path: Path, account_override: Optional[str] = None):
        """
        Initialize settings manager.

        Args:
            path: Settings file location
            account_override: Account ID that takes precedence over the
                persisted one (e.g. from the environment)
        """
        self.path = Path(path)
        self.account_override = account_override
        self.settings = self.load()

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings file must hold a JSON object")
            return Settings.from_dict(data)
        except (OSError, ValueError) as e:
            logger.warning('SETTINGS', f"Could not read {self.path}, using defaults: {e}")
            return Settings()

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.settings.to_dict(), f, indent=2)
        logger.debug('SETTINGS', f"Saved settings to {self.path}")
        return self.path

    @property
    def cache_strategy(self) -> CacheStrategy:
        return CacheStrategy.parse(self.settings.cache_strategy)

    def active_account_id(self) -> Optional[str]:
        """
        Account ID emotes should be loaded for.

        A manual account ID wins over a built-in streamer selection.
        """
        if self.account_override and self.account_override.strip():
            return self.account_override.strip()
        if self.settings.account_id.strip():
            return self.settings.account_id.strip()
        if self.settings.selected_streamer:
            return STREAMER_ID_MAP.get(self.settings.selected_streamer)
        return None

    def set_account_id(self, value: str) -> Tuple[bool, Optional[str]]:
        """
        Store a manually entered account ID.

        Returns:
            (should_refresh, warning). A refresh is due whenever the value
            is non-empty; the warning is informational only.
        """
        value = value.strip()
        warning = validate_account_id(value)
        if warning:
            logger.warning('SETTINGS', warning)

        self.settings.account_id = value
        if value and self.settings.selected_streamer:
            self.settings.selected_streamer = ""
        self.save()
        return bool(value), warning

    def select_streamer(self, key: str) -> str:
        """
        Select a built-in streamer.

        Returns:
            The streamer's account ID

        Raises:
            KeyError: Unknown streamer key
        """
        key = key.strip().lower()
        if key not in STREAMER_ID_MAP:
            raise KeyError(f"Unknown streamer: {key}")

        self.settings.selected_streamer = key
        self.settings.account_id = STREAMER_ID_MAP[key]
        self.save()
        return self.settings.account_id

    def set_cache_strategy(self, value: str) -> CacheStrategy:
        strategy = CacheStrategy.parse(value)
        self.settings.cache_strategy = strategy.value
        self.save()
        return strategy

    def clear(self) -> None:
        self.settings.account_id = ""
        self.settings.selected_streamer = ""
        self.save()

    def source_label(self) -> str:
        """Human readable description of where emotes come from."""
        streamer = STREAMER_DISPLAY_MAP.get(self.settings.selected_streamer)
        return streamer or self.active_account_id() or "None selected"
