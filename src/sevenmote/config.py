"""
Configuration management for Sevenmote.

Loads settings from environment variables and provides configuration objects.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_API_BASE = "https://7tv.io/v3"
DEFAULT_CDN_BASE = "https://cdn.7tv.app"
DEFAULT_PROVIDER = "twitch"
DEFAULT_CACHE_DIR = "_7tv-emotes-cache"


@dataclass
class Config:
    """Sevenmote configuration."""

    api_base: str = DEFAULT_API_BASE
    cdn_base: str = DEFAULT_CDN_BASE
    provider: str = DEFAULT_PROVIDER
    timeout: float = 10.0
    settings_file: Optional[Path] = None
    cache_dir: str = DEFAULT_CACHE_DIR
    document_root: Optional[Path] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    account_id: Optional[str] = None

    def __init__(self):
        """Initialize config from environment variables."""
        self.api_base = os.getenv("SEVENMOTE_API_BASE", DEFAULT_API_BASE).rstrip("/")
        self.cdn_base = os.getenv("SEVENMOTE_CDN_BASE", DEFAULT_CDN_BASE).rstrip("/")
        self.provider = os.getenv("SEVENMOTE_PROVIDER", DEFAULT_PROVIDER)
        self.timeout = float(os.getenv("SEVENMOTE_TIMEOUT", "10"))
        settings_file = os.getenv("SEVENMOTE_SETTINGS_FILE")
        self.settings_file = (
            Path(settings_file) if settings_file
            else Path.home() / ".sevenmote" / "settings.json"
        )
        self.cache_dir = os.getenv("SEVENMOTE_CACHE_DIR", DEFAULT_CACHE_DIR)
        self.document_root = Path(os.getenv("SEVENMOTE_DOCUMENT_ROOT", "."))
        self.log_level = os.getenv("SEVENMOTE_LOG_LEVEL", "INFO")
        self.log_dir = os.getenv("SEVENMOTE_LOG_DIR")
        self.account_id = os.getenv("SEVENMOTE_ACCOUNT_ID") or None
