"""
Local image cache for emotes.

Stores CDN renditions as `{cache_dir}/{id}.webp` so inserted fragments can
point at a local file instead of the CDN.
"""

import re
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import requests

from sevenmote.autocomplete.formatting import emote_image_url
from sevenmote.config import DEFAULT_CACHE_DIR, DEFAULT_CDN_BASE
from sevenmote.errors import NetworkError, ParseError
from sevenmote.utils.logger import logger


# 7TV emote IDs are ULIDs or hex object IDs.
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9]+")


class CacheStrategy(str, Enum):
    """How emote images are stored."""
    ON_DEMAND = "on-demand"
    PRE_CACHE = "pre-cache"
    NO_CACHE = "no-cache"

    @classmethod
    def parse(cls, value: Union[str, "CacheStrategy"]) -> "CacheStrategy":
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown cache strategy {value!r} (expected one of: {valid})")


class EmoteImageCache:
    """
    Directory cache of emote images.

    The cache directory is given relative to `root` (the document root
    the editor resolves `./` paths against).
    """

    BATCH_SIZE = 5
    BATCH_PAUSE = 0.03

    def __init__(
        self,
        root: Union[str, Path],
        cache_dir: str = DEFAULT_CACHE_DIR,
        cdn_base: str = DEFAULT_CDN_BASE,
        strategy: CacheStrategy = CacheStrategy.ON_DEMAND,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize image cache.

        Args:
            root: Document root the cache directory lives under
            cache_dir: Cache directory, relative to root
            cdn_base: CDN base URL images are downloaded from
            strategy: Active cache strategy
            timeout: Download timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.root = Path(root)
        self.cache_dir = cache_dir
        self.cdn_base = cdn_base
        self.strategy = strategy
        self.timeout = timeout
        self.session = session or requests.Session()
        self._pending: set = set()
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self.root / self.cache_dir

    @staticmethod
    def is_valid_identifier(identifier: str) -> bool:
        return isinstance(identifier, str) and IDENTIFIER_PATTERN.fullmatch(identifier) is not None

    def relative_path(self, identifier: str) -> str:
        """
        Cache path of an emote image, relative to the document root.

        Raises:
            ParseError: If the identifier could name a file outside the cache
        """
        if not self.is_valid_identifier(identifier):
            raise ParseError(f"Invalid emote identifier: {identifier!r}")
        return f"{self.cache_dir}/{identifier}.webp"

    def ensure_initialized(self) -> None:
        """Create the cache directory unless caching is disabled."""
        if self.strategy == CacheStrategy.NO_CACHE:
            return
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error('CACHE', f"Cache initialization failed for {self.directory}", e)

    def is_cached(self, identifier: str) -> bool:
        if not self.is_valid_identifier(identifier):
            return False
        return (self.root / self.relative_path(identifier)).is_file()

    def cached_path(self, identifier: str) -> Optional[str]:
        """Return the `./`-relative path of a cached image, or None."""
        if self.is_cached(identifier):
            return f"./{self.relative_path(identifier)}"
        return None

    def download(self, identifier: str) -> Path:
        """
        Download an emote image into the cache.

        Raises:
            ParseError: If the identifier is not a plain emote ID
            NetworkError: If the download fails
        """
        try:
            destination = self.root / self.relative_path(identifier)
        except ParseError as e:
            logger.cache_download(str(identifier), False, str(e))
            raise
        url = emote_image_url(identifier, self.cdn_base)
        try:
            response = self.session.get(url, timeout=self.timeout)
            if not response.ok:
                raise NetworkError(f"HTTP {response.status_code}", status_code=response.status_code)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(response.content)
        except requests.RequestException as e:
            logger.cache_download(identifier, False, str(e))
            raise NetworkError(f"Download of {url} failed: {e}") from e
        except NetworkError as e:
            logger.cache_download(identifier, False, str(e))
            raise

        logger.cache_download(identifier, True)
        return destination

    def source_for(self, identifier: str) -> str:
        """
        Pick the image source for an inserted fragment.

        Cache misses fall back to the CDN URL and schedule a background
        download for next time. Without an initialized cache directory
        the CDN URL is always used.
        """
        if (self.strategy == CacheStrategy.NO_CACHE
                or not self.is_valid_identifier(identifier)
                or not self.directory.is_dir()):
            return emote_image_url(identifier, self.cdn_base)

        local = self.cached_path(identifier)
        if local:
            return local

        self.download_in_background(identifier)
        return emote_image_url(identifier, self.cdn_base)

    def download_in_background(self, identifier: str) -> Optional[threading.Thread]:
        with self._lock:
            if identifier in self._pending:
                return None
            self._pending.add(identifier)

        def _worker():
            try:
                self.download(identifier)
            except (NetworkError, ParseError):
                pass  # already logged; the CDN URL keeps working
            finally:
                with self._lock:
                    self._pending.discard(identifier)

        thread = threading.Thread(target=_worker, daemon=True)
        thread.start()
        return thread

    def precache(self, identifiers: Iterable[str]) -> Dict[str, int]:
        """
        Download every missing image, a small batch at a time.

        Returns:
            Counts of downloaded, already cached and failed images
        """
        ids = list(dict.fromkeys(identifiers))
        stats = {'downloaded': 0, 'cached': 0, 'failed': 0}

        for i in range(0, len(ids), self.BATCH_SIZE):
            for identifier in ids[i:i + self.BATCH_SIZE]:
                if self.is_cached(identifier):
                    stats['cached'] += 1
                    continue
                try:
                    self.download(identifier)
                    stats['downloaded'] += 1
                except (NetworkError, ParseError):
                    stats['failed'] += 1
            time.sleep(self.BATCH_PAUSE)

        logger.info('CACHE', f"Pre-cache finished: {stats}")
        return stats

    def precache_in_background(self, identifiers: Iterable[str]) -> threading.Thread:
        thread = threading.Thread(target=self.precache, args=(list(identifiers),), daemon=True)
        thread.start()
        return thread

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        directory = self.directory
        images = list(directory.glob("*.webp")) if directory.is_dir() else []
        return {
            'directory': str(directory),
            'strategy': self.strategy.value,
            'images': len(images),
            'pending': len(self._pending)
        }
