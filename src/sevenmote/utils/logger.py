"""
Structured logging for Sevenmote.

Tracks emote resolution, mapping swaps and insertions without cluttering
the engines. Nothing is ever written to stdout, which the stdio service
uses for its protocol.

Logs are organized in date-stamped folders with separate files for each
log level:
  logs/YYYY-MM-DD/debug.log
  logs/YYYY-MM-DD/info.log
  logs/YYYY-MM-DD/warning.log
  logs/YYYY-MM-DD/error.log
"""

import logging
import json
import time
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone


class SevenmoteLogger:
    """Centralized logger for emote resolution and editor events."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.logger = logging.getLogger("sevenmote")
            self.json_mode = False
            self.session_start = time.time()
            self.log_dir = None
            self._initialized = True

    def _get_default_log_dir(self) -> Path:
        """Get the default log directory path with today's date."""
        today = datetime.now().strftime("%Y-%m-%d")
        return Path.home() / ".sevenmote" / "logs" / today

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[str] = None,
        json_mode: bool = False,
        enable_logging: bool = True,
    ):
        """
        Configure logging output.

        Args:
            level: DEBUG, INFO, WARNING, ERROR (minimum level to log)
            log_dir: Optional directory for logs (default: ~/.sevenmote/logs/YYYY-MM-DD/)
            json_mode: Use JSON format for structured parsing
            enable_logging: Enable file logging (default: True)
        """
        if not enable_logging:
            return

        self.json_mode = json_mode
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        self.log_dir = Path(log_dir) if log_dir else self._get_default_log_dir()
        self.log_dir.mkdir(parents=True, exist_ok=True)

        if json_mode:
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(component)-8s] %(message)s',
                datefmt='%H:%M:%S'
            )

        min_level = getattr(logging, level.upper(), logging.INFO)

        log_levels = [
            (logging.DEBUG, 'debug.log'),
            (logging.INFO, 'info.log'),
            (logging.WARNING, 'warning.log'),
            (logging.ERROR, 'error.log'),
        ]

        for log_level, filename in log_levels:
            if log_level >= min_level:
                handler = logging.FileHandler(self.log_dir / filename, mode='a', encoding='utf-8')
                handler.setLevel(log_level)
                handler.setFormatter(formatter)
                # Each file only holds its own level
                handler.addFilter(lambda record, level=log_level: record.levelno == level)
                self.logger.addHandler(handler)

    def get_log_directory(self) -> Optional[Path]:
        """Get the current log directory path."""
        return self.log_dir

    def _log(self, level: str, component: str, msg: str, **data):
        """Core logging with structured data."""
        extra = {'component': component, **data}
        getattr(self.logger, level)(msg, extra=extra)

    # === RESOLVER ===

    def resolver_request(self, url: str):
        self._log('debug', 'RESOLVER', f"GET {url}", url=url)

    def resolver_response(self, url: str, status_code: int):
        self._log('debug', 'RESOLVER', f"{status_code} from {url}",
                  url=url, status_code=status_code)

    def resolver_result(self, account_id: str, status: str, emote_count: int):
        self._log('info', 'RESOLVER', f"Resolved {account_id!r}: {status} ({emote_count} emotes)",
                  account_id=account_id, status=status, emote_count=emote_count)

    def resolver_failed(self, account_id: str, error: Exception):
        self._log('error', 'RESOLVER', f"Failed to fetch emotes for {account_id!r}: {error}",
                  account_id=account_id, error=str(error),
                  error_type=type(error).__name__)

    # === MAPPING STORE ===

    def mapping_swapped(self, before: int, after: int):
        self._log('info', 'STORE', f"Emote mapping replaced: {before} -> {after} entries",
                  before=before, after=after)

    def mapping_kept(self, reason: str):
        self._log('info', 'STORE', f"Keeping current emote mapping: {reason}", reason=reason)

    # === EDITOR EVENTS ===

    def trigger(self, query: str, start: int, end: int, candidates: int):
        self._log('debug', 'TRIGGER', f"Query {query!r} [{start}, {end}) -> {candidates} candidates",
                  query=query, candidates=candidates)

    def insertion(self, name: str, identifier: str):
        self._log('info', 'INSERT', f"Inserted :{name}: ({identifier})",
                  emote=name, identifier=identifier)

    def insertion_not_found(self, name: str):
        self._log('warning', 'INSERT', f"Emote {name!r} vanished from mapping; nothing inserted",
                  emote=name)

    # === CACHE ===

    def cache_download(self, identifier: str, success: bool, error: Optional[str] = None):
        status = "cached" if success else f"failed: {error}"
        self._log('debug', 'CACHE', f"Image {identifier} {status}",
                  identifier=identifier, success=success)

    # === ERRORS & WARNINGS ===

    def info(self, component: str, message: str):
        self._log('info', component.upper(), message)

    def debug(self, component: str, message: str):
        self._log('debug', component.upper(), message)

    def error(self, component: str, message: str, exception: Optional[Exception] = None):
        import traceback

        error_details = message
        if exception:
            tb_str = ''.join(traceback.format_exception(type(exception), exception, exception.__traceback__))
            error_details = f"{message}\n{tb_str}"

        self._log('error', component.upper(), f"ERROR: {error_details}",
                  error=str(exception) if exception else message)

    def warning(self, component: str, message: str):
        self._log('warning', component.upper(), f"WARNING: {message}")


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            'time': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'component': getattr(record, 'component', 'SYSTEM'),
            'message': record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in {'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
                        'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
                        'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
                        'thread', 'threadName', 'processName', 'process', 'message',
                        'component', 'asctime', 'taskName'}:
                data[k] = v
        return json.dumps(data, default=str)


# Global instance
logger = SevenmoteLogger()
