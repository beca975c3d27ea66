"""
Emote autocomplete service that communicates with an editor host via stdio.

This service runs as a background process next to the editor. The host
forwards cursor moves and selections; the service answers with suggestion
rows and the buffer edits to apply.
"""

import sys
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from sevenmote.autocomplete.cache import CacheStrategy, EmoteImageCache
from sevenmote.autocomplete.editor import EditorBuffer, RecordingBuffer
from sevenmote.autocomplete.insertion import InsertionEngine
from sevenmote.autocomplete.mapping_store import EmoteMappingStore, fallback_mapping
from sevenmote.autocomplete.protocol import (
    CursorPosition,
    JSONRPCMessage,
    SelectionRequest,
    SuggestionRequest,
)
from sevenmote.autocomplete.resolver import EmoteResolver, ResolveResult
from sevenmote.autocomplete.suggestion_engine import SuggestionEngine
from sevenmote.autocomplete.trigger import detect_trigger
from sevenmote.config import Config
from sevenmote.errors import NotFound
from sevenmote.settings import BUILT_IN_STREAMERS, SettingsManager
from sevenmote.utils.logger import logger


class InvalidParams(ValueError):
    """Request parameters are missing or malformed."""


class EmoteService:
    """
    Owns the mapping store and wires the engines around it.

    Host-agnostic: editors interact through `suggestions_at()`, `select()`
    and an EditorBuffer of their own.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        settings: Optional[SettingsManager] = None,
        resolver: Optional[EmoteResolver] = None,
        store: Optional[EmoteMappingStore] = None,
        image_cache: Optional[EmoteImageCache] = None,
    ):
        self.config = config or Config()
        self.settings = settings or SettingsManager(
            self.config.settings_file, account_override=self.config.account_id
        )
        self.store = store or EmoteMappingStore()
        self.resolver = resolver or EmoteResolver(
            api_base=self.config.api_base,
            provider=self.config.provider,
            timeout=self.config.timeout,
        )
        self.image_cache = image_cache or EmoteImageCache(
            root=self.config.document_root or Path('.'),
            cache_dir=self.config.cache_dir,
            cdn_base=self.config.cdn_base,
            strategy=self.settings.cache_strategy,
            timeout=self.config.timeout,
        )
        self.suggestion_engine = SuggestionEngine(self.store, cdn_base=self.config.cdn_base)
        self.insertion_engine = InsertionEngine(
            self.store, image_cache=self.image_cache, cdn_base=self.config.cdn_base
        )
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()
        self.last_result: Optional[ResolveResult] = None

    # === LIFECYCLE ===

    def start(self, wait: bool = False) -> Optional[threading.Thread]:
        """Prepare the image cache and load emotes for the configured account."""
        self.image_cache.ensure_initialized()
        return self.refresh(wait=wait)

    @property
    def refreshing(self) -> bool:
        return self._in_flight > 0

    def refresh(self, account_id: Optional[str] = None, wait: bool = False) -> Optional[threading.Thread]:
        """
        Reload emotes in the background.

        Overlapping refreshes are not cancelled; whichever finishes last
        owns the mapping.

        Args:
            account_id: Account to load (default: the active one from settings)
            wait: Block until the refresh completes

        Returns:
            The worker thread, or None if no account is configured
        """
        account_id = account_id if account_id is not None else self.settings.active_account_id()
        if not account_id:
            logger.mapping_kept("no account configured")
            return None

        with self._in_flight_lock:
            self._in_flight += 1

        thread = threading.Thread(target=self._refresh_worker, args=(account_id,), daemon=True)
        thread.start()
        if wait:
            thread.join()
        return thread

    def _refresh_worker(self, account_id: str) -> None:
        try:
            self.apply_result(self.resolver.resolve(account_id))
        except Exception as e:
            logger.error('SERVICE', f"Refresh for {account_id} crashed", e)
        finally:
            with self._in_flight_lock:
                self._in_flight -= 1

    def apply_result(self, result: ResolveResult) -> bool:
        """
        Swap a resolution into the store if it brought any emotes.

        A set holding only a remote `HUH` still counts when its ID differs
        from the built-in fallback.

        Returns:
            True if the mapping was replaced
        """
        self.last_result = result
        if not result.ok:
            logger.mapping_kept(f"refresh {result.status.value}: {result.error}")
            return False
        if result.mapping == fallback_mapping():
            logger.mapping_kept("emote set is empty")
            return False

        replaced = self.store.replace(result.mapping)
        if replaced and self.image_cache.strategy == CacheStrategy.PRE_CACHE:
            self.image_cache.precache_in_background(result.mapping.values())
        return replaced

    # === EDITOR OPERATIONS ===

    def suggestions_at(self, line_text: str, cursor: CursorPosition) -> Dict[str, Any]:
        trigger = detect_trigger(line_text, cursor.character, line=cursor.line)
        if trigger is None:
            return {'trigger': None, 'suggestions': []}

        items = self.suggestion_engine.render(trigger.query)
        logger.trigger(trigger.query, trigger.start.character, trigger.end.character, len(items))
        return {
            'trigger': trigger.to_dict(),
            'suggestions': [item.to_dict() for item in items]
        }

    def select(self, request: SelectionRequest, buffer: EditorBuffer) -> str:
        return self.insertion_engine.accept(request.name, request.trigger, buffer)

    def set_account_id(self, value: str) -> Dict[str, Any]:
        should_refresh, warning = self.settings.set_account_id(value)
        if should_refresh:
            self.refresh()
        return {
            'account_id': self.settings.settings.account_id,
            'warning': warning,
            'refreshing': should_refresh
        }

    def select_streamer(self, key: str) -> Dict[str, Any]:
        account_id = self.settings.select_streamer(key)
        self.refresh(account_id)
        return {'account_id': account_id, 'streamer': self.settings.settings.selected_streamer}

    def set_cache_strategy(self, value: str) -> Dict[str, Any]:
        strategy = self.settings.set_cache_strategy(value)
        self.image_cache.strategy = strategy
        self.image_cache.ensure_initialized()
        return {'cache_strategy': strategy.value}

    def get_stats(self) -> Dict[str, Any]:
        return {
            'emotes': len(self.store),
            'emotes_loaded': self.store.has_loaded_emotes(),
            'generation': self.store.generation,
            'refreshing': self.refreshing,
            'source': self.settings.source_label(),
            'account_id': self.settings.active_account_id(),
            'cache': self.image_cache.get_stats()
        }


class AutocompleteService:
    """
    Autocomplete service that handles requests via JSON-RPC over stdio.
    """

    def __init__(self, emote_service: Optional[EmoteService] = None):
        """
        Initialize autocomplete service.

        Args:
            emote_service: Engine owner; built from the environment if omitted
        """
        self.emotes = emote_service or EmoteService()
        self.handlers = {
            'ping': lambda params: {'status': 'ok'},
            'getSuggestions': self._handle_get_suggestions,
            'selectSuggestion': self._handle_select_suggestion,
            'insertFallback': self._handle_insert_fallback,
            'setAccountId': self._handle_set_account_id,
            'selectStreamer': self._handle_select_streamer,
            'listStreamers': self._handle_list_streamers,
            'setCacheStrategy': self._handle_set_cache_strategy,
            'refresh': self._handle_refresh,
            'getStats': lambda params: self.emotes.get_stats(),
        }
        logger.info('SERVICE', "Autocomplete service initialized")

    def handle_request(self, request_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle a JSON-RPC request.

        Args:
            request_data: Parsed JSON-RPC request

        Returns:
            Response dictionary
        """
        method = request_data.get('method')
        params = request_data.get('params') or {}
        request_id = request_data.get('id')

        logger.debug('SERVICE', f"Handling request: method={method}, id={request_id}")

        handler = self.handlers.get(method)
        if handler is None:
            return json.loads(JSONRPCMessage.error(
                code=JSONRPCMessage.METHOD_NOT_FOUND,
                message=f"Method not found: {method}",
                id=request_id
            ))

        try:
            if not isinstance(params, dict):
                raise InvalidParams("params must be an object")
            result = handler(params)
            return json.loads(JSONRPCMessage.response(result, request_id))

        except NotFound as e:
            return json.loads(JSONRPCMessage.error(
                code=JSONRPCMessage.EMOTE_NOT_FOUND,
                message=str(e),
                id=request_id
            ))
        except (InvalidParams, KeyError, ValueError) as e:
            logger.warning('SERVICE', f"Invalid params for {method}: {e}")
            return json.loads(JSONRPCMessage.error(
                code=JSONRPCMessage.INVALID_PARAMS,
                message=str(e),
                id=request_id
            ))
        except Exception as e:
            logger.error('SERVICE', f"Error handling request {method}", e)
            return json.loads(JSONRPCMessage.error(
                code=JSONRPCMessage.INTERNAL_ERROR,
                message=str(e),
                id=request_id
            ))

    def _handle_get_suggestions(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle getSuggestions request.

        Args:
            params: `line_text` and `cursor` ({line, character})

        Returns:
            Trigger span (or null) and suggestion rows
        """
        request = SuggestionRequest.from_dict(params)
        return self.emotes.suggestions_at(request.line_text, request.cursor)

    def _handle_select_suggestion(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle selectSuggestion request.

        Args:
            params: `name`, `trigger` and optionally `range_text`, the text
                the host currently has between trigger start and end

        Returns:
            Edits for the host to apply in order
        """
        if not params.get('name') or not isinstance(params.get('trigger'), dict):
            raise InvalidParams("selectSuggestion needs 'name' and 'trigger'")

        request = SelectionRequest.from_dict(params)
        buffer = RecordingBuffer(request.range_text or '')
        self.emotes.select(request, buffer)
        return {'edits': [edit.to_dict() for edit in buffer.edits]}

    def _handle_insert_fallback(self, params: Dict[str, Any]) -> Dict[str, Any]:
        buffer = RecordingBuffer()
        self.emotes.insertion_engine.insert_fallback(buffer)
        return {'edits': [edit.to_dict() for edit in buffer.edits]}

    def _handle_set_account_id(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if 'account_id' not in params:
            raise InvalidParams("setAccountId needs 'account_id'")
        return self.emotes.set_account_id(str(params['account_id']))

    def _handle_select_streamer(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.emotes.select_streamer(str(params.get('key', '')))

    def _handle_list_streamers(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        selected = self.emotes.settings.settings.selected_streamer
        return [
            {'key': key, 'name': name, 'account_id': twitch_id, 'selected': key == selected}
            for name, twitch_id, key in BUILT_IN_STREAMERS
        ]

    def _handle_set_cache_strategy(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.emotes.set_cache_strategy(str(params.get('strategy', '')))

    def _handle_refresh(self, params: Dict[str, Any]) -> Dict[str, Any]:
        wait = bool(params.get('wait', False))
        account_id = params.get('account_id')
        if account_id is not None:
            account_id = str(account_id).strip()
        thread = self.emotes.refresh(account_id, wait=wait)
        result = {'started': thread is not None, 'emotes': len(self.emotes.store)}
        last = self.emotes.last_result
        if wait and thread is not None and last is not None:
            result['status'] = last.status.value
        return result

    def run(self):
        """
        Run the service loop, reading from stdin and writing to stdout.
        """
        logger.info('SERVICE', "Starting autocomplete service loop")

        try:
            while True:
                line = sys.stdin.readline()

                if not line:
                    logger.info('SERVICE', "EOF received, shutting down")
                    break

                line = line.strip()
                if not line:
                    continue

                logger.debug('SERVICE', f"Received: {line[:100]}...")

                try:
                    request_data = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.error('SERVICE', f"Invalid JSON: {e}")
                    print(JSONRPCMessage.error(
                        code=JSONRPCMessage.PARSE_ERROR,
                        message="Parse error",
                        id=None
                    ), flush=True)
                    continue

                if not isinstance(request_data, dict):
                    print(JSONRPCMessage.error(
                        code=JSONRPCMessage.INVALID_PARAMS,
                        message="Request must be an object",
                        id=None
                    ), flush=True)
                    continue

                response_str = json.dumps(self.handle_request(request_data))
                print(response_str, flush=True)
                logger.debug('SERVICE', f"Sent: {response_str[:100]}...")

        except KeyboardInterrupt:
            logger.info('SERVICE', "Service interrupted by user")
        finally:
            logger.info('SERVICE', "Autocomplete service shutting down")


def main():
    """Main entry point for the autocomplete service."""
    import argparse
    from dotenv import load_dotenv

    load_dotenv()
    config = Config()

    parser = argparse.ArgumentParser(description='Sevenmote Autocomplete Service')
    parser.add_argument(
        '--account-id',
        default=config.account_id,
        help='Account ID to load emotes for (overrides saved settings)'
    )
    parser.add_argument(
        '--log-level',
        default=config.log_level,
        help='Minimum level written to the log files (default: %(default)s)'
    )
    args = parser.parse_args()

    logger.configure(level=args.log_level, log_dir=config.log_dir)
    config.account_id = args.account_id

    service = AutocompleteService(EmoteService(config=config))
    service.emotes.start()
    service.run()


if __name__ == '__main__':
    main()
