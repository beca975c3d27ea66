"""
Emote set resolution against the 7TV API.

Two sequential lookups turn an account ID into an emote mapping:
  1. GET {api}/users/{provider}/{account_id}  -> emote set ID
  2. GET {api}/emote-sets/{set_id}            -> list of {name, id}

Errors never escape `resolve()`; they are logged and reported through the
returned ResolveResult.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from sevenmote.autocomplete.mapping_store import fallback_mapping
from sevenmote.config import DEFAULT_API_BASE, DEFAULT_PROVIDER
from sevenmote.errors import NetworkError, ParseError, SevenmoteError
from sevenmote.utils.logger import logger


class ResolveStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # no account ID configured


@dataclass
class ResolveResult:
    """Outcome of one resolution. `mapping` always includes the fallback emote."""
    status: ResolveStatus
    mapping: Dict[str, str]
    emote_set_id: Optional[str] = None
    error: Optional[SevenmoteError] = None

    @property
    def ok(self) -> bool:
        return self.status == ResolveStatus.SUCCESS

    @property
    def remote_count(self) -> int:
        """Number of entries beyond the fallback seed."""
        return max(0, len(self.mapping) - 1)


def extract_emote_set_id(user_data: Any) -> Optional[str]:
    """
    Find the active emote set ID in a user lookup response.

    Accepts either `emote_set.id` or `emote_sets[0].id`.
    """
    if not isinstance(user_data, dict):
        return None

    emote_set = user_data.get('emote_set')
    if isinstance(emote_set, dict) and emote_set.get('id'):
        return str(emote_set['id'])

    emote_sets = user_data.get('emote_sets')
    if isinstance(emote_sets, list) and emote_sets:
        first = emote_sets[0]
        if isinstance(first, dict) and first.get('id'):
            return str(first['id'])

    return None


def extract_emotes(set_data: Any) -> Dict[str, str]:
    """
    Pull name -> id pairs out of an emote set response, in response order.

    Entries missing a name or an id are skipped; later duplicates win.
    """
    if not isinstance(set_data, dict) or not isinstance(set_data.get('emotes'), list):
        raise ParseError("Emote set response has no 'emotes' list")

    emotes: Dict[str, str] = {}
    for entry in set_data['emotes']:
        if not isinstance(entry, dict):
            continue
        name = entry.get('name')
        identifier = entry.get('id')
        if name and identifier:
            emotes[str(name)] = str(identifier)
    return emotes


class EmoteResolver:
    """Fetches the emote mapping for an account."""

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        provider: str = DEFAULT_PROVIDER,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_base = api_base.rstrip('/')
        self.provider = provider
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "Sevenmote/0.1")

    def _get_json(self, url: str) -> Any:
        """GET a URL and decode its JSON body."""
        logger.resolver_request(url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        logger.resolver_response(url, response.status_code)
        if not response.ok:
            raise NetworkError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url}") from e

    def fetch_emote_set_id(self, account_id: str) -> str:
        url = f"{self.api_base}/users/{quote(self.provider, safe='')}/{quote(account_id, safe='')}"
        emote_set_id = extract_emote_set_id(self._get_json(url))
        if not emote_set_id:
            raise ParseError(f"No emote set found for account {account_id}")
        return emote_set_id

    def fetch_emote_set(self, emote_set_id: str) -> Dict[str, str]:
        url = f"{self.api_base}/emote-sets/{quote(emote_set_id, safe='')}"
        return extract_emotes(self._get_json(url))

    def resolve(self, account_id: Optional[str]) -> ResolveResult:
        """
        Resolve an account ID into an emote mapping.

        The fallback emote is seeded first; remote emotes are added only
        when both lookups succeed.

        Args:
            account_id: External account identifier (empty means skip)

        Returns:
            ResolveResult; never raises
        """
        mapping = fallback_mapping()
        account_id = (account_id or '').strip()

        if not account_id:
            logger.resolver_result(account_id, ResolveStatus.SKIPPED.value, len(mapping))
            return ResolveResult(status=ResolveStatus.SKIPPED, mapping=mapping)

        emote_set_id = None
        try:
            emote_set_id = self.fetch_emote_set_id(account_id)
            mapping.update(self.fetch_emote_set(emote_set_id))
        except (NetworkError, ParseError) as e:
            logger.resolver_failed(account_id, e)
            return ResolveResult(
                status=ResolveStatus.FAILED,
                mapping=fallback_mapping(),
                emote_set_id=emote_set_id,
                error=e
            )

        logger.resolver_result(account_id, ResolveStatus.SUCCESS.value, len(mapping))
        return ResolveResult(
            status=ResolveStatus.SUCCESS,
            mapping=mapping,
            emote_set_id=emote_set_id
        )

    async def resolve_async(self, account_id: Optional[str]) -> ResolveResult:
        """Run `resolve()` off the event loop."""
        return await asyncio.to_thread(self.resolve, account_id)
