import logging
import math
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlencode

import httpx

from gbooks.cache import MemoCache
from gbooks.config import Settings, config, resolve_settings
from gbooks.errors import InvalidIdentifier, InvalidQuery, MissingField, UnsupportedField

# Results per provider page; pagination offsets step by this regardless of maxResults
PAGE_SIZE = 40
ID_PREFIX = "id:"
LEADING_INT = re.compile(r"\s*[+-]?\d+")


class SearchField(str, Enum):
    """Fields the volumes endpoint can scope a search term to."""
    TITLE = "title"
    AUTHOR = "author"
    PUBLISHER = "publisher"
    SUBJECT = "subject"
    ISBN = "isbn"
    LCCN = "lccn"
    OCLC = "oclc"
    ID = "id"

    @property
    def prefix(self) -> str:
        return FIELD_PREFIXES[self]


FIELD_PREFIXES = {
    SearchField.TITLE: "intitle:",
    SearchField.AUTHOR: "inauthor:",
    SearchField.PUBLISHER: "inpublisher:",
    SearchField.SUBJECT: "subject:",
    SearchField.ISBN: "isbn:",
    SearchField.LCCN: "lccn:",
    SearchField.OCLC: "oclc:",
    SearchField.ID: ID_PREFIX,
}


def normalize_start_index(value: Any) -> int:
    """Non-negative finite numbers pass (floats truncated); anything else becomes 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if value < 0:
        return 0
    return int(value)


def sanitize_sets(value: Any) -> int:
    """
    Coerce a page-set count the way parseInt would: leading digits of the value's
    text ("2.5" -> 2, "3 pages" -> 3). Anything without them becomes 0 (no pages).
    """
    if isinstance(value, bool):
        return 0
    match = LEADING_INT.match(str(value))
    return int(match.group()) if match else 0


def _check_query(query: Any):
    if not isinstance(query, str) or not query:
        raise InvalidQuery()


class GoogleBooksClient:
    """
    Google Books volumes client with memoized requests and sequential pagination.

    Every request goes through a per-client MemoCache keyed by the full request URL,
    so identical calls (including concurrent ones) hit the provider once per max_age window.
    """

    def __init__(
        self,
        settings: Optional[Union[Settings, Dict[str, Any]]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        **overrides,
    ):
        if isinstance(settings, Settings) and not overrides:
            self.settings = settings
        else:
            self.settings = resolve_settings(settings, **overrides)

        cache_options = self.settings.cache_options
        self.cache = MemoCache(max_age=cache_options.max_age, max_size=cache_options.max_size)
        # When None a short-lived AsyncClient is opened per request
        self.http_client = http_client

    def _log(self, level: int, message: str, **context):
        self.settings.logger(level, message, context)

    def build_request(self, query: str, start_index: Any = 0) -> Tuple[str, Dict[str, Any], Dict[str, Any]]:
        """
        Validate a query and work out what to send.
        Returns (url, params sent to the provider, params making up the cache key).
        """
        _check_query(query)
        self._log(logging.INFO, "Searching for books with query", query=query)

        params = {
            **self.settings.query_params.to_params(),
            "q": query,
            "startIndex": normalize_start_index(start_index),
        }
        url = self.settings.api_url
        request_params = params

        if query.startswith(ID_PREFIX):
            volume_id = query[len(ID_PREFIX):].strip().strip('"')
            if not volume_id:
                raise InvalidIdentifier()
            self._log(logging.INFO, "Search by ID detected, using alternate resource", id=volume_id)
            url = f"{url.rstrip('/')}/{volume_id}"
            # The volume path replaces the q search
            request_params = {k: v for k, v in params.items() if k != "q"}

        return url, request_params, params

    @staticmethod
    def cache_key(url: str, params: Dict[str, Any]) -> str:
        return f"{url}?{urlencode(params)}"

    async def _get(self, url: str, params: Dict[str, Any]) -> Any:
        self._log(logging.INFO, "Not cached, requesting Google Books API", url=url, params=params)
        if self.http_client is not None:
            response = await self.http_client.get(url, params=params, timeout=self.settings.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def search_single(self, query: str, start_index: Any = 0) -> Any:
        """Fetch one page (or one volume for ``id:`` queries) and return the decoded body."""
        url, request_params, key_params = self.build_request(query, start_index)
        key = self.cache_key(url, key_params)
        self._log(logging.INFO, "Requesting data from Google Books cache", key=key)
        return await self.cache.get_or_compute(key, lambda: self._get(url, request_params))

    async def search(self, query: str, start_index: Any = 0, sets: Any = None) -> List[Any]:
        """
        Fetch `sets` consecutive pages at start indexes 0, 40, 80...

        Pages are requested one after another; the first failure is raised and
        nothing fetched so far is returned. start_index is accepted for call
        compatibility but pagination always begins at 0.
        """
        count = sanitize_sets(self.settings.sets_to_fetch if sets is None else sets)
        results = []
        for page in range(count):
            results.append(await self.search_single(query, page * PAGE_SIZE))
        return results

    async def search_by(self, query: str, field: Optional[Union[SearchField, str]]) -> List[Any]:
        """Search with the term scoped to a field, e.g. author -> inauthor:"Tolkien"."""
        _check_query(query)
        if field is None:
            raise MissingField()
        try:
            search_field = SearchField(field)
        except ValueError:
            raise UnsupportedField(field) from None

        self._log(logging.INFO, "Searching for books by field", query=query, field=search_field.value)
        return await self.search(f'{search_field.prefix}"{query}"')


_books_client: Optional[GoogleBooksClient] = None


def get_books_client() -> GoogleBooksClient:
    """Shared client configured from the environment / ~/.gbooks_config.json, built on first use."""
    global _books_client
    if _books_client is None:
        _books_client = GoogleBooksClient(config.as_options())
    return _books_client
