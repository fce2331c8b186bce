"""
Client for the Jikan (MyAnimeList) v4 REST API.

Read-only access to the public catalog: search, browsing, top charts, the
current season and single-record lookups. Failures are raised as APIError and
never retried; callers show an empty or error state instead.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .constants import (
    CATALOG_KINDS,
    JIKAN_BASE_URL,
    JIKAN_BROWSE_PAGE_LIMIT,
    JIKAN_RATE_LIMIT_DELAY,
    JIKAN_SEARCH_PAGE_LIMIT,
    JIKAN_SEASON_LIMIT,
    JIKAN_TIMEOUT_SECONDS,
    JIKAN_TOP_LIMIT,
)
from .logging import APIError, ValidationError, log_api_call

logger = logging.getLogger(__name__)

# Orderings accepted by the listing endpoints
ORDER_FIELDS = {
    "anime": {"members", "score", "title", "episodes", "popularity", "start_date"},
    "manga": {"members", "score", "title", "chapters", "volumes", "popularity", "start_date"},
    "characters": {"favorites", "name"},
}


@dataclass
class CatalogPage:
    """One page of a list endpoint: the raw records plus pagination hints."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    has_next_page: bool = False
    current_page: int = 1
    last_visible_page: int = 1

    @classmethod
    def from_envelope(cls, envelope: Dict[str, Any], page: int = 1) -> 'CatalogPage':
        items = envelope.get("data") or []
        if not isinstance(items, list):
            raise APIError("Jikan response 'data' is not a list")
        pagination = envelope.get("pagination") or {}
        return cls(
            items=items,
            has_next_page=bool(pagination.get("has_next_page", False)),
            current_page=pagination.get("current_page", page),
            last_visible_page=pagination.get("last_visible_page", page),
        )


def _check_kind(kind: str, allowed=CATALOG_KINDS) -> str:
    if kind not in allowed:
        raise ValidationError(f"Unknown catalog kind '{kind}', expected one of {tuple(allowed)}")
    return kind


class JikanClient:
    """
    Thin wrapper around a requests.Session pointed at Jikan.

    Jikan allows roughly three requests per second, so every call sleeps
    rate_limit_delay first.
    """

    def __init__(
        self,
        base_url: str = JIKAN_BASE_URL,
        timeout: int = JIKAN_TIMEOUT_SECONDS,
        rate_limit_delay: float = JIKAN_RATE_LIMIT_DELAY,
        page_limit: int = JIKAN_SEARCH_PAGE_LIMIT,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.rate_limit_delay = rate_limit_delay
        self.page_limit = page_limit
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'JikanClient':
        """Builds a client from a JikanConfig section."""
        return cls(
            base_url=config.base_url,
            timeout=config.timeout,
            rate_limit_delay=config.rate_limit_delay,
            page_limit=config.page_limit,
        )

    def close(self) -> None:
        self.session.close()

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if self.rate_limit_delay:
            time.sleep(self.rate_limit_delay)

        log_api_call(url, "GET", params)
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Jikan request failed for {url}: {e}")
            raise APIError(f"Jikan request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning(f"Jikan returned malformed JSON for {url}: {e}")
            raise APIError(f"Jikan returned malformed JSON: {e}") from e

        if not isinstance(data, dict):
            raise APIError("Jikan response is not a JSON object")
        return data

    def _page(self, path: str, params: Dict[str, Any]) -> CatalogPage:
        return CatalogPage.from_envelope(self._request(path, params), page=params.get("page", 1))

    def search(self, kind: str, query: str, page: int = 1, limit: Optional[int] = None) -> CatalogPage:
        """Free-text search over anime, manga or characters."""
        _check_kind(kind)
        params = {"q": query, "page": page, "limit": limit or self.page_limit}
        return self._page(kind, params)

    def browse(
        self,
        kind: str,
        page: int = 1,
        limit: int = JIKAN_BROWSE_PAGE_LIMIT,
        genre: Optional[int] = None,
        order_by: Optional[str] = None,
        sort: Optional[str] = None
    ) -> CatalogPage:
        """
        Lists a catalog without a query, optionally filtered by genre id
        and ordered by one of ORDER_FIELDS.
        """
        _check_kind(kind)
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if genre is not None:
            if kind == "characters":
                raise ValidationError("Characters cannot be filtered by genre")
            params["genres"] = genre
        if order_by:
            if order_by not in ORDER_FIELDS[kind]:
                raise ValidationError(f"Cannot order {kind} by '{order_by}'")
            params["order_by"] = order_by
            # Titles and names read best A-Z, everything else highest first
            params["sort"] = sort or ("asc" if order_by in ("title", "name") else "desc")
        return self._page(kind, params)

    def top(self, kind: str, limit: int = JIKAN_TOP_LIMIT) -> CatalogPage:
        _check_kind(kind, ("anime", "manga"))
        return self._page(f"top/{kind}", {"limit": limit})

    def season_now(self, limit: int = JIKAN_SEASON_LIMIT) -> CatalogPage:
        """Anime airing this season."""
        return self._page("seasons/now", {"limit": limit})

    def genres(self, kind: str) -> List[Dict[str, Any]]:
        _check_kind(kind, ("anime", "manga"))
        return self._page(f"genres/{kind}", {}).items

    def get(self, kind: str, mal_id: int, full: bool = False) -> Dict[str, Any]:
        """
        Fetches one record by MAL id. The full variant adds relations such
        as a character's anime appearances.
        """
        _check_kind(kind)
        path = f"{kind}/{mal_id}/full" if full else f"{kind}/{mal_id}"
        record = self._request(path).get("data")
        if not isinstance(record, dict):
            raise APIError(f"Jikan has no {kind} record for id {mal_id}")
        return record

    def character_voices(self, mal_id: int) -> List[Dict[str, Any]]:
        return self._page(f"characters/{mal_id}/voices", {}).items
