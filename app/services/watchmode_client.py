"""
Client for the Watchmode API (which titles are on Netflix in a region)
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

import requests

from constants import WATCHMODE_BASE_URL, NETFLIX_SOURCE_ID, CONTENT_TYPE_MOVIE
from exceptions import ProviderException
from rate_limiter import RateLimiter

logger = logging.getLogger("main")


@dataclass
class TitleDescriptor:
    """One entry of the Watchmode title list"""

    watchmode_id: str
    title: str
    content_type: str = CONTENT_TYPE_MOVIE
    tmdb_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TitleDescriptor":
        return cls(
            watchmode_id=str(data.get("id")),
            title=data.get("title") or "",
            content_type=data.get("type") or CONTENT_TYPE_MOVIE,
            tmdb_id=data.get("tmdb_id") or None,
        )


class WatchmodeClient:
    """Paginating client for Watchmode list-titles and title details"""

    def __init__(self, api_key: str, rate_limiter: Optional[RateLimiter] = None, timeout: int = 15, session=None):
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter(rate=1.0, burst=1, name="watchmode")
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "BBFC Netflix Catalog"
        })

    def list_titles(
        self,
        region: str = "GB",
        source_id: int = NETFLIX_SOURCE_ID,
        page_size: int = 250,
        max_pages: int = 50,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[TitleDescriptor]:
        """
        Fetch every page of titles for a source and region.
        Stops at the first empty page, failed response or transport error and
        returns whatever was gathered until then.
        """
        if not self.api_key:
            logger.warning("Missing Watchmode API key, no titles fetched")
            return []

        all_titles: List[TitleDescriptor] = []
        page = 1

        while page <= max_pages:
            if not self.rate_limiter.acquire(cancel_event):
                logger.info(f"Watchmode pagination cancelled at page {page}")
                break

            logger.info(f"Fetching Watchmode page {page}/{max_pages}...")
            try:
                response = self.session.get(
                    f"{WATCHMODE_BASE_URL}/list-titles/",
                    params={
                        "apiKey": self.api_key,
                        "source_ids": source_id,
                        "regions": region,
                        "limit": page_size,
                        "page": page,
                    },
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error(f"Watchmode page {page} request error: {e}")
                break

            if not response.ok:
                logger.error(f"Watchmode page {page} failed: {response.status_code}")
                break

            try:
                titles = response.json().get("titles") or []
            except ValueError as e:
                logger.error(f"Watchmode page {page} returned an unreadable body: {e}")
                break

            if not titles:
                logger.info(f"No more titles found at page {page}")
                break

            added = 0
            for entry in titles:
                if entry.get("id") is None:
                    logger.debug(f"Skipping Watchmode entry without id: {entry.get('title')}")
                    continue
                all_titles.append(TitleDescriptor.from_dict(entry))
                added += 1
            logger.info(f"Page {page}: Added {added} titles (total: {len(all_titles)})")
            page += 1

        logger.info(f"Fetched total of {len(all_titles)} titles from Watchmode")
        return all_titles

    def get_tmdb_id(self, watchmode_id: str, cancel_event: Optional[threading.Event] = None) -> Optional[int]:
        """Look up the TMDb id cross-referenced by a Watchmode title"""
        if not self.api_key:
            return None

        if not self.rate_limiter.acquire(cancel_event):
            return None

        try:
            response = self.session.get(
                f"{WATCHMODE_BASE_URL}/title/{watchmode_id}/details/",
                params={"apiKey": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderException(f"details for {watchmode_id} failed: {e}", provider="watchmode")

        if not response.ok:
            logger.debug(f"Watchmode details for {watchmode_id} returned {response.status_code}")
            return None

        try:
            return response.json().get("tmdb_id") or None
        except ValueError as e:
            raise ProviderException(f"details for {watchmode_id} unreadable: {e}", provider="watchmode")
