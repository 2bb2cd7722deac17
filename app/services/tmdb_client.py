"""
Client for The Movie Database (TMDb) API
"""
import logging
import threading
from typing import Optional, Dict, Any

import requests

from constants import TMDB_BASE_URL
from exceptions import ProviderException
from rate_limiter import RateLimiter
from utils import is_film_shaped

logger = logging.getLogger("main")


class TMDbClient:
    """Per-title metadata and genre taxonomy from TMDb"""

    def __init__(self, api_key: str, rate_limiter: Optional[RateLimiter] = None, timeout: int = 15, session=None):
        self.api_key = api_key
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter(rate=4.0, burst=10, name="tmdb")
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "BBFC Netflix Catalog"
        })
        self.genre_map: Dict[int, str] = {}

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, cancel_event=None):
        if not self.rate_limiter.acquire(cancel_event):
            return None
        query = {"api_key": self.api_key}
        query.update(params or {})
        try:
            return self.session.get(f"{TMDB_BASE_URL}/{path}", params=query, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderException(f"GET {path} failed: {e}", provider="tmdb")

    def load_genre_map(self) -> Dict[int, str]:
        """Merge the movie and TV genre lists into one id -> name map"""
        try:
            genre_map = {}
            for kind in ("movie", "tv"):
                response = self._get(f"genre/{kind}/list")
                if response is None or not response.ok:
                    raise ProviderException(f"{kind} genres request failed", provider="tmdb")
                for genre in response.json().get("genres") or []:
                    genre_map[genre["id"]] = genre["name"]

            self.genre_map = genre_map
            logger.info(f"Loaded {len(self.genre_map)} genre mappings from TMDb (movies + TV)")
        except ProviderException as e:
            logger.error(f"Failed to load genre mapping: {e.message}")

        return self.genre_map

    def get_details(
        self, tmdb_id: int, content_type: str, cancel_event: Optional[threading.Event] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Detail payload for a title, with credits and the certification data of its shape:
        release_dates for films, content_ratings for series.
        Returns None on a non-success response.
        """
        if is_film_shaped(content_type):
            path, append = f"movie/{tmdb_id}", "credits,release_dates"
        else:
            path, append = f"tv/{tmdb_id}", "credits,content_ratings"

        response = self._get(path, {"append_to_response": append}, cancel_event)
        if response is None:
            return None

        if not response.ok:
            logger.debug(f"TMDb {path} returned {response.status_code}")
            return None

        return response.json()
