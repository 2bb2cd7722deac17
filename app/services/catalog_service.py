"""
Catalog refresh: Watchmode discovery -> TMDb metadata -> rating/language -> stored snapshot
"""
import logging
import os
import socket
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from constants import (
    CATALOG_REGION,
    CONTENT_TYPES,
    CONTENT_TYPE_MOVIE,
    DEFAULT_SETTINGS,
    MAX_CAST_MEMBERS,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_UPDATING,
    TMDB_IMAGE_BASE_URL,
)
from db import db
from exceptions import CatalogException
from rate_limiter import RateLimiter, pause
from repositories.cachestatus_repository import CacheStatusRepository
from repositories.titles_repository import TitlesRepository
from services.language_service import map_language
from services.rating_service import resolve_rating, genre_names
from services.tmdb_client import TMDbClient
from services.watchmode_client import WatchmodeClient, TitleDescriptor
from utils import ensure_utc, is_film_shaped, now_utc, year_from_date

logger = logging.getLogger("main")


def make_lease_holder():
    """Identity written into the refresh lease"""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


def build_clients(settings):
    """Provider clients with per-provider token buckets from settings"""
    apis = settings.get("apis", {})
    limits = settings.get("rate_limits", {})
    timeout = apis.get("timeout", 15)

    tmdb_limits = limits.get("tmdb", {})
    watchmode_limits = limits.get("watchmode", {})

    tmdb = TMDbClient(
        apis.get("tmdb_api_key", ""),
        rate_limiter=RateLimiter(tmdb_limits.get("rate", 4.0), tmdb_limits.get("burst", 10), name="tmdb"),
        timeout=timeout,
    )
    watchmode = WatchmodeClient(
        apis.get("watchmode_api_key", ""),
        rate_limiter=RateLimiter(watchmode_limits.get("rate", 1.0), watchmode_limits.get("burst", 1), name="watchmode"),
        timeout=timeout,
    )
    return watchmode, tmdb


def build_record(details: Dict[str, Any], descriptor: TitleDescriptor, genre_map: Optional[Dict[int, str]] = None,
                 primary: Optional[str] = None, secondary: Optional[str] = None) -> Dict[str, Any]:
    """Canonical Titles fields from a TMDb payload and its Watchmode entry"""
    content_type = descriptor.content_type if descriptor.content_type in CONTENT_TYPES else CONTENT_TYPE_MOVIE
    is_movie = is_film_shaped(content_type)

    jurisdictions = {}
    if primary:
        jurisdictions["primary"] = primary
    if secondary:
        jurisdictions["secondary"] = secondary
    rating = resolve_rating(details, is_movie, genre_map, **jurisdictions)

    title = details.get("title") if is_movie else details.get("name")
    release_date = details.get("release_date") if is_movie else details.get("first_air_date")
    poster_path = details.get("poster_path")

    # dict.fromkeys keeps first-seen order and drops duplicates
    genres = list(dict.fromkeys(genre_names(details, genre_map)))
    cast = [c.get("name") for c in ((details.get("credits") or {}).get("cast") or [])[:MAX_CAST_MEMBERS] if c.get("name")]

    return {
        "netflix_id": descriptor.watchmode_id,
        "title": title or descriptor.title,
        "synopsis": details.get("overview") or "",
        "poster_url": f"{TMDB_IMAGE_BASE_URL}{poster_path}" if poster_path else "",
        "release_year": year_from_date(release_date),
        "bbfc_rating": rating,
        "language": map_language(details.get("original_language")),
        "content_type": content_type,
        "genres": genres,
        "cast": cast,
    }


class CatalogService:
    """Refreshes the stored catalog for one region; at most one refresh runs at a time"""

    def __init__(self, watchmode: WatchmodeClient, tmdb: TMDbClient, catalog_settings: Optional[Dict[str, Any]] = None,
                 cancel_event: Optional[threading.Event] = None):
        self.watchmode = watchmode
        self.tmdb = tmdb
        self.config = dict(DEFAULT_SETTINGS["catalog"])
        self.config.update(catalog_settings or {})
        self.region = self.config.get("region", CATALOG_REGION)
        self.cancel_event = cancel_event or threading.Event()

        self._refresh_lock = threading.Lock()
        self.is_refreshing = False
        self.holder = make_lease_holder()

    @classmethod
    def from_settings(cls, settings, cancel_event=None):
        watchmode, tmdb = build_clients(settings)
        return cls(watchmode, tmdb, settings.get("catalog"), cancel_event=cancel_event)

    # ------------------------------------------------------------------ status

    def get_status(self):
        """Current refresh state of the region (None before the first refresh)"""
        return CacheStatusRepository.get_active(self.region)

    def current_generation(self):
        status = self.get_status()
        return status.current_generation if status else 0

    def is_stale(self, status, now: Optional[datetime] = None) -> bool:
        now = now or now_utc()
        last_update = ensure_utc(status.last_updated) or datetime.fromtimestamp(0, tz=timezone.utc)
        hours_since_update = (now - last_update).total_seconds() / 3600
        return hours_since_update >= float(self.config["freshness_hours"])

    def refresh_if_stale(self) -> bool:
        """Scheduled entry point: refresh on first run or once the freshness window has passed"""
        status = self.get_status()

        if not status:
            logger.info(f"No cache status for {self.region}, running first catalog refresh")
            CacheStatusRepository.create(region=self.region, status=STATUS_PENDING, total_movies=0)
            return self.refresh_catalog()

        if self.is_stale(status):
            logger.info(f"{self.config['freshness_hours']} hours passed since last update. Starting refresh...")
            return self.refresh_catalog()

        logger.debug(f"Catalog for {self.region} is fresh ({status.status}), skipping refresh")
        return False

    # ----------------------------------------------------------------- refresh

    def refresh_catalog(self) -> bool:
        """
        Run one refresh cycle. Returns False without touching the cache status
        if another refresh holds the in-process guard or the store lease.
        """
        with self._refresh_lock:
            if self.is_refreshing:
                logger.info("Catalog refresh already in progress")
                return False
            self.is_refreshing = True

        leased = False
        try:
            CacheStatusRepository.get_or_create(self.region)
            lease = timedelta(hours=float(self.config["lease_hours"]))
            leased = CacheStatusRepository.acquire_lease(self.region, self.holder, lease)
            if not leased:
                logger.info(f"Catalog refresh for {self.region} is held by another process")
                return False

            self._run_refresh()
            return True
        finally:
            if leased:
                try:
                    CacheStatusRepository.release_lease(self.region, self.holder)
                except SQLAlchemyError as e:
                    logger.error(f"Failed to release refresh lease for {self.region}: {e}")
            with self._refresh_lock:
                self.is_refreshing = False

    def _run_refresh(self):
        new_generation = None
        try:
            logger.info("Starting catalog refresh...")
            status = CacheStatusRepository.update(self.region, status=STATUS_UPDATING)
            new_generation = status.current_generation + 1
            # Leftovers of a crashed run under the same generation would collide
            TitlesRepository.delete_generation(new_generation)

            records = self.fetch_catalog()
            if self.cancel_event.is_set():
                raise CatalogException("Catalog refresh cancelled", code="CANCELLED")
            if not records:
                raise CatalogException("No movies fetched from API", code="EMPTY_CATALOG")

            inserted, skipped = self.write_snapshot(records, new_generation)
            if inserted == 0:
                raise CatalogException("No movies could be stored", code="EMPTY_CATALOG")

            # Readers switch to the new snapshot in this single commit
            CacheStatusRepository.update(
                self.region,
                status=STATUS_COMPLETED,
                total_movies=inserted,
                current_generation=new_generation,
            )
            logger.info(f"Catalog refresh completed. Inserted {inserted} movies, skipped {skipped} duplicates.")
        except Exception as e:
            logger.error(f"Catalog refresh failed: {e}")
            db.session.rollback()
            if new_generation is not None:
                self._discard_generation(new_generation)
            CacheStatusRepository.update(self.region, status=STATUS_FAILED)
            return

        try:
            removed = TitlesRepository.delete_other_generations(new_generation)
            logger.info(f"Removed {removed} titles of previous snapshots")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Could not remove previous snapshots: {e}")

    def _discard_generation(self, generation):
        status = self.get_status()
        if status and status.current_generation == generation:
            return
        try:
            TitlesRepository.delete_generation(generation)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Could not discard partial snapshot {generation}: {e}")

    def fetch_catalog(self) -> List[Dict[str, Any]]:
        """Discover the region's titles and build a canonical record for each one TMDb knows"""
        if not self.tmdb.api_key or not self.watchmode.api_key:
            logger.warning("Missing API keys. TMDb or Watchmode API key not found.")
            return []

        genre_map = self.tmdb.load_genre_map()

        titles = self.watchmode.list_titles(
            region=self.config["watchmode_region"],
            source_id=self.config["source_id"],
            page_size=self.config["page_size"],
            max_pages=self.config["max_pages"],
            cancel_event=self.cancel_event,
        )
        logger.info(f"Found {len(titles)} Netflix titles from Watchmode")
        if not titles:
            return []

        records = []
        batch_size = max(1, int(self.config["batch_size"]))
        for index, descriptor in enumerate(titles, start=1):
            if self.cancel_event.is_set():
                logger.info("Catalog fetch cancelled")
                break
            try:
                if descriptor.tmdb_id:
                    details = self.tmdb.get_details(descriptor.tmdb_id, descriptor.content_type, self.cancel_event)
                    if details:
                        records.append(build_record(
                            details,
                            descriptor,
                            genre_map,
                            primary=self.config["primary_jurisdiction"],
                            secondary=self.config["secondary_jurisdiction"],
                        ))
            except Exception as e:
                logger.error(f"Failed to process title {descriptor.title}: {e}")

            if index % batch_size == 0:
                pause(float(self.config["batch_delay_seconds"]), self.cancel_event)

        logger.info(f"Successfully processed {len(records)} movies from TMDb + Watchmode")
        return records

    def write_snapshot(self, records: List[Dict[str, Any]], generation: int) -> Tuple[int, int]:
        """Insert records under a generation; duplicate ids are skipped, not fatal"""
        inserted = 0
        skipped = 0
        for record in records:
            try:
                TitlesRepository.create(generation=generation, **record)
                inserted += 1
            except IntegrityError:
                logger.debug(f"Duplicate netflix id {record.get('netflix_id')}, skipping {record.get('title')}")
                skipped += 1
        return inserted, skipped

    # -------------------------------------------------------------- lifecycle

    def clear_catalog(self):
        """Remove every stored title and reset the region's counters"""
        deleted = TitlesRepository.delete_all()
        if self.get_status():
            CacheStatusRepository.update(self.region, status=STATUS_PENDING, total_movies=0)
        logger.info(f"Cleared {deleted} titles from the catalog")
        return deleted

    def start_background_refresh(self, app) -> bool:
        """Fire-and-forget refresh. Returns False if one is already running in this process."""
        if self.is_refreshing:
            logger.info("Catalog refresh already in progress")
            return False

        def run_refresh():
            with app.app_context():
                try:
                    self.refresh_catalog()
                except Exception as e:
                    logger.error(f"Background catalog refresh failed: {e}")
                finally:
                    db.session.remove()

        thread = threading.Thread(target=run_refresh, name="CatalogRefresh")
        thread.daemon = True
        thread.start()
        logger.info("Background catalog refresh thread started")
        return True
