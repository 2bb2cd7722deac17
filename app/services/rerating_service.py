"""
Re-rating of titles stuck at the most conservative rating
"""
import logging
import threading
from dataclasses import dataclass, asdict
from typing import Optional

from constants import DEFAULT_SETTINGS, RATING_18
from db import db
from rate_limiter import pause
from repositories.titles_repository import TitlesRepository
from services.catalog_service import CatalogService
from services.rating_service import resolve_rating
from utils import is_film_shaped

logger = logging.getLogger("main")


@dataclass
class RerateResult:
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0

    def to_dict(self):
        return asdict(self)


class RerateService:
    """
    Re-derives the rating of every stored title currently at the target rating (18)
    with the current resolver and persists only the ones that change.
    Running it twice without upstream changes updates nothing the second time.
    """

    def __init__(self, catalog: CatalogService):
        self.catalog = catalog
        self.watchmode = catalog.watchmode
        self.tmdb = catalog.tmdb
        self.config = catalog.config
        self.target_rating = self.config.get("rerate_target", DEFAULT_SETTINGS["catalog"]["rerate_target"]) or RATING_18
        self._lock = threading.Lock()
        self.is_running = False

    def rerate(self) -> Optional[RerateResult]:
        """Run one pass. Returns None if a pass is already running in this process."""
        with self._lock:
            if self.is_running:
                logger.info("Re-rating already in progress")
                return None
            self.is_running = True

        try:
            return self._rerate()
        finally:
            with self._lock:
                self.is_running = False

    def _rerate(self) -> RerateResult:
        result = RerateResult()
        logger.info("Starting targeted re-rating of miscategorized content...")

        generation = self.catalog.current_generation()
        candidates = TitlesRepository.get_by_rating(self.target_rating, generation)
        logger.info(f"Found {len(candidates)} movies currently rated {self.target_rating!r} for re-evaluation")

        if not candidates:
            return result

        batch_size = max(1, int(self.config["batch_size"]))
        cancel_event = self.catalog.cancel_event

        for index, movie in enumerate(candidates, start=1):
            if cancel_event.is_set():
                logger.info("Re-rating cancelled")
                break
            title = movie.title
            try:
                tmdb_id = self.watchmode.get_tmdb_id(movie.netflix_id, cancel_event)
                if not tmdb_id:
                    logger.info(f"Skipping {title}: No TMDb ID available")
                    result.skipped += 1
                    continue

                details = self.tmdb.get_details(tmdb_id, movie.content_type, cancel_event)
                if not details:
                    logger.info(f"Skipping {title}: Failed to fetch TMDb data")
                    result.skipped += 1
                    continue

                new_rating = resolve_rating(
                    details,
                    is_film_shaped(movie.content_type),
                    self.tmdb.genre_map,
                    primary=self.config["primary_jurisdiction"],
                    secondary=self.config["secondary_jurisdiction"],
                )

                if new_rating != self.target_rating:
                    TitlesRepository.update_rating(movie.id, new_rating)
                    logger.info(f"Updated {title}: {self.target_rating} -> {new_rating}")
                    result.updated += 1
                else:
                    result.unchanged += 1
            except Exception as e:
                db.session.rollback()
                logger.error(f"Failed to re-rate {title}: {e}")
                result.skipped += 1
            finally:
                if index % batch_size == 0:
                    pause(float(self.config["batch_delay_seconds"]), cancel_event)

        logger.info(
            f"Re-rating complete: {result.updated} updated, {result.unchanged} confirmed as "
            f"{self.target_rating}, {result.skipped} skipped"
        )
        return result

    def start_background_rerate(self, app) -> bool:
        """Fire-and-forget re-rating pass"""
        if self.is_running:
            logger.info("Re-rating already in progress")
            return False

        def run_rerate():
            with app.app_context():
                try:
                    self.rerate()
                except Exception as e:
                    logger.error(f"Background re-rating failed: {e}")
                finally:
                    db.session.remove()

        thread = threading.Thread(target=run_rerate, name="CatalogRerate")
        thread.daemon = True
        thread.start()
        logger.info("Background re-rating thread started")
        return True
