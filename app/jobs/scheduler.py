"""
Background Jobs - hourly staleness check of the catalog
"""
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime, timedelta
import logging

logger = logging.getLogger('main')


class JobScheduler:
    """Owns the APScheduler instance and the cancellation token of running jobs"""

    def __init__(self, catalog_service, interval_minutes=60, first_run_delay_seconds=5):
        self.scheduler = BackgroundScheduler()
        self.catalog_service = catalog_service
        self.interval_minutes = interval_minutes
        self.first_run_delay_seconds = first_run_delay_seconds
        self._jobs_registered = False
        self.app = None

    def init_app(self, app):
        """Register jobs against the Flask app and start the scheduler"""
        self.app = app
        self._register_jobs()
        self.scheduler.start()
        logger.info("Job scheduler initialized")

    def _register_jobs(self):
        if self._jobs_registered:
            return

        self.scheduler.add_job(
            func=self._refresh_check_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='catalog_refresh_check',
            name='Catalog refresh check',
            next_run_time=datetime.now() + timedelta(seconds=self.first_run_delay_seconds),
            max_instances=1,
            coalesce=True,
        )

        self._jobs_registered = True
        logger.info(f"Background jobs registered (refresh check every {self.interval_minutes} min)")

    def _refresh_check_job(self):
        """Refresh the catalog if it is older than the freshness window"""
        from db import db

        with self.app.app_context():
            try:
                self.catalog_service.refresh_if_stale()
            except Exception as e:
                logger.error(f"Scheduled refresh check failed: {e}")
            finally:
                db.session.remove()

    def shutdown(self):
        """Stop the scheduler and interrupt any running fetch"""
        self.catalog_service.cancel_event.set()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Job scheduler shutdown")
