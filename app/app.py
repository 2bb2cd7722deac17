"""
BBFC Netflix Catalog
Application factory and startup
"""
import os
import sys
import logging
import atexit

import click
import structlog
from flask import Flask

from constants import CATALOG_DB
from settings import load_settings, verify_settings
from db import db, init_db
from exceptions import register_exception_handlers
from utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, sanitize_sensitive_data
from routes.movies import movies_bp
from services.catalog_service import CatalogService
from services.rerating_service import RerateService
from jobs.scheduler import JobScheduler

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')

# Apply filter to hide date from http access logs
logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
logging.getLogger('apscheduler').setLevel(logging.WARNING)


def _check_settings(settings):
    for section in ("catalog", "rate_limits"):
        success, errors = verify_settings(section, settings.get(section, {}))
        if not success:
            for error in errors:
                logger.warning(f"Invalid setting {error['path']}: {error['error']}")


def register_cli(app):
    """flask catalog refresh|rerate|clear"""

    @app.cli.group("catalog")
    def catalog_cli():
        """Catalog maintenance commands"""

    @catalog_cli.command("refresh")
    def refresh_command():
        """Run a catalog refresh in the foreground"""
        ran = app.extensions["catalog_service"].refresh_catalog()
        status = app.extensions["catalog_service"].get_status()
        click.echo(f"refresh ran={ran} status={status.status if status else None}")

    @catalog_cli.command("rerate")
    def rerate_command():
        """Re-evaluate titles rated 18"""
        result = app.extensions["rerate_service"].rerate()
        click.echo(result.to_dict() if result else "re-rating already in progress")

    @catalog_cli.command("clear")
    def clear_command():
        """Delete every stored title"""
        deleted = app.extensions["catalog_service"].clear_catalog()
        click.echo(f"deleted {deleted} titles")


def create_app(config=None, settings=None, catalog_service=None, start_scheduler=True):
    """
    Build the Flask app.

    config: Flask config overrides (tests pass an in-memory SQLALCHEMY_DATABASE_URI)
    settings: catalog settings dict, defaults to settings.yaml
    catalog_service: prebuilt CatalogService (tests inject fake providers)
    """
    app = Flask(__name__)
    app.config.update(
        SQLALCHEMY_DATABASE_URI=CATALOG_DB,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
    )
    if config:
        app.config.update(config)

    settings = settings or load_settings()
    _check_settings(settings)
    logger.info("Settings loaded", settings=sanitize_sensitive_data(settings))

    init_db(app)
    register_exception_handlers(app)
    app.register_blueprint(movies_bp)

    catalog_service = catalog_service or CatalogService.from_settings(settings)
    app.extensions["catalog_service"] = catalog_service
    app.extensions["rerate_service"] = RerateService(catalog_service)
    register_cli(app)

    if start_scheduler:
        interval = int(settings.get("catalog", {}).get("check_interval_minutes", 60))
        scheduler = JobScheduler(catalog_service, interval_minutes=interval)
        scheduler.init_app(app)
        app.extensions["job_scheduler"] = scheduler
        atexit.register(scheduler.shutdown)

    logger.info("Application ready", region=catalog_service.region, database=app.config["SQLALCHEMY_DATABASE_URI"])
    return app


if __name__ == '__main__':
    current_settings = load_settings()
    app = create_app(settings=current_settings)
    server = current_settings.get("server", {})
    app.run(host=server.get("host", "0.0.0.0"), port=int(server.get("port", 5000)), use_reloader=False)
