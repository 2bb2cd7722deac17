from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect
import logging

from utils import now_utc

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    """Bind SQLAlchemy to the app and create missing tables"""
    db.init_app(app)
    with app.app_context():
        # Register models on the metadata before create_all
        import models  # noqa: F401

        db.create_all()
        tables = inspect(db.engine).get_table_names()
        logger.info(f"Database ready ({len(tables)} tables)")


__all__ = ["db", "init_db", "now_utc", "logger"]
