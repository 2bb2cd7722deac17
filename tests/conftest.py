"""
Pytest fixtures and configuration for the catalog tests
"""
import copy
import os
import sys
import pytest
from unittest.mock import MagicMock

# Add app directory to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'app'))

from constants import DEFAULT_SETTINGS  # noqa: E402
from services.watchmode_client import TitleDescriptor  # noqa: E402


# ---------------------------------------------------------------- payloads

def movie_details(title="Test Movie", uk=None, us=None, genres=None, overview="", vote_average=0.0,
                  release_date="2020-05-01", language="en", poster_path="/poster.jpg", cast=None):
    """TMDb /movie/{id} payload with credits and release_dates appended"""
    results = []
    if uk is not None:
        results.append({"iso_3166_1": "GB", "release_dates": [{"certification": uk}]})
    if us is not None:
        results.append({"iso_3166_1": "US", "release_dates": [{"certification": us}]})
    return {
        "title": title,
        "overview": overview,
        "poster_path": poster_path,
        "release_date": release_date,
        "genres": [{"id": i, "name": g} for i, g in enumerate(genres or [])],
        "original_language": language,
        "vote_average": vote_average,
        "credits": {"cast": [{"name": n} for n in (cast or [])]},
        "release_dates": {"results": results},
    }


def series_details(name="Test Series", uk=None, us=None, genres=None, overview="", vote_average=0.0,
                   first_air_date="2018-01-10", language="en"):
    """TMDb /tv/{id} payload with credits and content_ratings appended"""
    results = []
    if uk is not None:
        results.append({"iso_3166_1": "GB", "rating": uk})
    if us is not None:
        results.append({"iso_3166_1": "US", "rating": us})
    return {
        "name": name,
        "overview": overview,
        "poster_path": None,
        "first_air_date": first_air_date,
        "genres": [{"id": i, "name": g} for i, g in enumerate(genres or [])],
        "original_language": language,
        "vote_average": vote_average,
        "credits": {"cast": []},
        "content_ratings": {"results": results},
    }


# ------------------------------------------------------------ fake providers

class FakeWatchmode:
    """Stands in for WatchmodeClient"""

    def __init__(self, titles=None, tmdb_ids=None):
        self.api_key = "watchmode-test-key"
        self.titles = titles or []
        self.tmdb_ids = tmdb_ids or {}
        self.list_calls = 0
        self.lookups = []

    def list_titles(self, **kwargs):
        self.list_calls += 1
        return list(self.titles)

    def get_tmdb_id(self, watchmode_id, cancel_event=None):
        self.lookups.append(watchmode_id)
        value = self.tmdb_ids.get(watchmode_id)
        if isinstance(value, Exception):
            raise value
        return value


class FakeTMDb:
    """Stands in for TMDbClient; details keyed by tmdb id"""

    def __init__(self, details=None, genre_map=None):
        self.api_key = "tmdb-test-key"
        self.details = details or {}
        self.genre_map = genre_map or {}
        self.requests = []

    def load_genre_map(self):
        return self.genre_map

    def get_details(self, tmdb_id, content_type, cancel_event=None):
        self.requests.append((tmdb_id, content_type))
        value = self.details.get(tmdb_id)
        if isinstance(value, Exception):
            raise value
        return value


def descriptor(watchmode_id, title, content_type="movie", tmdb_id=None):
    return TitleDescriptor(watchmode_id=str(watchmode_id), title=title, content_type=content_type, tmdb_id=tmdb_id)


# ------------------------------------------------------------------ fixtures

@pytest.fixture
def test_settings():
    """Default settings with no politeness delays"""
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings["catalog"]["batch_delay_seconds"] = 0
    settings["apis"]["tmdb_api_key"] = "tmdb-test-key"
    settings["apis"]["watchmode_api_key"] = "watchmode-test-key"
    return settings


@pytest.fixture
def fake_watchmode():
    return FakeWatchmode()


@pytest.fixture
def fake_tmdb():
    return FakeTMDb()


@pytest.fixture
def catalog_service(fake_watchmode, fake_tmdb, test_settings):
    from services.catalog_service import CatalogService

    return CatalogService(fake_watchmode, fake_tmdb, test_settings["catalog"])


@pytest.fixture
def app(catalog_service, test_settings):
    """Flask app bound to an in-memory SQLite database"""
    from app import create_app
    from db import db

    _app = create_app(
        config={"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite://"},
        settings=test_settings,
        catalog_service=catalog_service,
        start_scheduler=False,
    )

    with _app.app_context():
        yield _app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger
