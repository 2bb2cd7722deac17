"""
Tests for TitlesRepository queries and the CacheStatus lease
"""
from datetime import timedelta

import pytest

from constants import SORT_TITLE_ASC, SORT_TITLE_DESC, SORT_YEAR_ASC, SORT_YEAR_DESC
from db import db
from repositories.cachestatus_repository import CacheStatusRepository
from repositories.titles_repository import TitlesRepository, expand_genre
from utils import now_utc


def add_title(netflix_id, title, year=2020, rating="15", language="English", genres=None,
              content_type="movie", generation=1):
    return TitlesRepository.create(
        netflix_id=str(netflix_id),
        generation=generation,
        title=title,
        release_year=year,
        bbfc_rating=rating,
        language=language,
        content_type=content_type,
        genres=genres or [],
        cast=[],
    )


@pytest.fixture
def catalog(app):
    add_title(1, "Arrival", 2016, "12", "English", ["Drama", "Science Fiction"])
    add_title(2, "Dark", 2017, "15", "German", ["Crime", "Sci-Fi & Fantasy"], "tv_series")
    add_title(3, "Paddington", 2014, "PG", "English", ["Family", "Comedy"])
    add_title(4, "Train to Busan", 2016, "15", "Korean", ["Horror", "Action"])
    add_title(5, "Zodiac", 2007, "15", "English", ["Crime", "Drama"])
    # An older snapshot that must never show through
    add_title(1, "Arrival (old)", 2016, "18", "English", ["Drama"], generation=0)


def titles_of(query):
    return sorted(t.title for t in query.all())


class TestFilters:
    """Tests for query_filtered"""

    def test_no_filters_returns_one_snapshot(self, catalog):
        assert TitlesRepository.query_filtered(1).count() == 5
        assert TitlesRepository.query_filtered(0).count() == 1

    def test_ratings(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"ratings": ["PG", "12"]})) == ["Arrival", "Paddington"]

    def test_languages(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"languages": ["German", "Korean"]})) == [
            "Dark", "Train to Busan"
        ]

    def test_genres_match_any(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"genres": ["Horror", "Family"]})) == [
            "Paddington", "Train to Busan"
        ]

    def test_genre_synonyms(self, catalog):
        assert "Science Fiction" in expand_genre("Sci-Fi")
        assert titles_of(TitlesRepository.query_filtered(1, {"genres": ["Sci-Fi"]})) == ["Arrival", "Dark"]

    def test_genre_does_not_match_substring(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"genres": ["Action"]})) == ["Train to Busan"]
        assert TitlesRepository.query_filtered(1, {"genres": ["Act"]}).count() == 0

    def test_content_types(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"content_types": ["tv_series"]})) == ["Dark"]

    def test_search_is_case_insensitive(self, catalog):
        assert titles_of(TitlesRepository.query_filtered(1, {"search": "TRAIN"})) == ["Train to Busan"]

    def test_filters_combine(self, catalog):
        filters = {"ratings": ["15"], "languages": ["English"], "genres": ["Crime"]}
        assert titles_of(TitlesRepository.query_filtered(1, filters)) == ["Zodiac"]

    def test_empty_lists_are_ignored(self, catalog):
        filters = {"ratings": [], "languages": [], "genres": [], "content_types": [], "search": None}
        assert TitlesRepository.query_filtered(1, filters).count() == 5


class TestPaging:
    """Tests for get_paged ordering and pagination"""

    def test_default_sort_is_newest_first(self, catalog):
        result = TitlesRepository.get_paged(1, page=1, per_page=10)
        assert [t.title for t in result.items] == ["Dark", "Arrival", "Train to Busan", "Paddington", "Zodiac"]

    @pytest.mark.parametrize("sort,expected", [
        (SORT_YEAR_DESC, ["Dark", "Arrival", "Train to Busan", "Paddington", "Zodiac"]),
        (SORT_YEAR_ASC, ["Zodiac", "Paddington", "Arrival", "Train to Busan", "Dark"]),
        (SORT_TITLE_ASC, ["Arrival", "Dark", "Paddington", "Train to Busan", "Zodiac"]),
        (SORT_TITLE_DESC, ["Zodiac", "Train to Busan", "Paddington", "Dark", "Arrival"]),
    ])
    def test_sorts(self, catalog, sort, expected):
        result = TitlesRepository.get_paged(1, page=1, per_page=10, sort=sort)
        assert [t.title for t in result.items] == expected

    def test_pages(self, catalog):
        first = TitlesRepository.get_paged(1, page=1, per_page=2, sort=SORT_TITLE_ASC)
        third = TitlesRepository.get_paged(1, page=3, per_page=2, sort=SORT_TITLE_ASC)

        assert first.total == 5
        assert [t.title for t in first.items] == ["Arrival", "Dark"]
        assert [t.title for t in third.items] == ["Zodiac"]

    def test_page_past_the_end_is_empty(self, catalog):
        result = TitlesRepository.get_paged(1, page=9, per_page=2)
        assert result.items == []
        assert result.total == 5


def test_stats(catalog):
    stats = TitlesRepository.get_stats(1)

    ratings = {r["rating"]: r["count"] for r in stats["bbfcRatings"]}
    assert ratings == {"12": 1, "15": 3, "PG": 1}
    assert stats["languages"][0] == {"language": "English", "count": 3}
    genres = {g["genre"]: g["count"] for g in stats["genres"]}
    assert genres["Crime"] == 2
    assert genres["Drama"] == 2
    assert sum(ratings.values()) == 5


def test_generation_housekeeping(catalog):
    assert TitlesRepository.delete_other_generations(1) == 1
    assert TitlesRepository.count(0) == 0
    assert TitlesRepository.delete_generation(1) == 5
    assert TitlesRepository.count(1) == 0


def test_update_rating_missing_id(app):
    assert TitlesRepository.update_rating("no-such-id", "PG") is None


class TestRefreshLease:
    """Tests for the store-backed refresh lease"""

    def test_single_holder(self, app):
        CacheStatusRepository.get_or_create("UK")

        assert CacheStatusRepository.acquire_lease("UK", "a", timedelta(hours=1)) is True
        assert CacheStatusRepository.acquire_lease("UK", "b", timedelta(hours=1)) is False
        assert CacheStatusRepository.get_active("UK").lock_holder == "a"

    def test_release_by_holder_only(self, app):
        CacheStatusRepository.get_or_create("UK")
        CacheStatusRepository.acquire_lease("UK", "a", timedelta(hours=1))

        assert CacheStatusRepository.release_lease("UK", "b") is False
        assert CacheStatusRepository.release_lease("UK", "a") is True
        assert CacheStatusRepository.acquire_lease("UK", "b", timedelta(hours=1)) is True

    def test_expired_lease_can_be_taken(self, app):
        status = CacheStatusRepository.get_or_create("UK")
        status.lock_holder = "crashed-worker"
        status.lock_expires_at = now_utc() - timedelta(minutes=1)
        db.session.commit()

        assert CacheStatusRepository.acquire_lease("UK", "b", timedelta(hours=1)) is True
        assert CacheStatusRepository.get_active("UK").lock_holder == "b"

    def test_no_status_row_means_no_lease(self, app):
        assert CacheStatusRepository.acquire_lease("UK", "a", timedelta(hours=1)) is False

    def test_create_retires_previous_row(self, app):
        CacheStatusRepository.create(region="UK", status="completed", total_movies=3)
        CacheStatusRepository.create(region="UK", status="pending", total_movies=0)

        assert CacheStatusRepository.get_active("UK").status == "pending"
