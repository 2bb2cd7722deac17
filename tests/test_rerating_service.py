"""
Tests for the re-rating job
"""
from unittest.mock import patch

import pytest

from conftest import movie_details, series_details
from repositories.titles_repository import TitlesRepository
from services.rerating_service import RerateResult, RerateService


def add_title(netflix_id, rating, content_type="movie", generation=0, title=None):
    return TitlesRepository.create(
        netflix_id=str(netflix_id),
        generation=generation,
        title=title or f"Title {netflix_id}",
        synopsis="",
        poster_url="",
        release_year=2020,
        bbfc_rating=rating,
        language="English",
        content_type=content_type,
        genres=["Drama"],
        cast=["Someone"],
    )


@pytest.fixture
def rerate_service(app):
    return app.extensions["rerate_service"]


def test_counts(app, rerate_service, fake_watchmode, fake_tmdb):
    add_title(1, "18")
    add_title(2, "18")
    add_title(3, "18")
    add_title(4, "18", content_type="tv_series")
    add_title(5, "15")
    fake_watchmode.tmdb_ids = {"1": 101, "2": 102, "4": 104}
    fake_tmdb.details = {
        101: movie_details(uk="12A"),
        102: movie_details(genres=["Horror"]),
        104: series_details(us="TV-PG"),
    }

    result = rerate_service.rerate()

    assert result == RerateResult(updated=2, unchanged=1, skipped=1)
    ratings = {t.netflix_id: t.bbfc_rating for t in TitlesRepository.get_by_rating("12", 0)}
    assert ratings == {"1": "12"}
    assert TitlesRepository.get_by_netflix_id("4", 0).bbfc_rating == "PG"
    assert TitlesRepository.get_by_netflix_id("2", 0).bbfc_rating == "18"
    assert TitlesRepository.get_by_netflix_id("5", 0).bbfc_rating == "15"
    # Non-target titles are never looked up
    assert "5" not in fake_watchmode.lookups
    assert (104, "tv_series") in fake_tmdb.requests


def test_second_run_updates_nothing(app, rerate_service, fake_watchmode, fake_tmdb):
    add_title(1, "18")
    add_title(2, "18")
    fake_watchmode.tmdb_ids = {"1": 101, "2": 102}
    fake_tmdb.details = {101: movie_details(us="PG-13"), 102: movie_details(us="NC-17")}

    first = rerate_service.rerate()
    second = rerate_service.rerate()

    assert first.updated == 1
    assert second.updated == 0
    assert second.unchanged == 1


def test_only_rating_and_timestamp_change(app, rerate_service, fake_watchmode, fake_tmdb):
    original = add_title(1, "18", title="Kept Title")
    before = original.to_dict()
    fake_watchmode.tmdb_ids = {"1": 101}
    fake_tmdb.details = {101: movie_details(title="Different Upstream Title", uk="U", genres=["Family"])}

    rerate_service.rerate()

    after = TitlesRepository.get_by_id(before["id"]).to_dict()
    changed = {key for key in before if before[key] != after[key]}
    assert changed <= {"bbfcRating", "updatedAt"}
    assert after["bbfcRating"] == "U"
    assert after["title"] == "Kept Title"


def test_provider_errors_are_skipped(app, rerate_service, fake_watchmode, fake_tmdb):
    add_title(1, "18")
    add_title(2, "18")
    add_title(3, "18")
    fake_watchmode.tmdb_ids = {"1": RuntimeError("Watchmode down"), "2": 102, "3": 103}
    fake_tmdb.details = {102: RuntimeError("TMDb down"), 103: movie_details(uk="PG")}

    result = rerate_service.rerate()

    assert result == RerateResult(updated=1, unchanged=0, skipped=2)
    assert TitlesRepository.get_by_netflix_id("3", 0).bbfc_rating == "PG"


def test_only_current_snapshot_is_rerated(app, rerate_service, fake_watchmode, fake_tmdb):
    add_title(1, "18", generation=0)
    add_title(1, "18", generation=7)
    fake_watchmode.tmdb_ids = {"1": 101}
    fake_tmdb.details = {101: movie_details(uk="PG")}

    result = rerate_service.rerate()

    assert result.updated == 1
    assert TitlesRepository.get_by_netflix_id("1", 7).bbfc_rating == "18"


def test_nothing_to_rerate(app, rerate_service, fake_watchmode):
    add_title(1, "15")

    assert rerate_service.rerate() == RerateResult()
    assert fake_watchmode.lookups == []


def test_concurrent_pass_is_rejected(app, rerate_service):
    rerate_service.is_running = True
    try:
        assert rerate_service.rerate() is None
        assert rerate_service.start_background_rerate(app) is False
    finally:
        rerate_service.is_running = False


def test_rerate_target_is_configurable(app, catalog_service, fake_watchmode, fake_tmdb):
    catalog_service.config["rerate_target"] = "15"
    service = RerateService(catalog_service)
    add_title(1, "15")
    add_title(2, "18")
    fake_watchmode.tmdb_ids = {"1": 101, "2": 102}
    fake_tmdb.details = {101: movie_details(uk="U"), 102: movie_details(uk="U")}

    result = service.rerate()

    assert result.updated == 1
    assert fake_watchmode.lookups == ["1"]


def test_pause_after_every_batch(app, rerate_service, fake_watchmode, fake_tmdb):
    for netflix_id in range(1, 26):
        add_title(netflix_id, "18")
    rerate_service.config["batch_size"] = 10
    rerate_service.config["batch_delay_seconds"] = 2

    with patch("services.rerating_service.pause") as pause:
        result = rerate_service.rerate()

    assert result.skipped == 25
    assert pause.call_count == 2
    assert pause.call_args.args == (2.0, rerate_service.catalog.cancel_event)
