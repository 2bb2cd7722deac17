"""
Movie Routes - catalog browsing, refresh triggers and cache status
"""

from flask import Blueprint, request, current_app
import logging

from api_responses import (
    success_response,
    handle_api_errors,
    paginated_response,
)
from constants import (
    BBFC_RATINGS,
    CONTENT_TYPES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SORT_OPTIONS,
    SORT_RELEVANCE,
)
from exceptions import NotFoundException
from repositories.titles_repository import TitlesRepository
from services.language_service import LANGUAGES

logger = logging.getLogger("main")

movies_bp = Blueprint("movies", __name__, url_prefix="/api")


def _catalog():
    return current_app.extensions["catalog_service"]


def _rerate():
    return current_app.extensions["rerate_service"]


def _list_param(args, name):
    """Repeated query params, also accepting the name[] form and comma separated values"""
    values = args.getlist(name) + args.getlist(f"{name}[]")
    result = []
    for value in values:
        result.extend(v.strip() for v in value.split(",") if v.strip())
    return result


def parse_movie_query(args=None):
    """Filters, sort and pagination of GET /api/movies"""
    args = args if args is not None else request.args

    page = max(1, args.get("page", 1, type=int))
    limit = min(max(1, args.get("limit", DEFAULT_PAGE_SIZE, type=int)), MAX_PAGE_SIZE)

    sort = args.get("sort", SORT_RELEVANCE)
    if sort not in SORT_OPTIONS:
        sort = SORT_RELEVANCE

    filters = {
        "ratings": _list_param(args, "bbfcRatings"),
        "languages": _list_param(args, "languages"),
        "genres": _list_param(args, "genres"),
        "content_types": _list_param(args, "contentTypes"),
        "search": (args.get("search") or "").strip() or None,
    }
    return filters, sort, page, limit


@movies_bp.route("/movies")
@handle_api_errors
def list_movies():
    """Filtered, sorted and paginated catalog"""
    filters, sort, page, limit = parse_movie_query()
    generation = _catalog().current_generation()

    result = TitlesRepository.get_paged(generation, page=page, per_page=limit, sort=sort, filters=filters)
    return paginated_response([t.to_dict() for t in result.items], result.total, page, limit)


@movies_bp.route("/movies/stats")
@handle_api_errors
def movie_stats():
    """Counts per rating, language and genre (must come before /movies/<id>)"""
    stats = TitlesRepository.get_stats(_catalog().current_generation())
    return success_response(data=stats)


@movies_bp.route("/movies/options")
@handle_api_errors
def movie_options():
    """Values accepted by the filter sidebar"""
    return success_response(data={
        "bbfcRatings": BBFC_RATINGS,
        "languages": LANGUAGES,
        "contentTypes": CONTENT_TYPES,
        "sort": SORT_OPTIONS,
    })


@movies_bp.route("/movies/<movie_id>")
@handle_api_errors
def get_movie(movie_id):
    movie = TitlesRepository.get_by_id(movie_id)
    if not movie or movie.generation != _catalog().current_generation():
        raise NotFoundException(f"Movie with ID '{movie_id}' not found")
    return success_response(data=movie.to_dict())


@movies_bp.route("/movies/refresh", methods=["POST"])
@handle_api_errors
def refresh_movies():
    """Start a catalog refresh in the background"""
    started = _catalog().start_background_refresh(current_app._get_current_object())
    if not started:
        return success_response(message="Catalog refresh already in progress", status_code=202)
    return success_response(message="Catalog refresh initiated", status_code=202)


@movies_bp.route("/movies/re-rate", methods=["POST"])
@handle_api_errors
def rerate_movies():
    """Re-evaluate titles currently rated 18 in the background"""
    started = _rerate().start_background_rerate(current_app._get_current_object())
    if not started:
        return success_response(message="Re-rating already in progress", status_code=202)
    return success_response(message="Re-rating process initiated", status_code=202)


@movies_bp.route("/cache/status")
@handle_api_errors
def cache_status():
    status = _catalog().get_status()
    return success_response(data=status.to_dict() if status else None)


@movies_bp.route("/health")
def health():
    return {"status": "healthy"}
