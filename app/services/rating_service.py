"""
Service layer for deriving a UK (BBFC-style) age rating from provider metadata
"""
import logging
from typing import Optional, Dict, Any, List

from constants import (
    DEFAULT_RATING,
    PRIMARY_JURISDICTION,
    SECONDARY_JURISDICTION,
    RATING_U,
    RATING_PG,
    RATING_12,
    RATING_15,
    RATING_18,
)

logger = logging.getLogger("main")

# Exact-match only. Anything missing falls back to DEFAULT_RATING.
CERTIFICATION_MAP = {
    # BBFC
    "U": RATING_U,
    "PG": RATING_PG,
    "12": RATING_12,
    "12A": RATING_12,
    "15": RATING_15,
    "18": RATING_18,
    # US MPAA
    "G": RATING_U,
    "PG-13": RATING_12,
    "R": RATING_15,
    "NC-17": RATING_18,
    # US TV
    "TV-Y": RATING_U,
    "TV-G": RATING_U,
    "TV-Y7": RATING_PG,
    "TV-PG": RATING_PG,
    "TV-14": RATING_12,
    "TV-MA": RATING_18,
    # Other national schemes (FSK, ACB)
    "6": RATING_PG,
    "16": RATING_15,
    "M": RATING_12,
    "MA15+": RATING_15,
}

FAMILY_GENRES = {"animation", "family", "kids", "children"}
FAMILY_KEYWORDS = ["family", "kids", "children", "disney", "pixar", "educational"]
ADULT_GENRES = {"horror", "thriller", "crime", "war"}
ADULT_KEYWORDS = ["violence", "blood", "murder", "killer", "terror", "death"]


def map_certification(code: str) -> str:
    """Map a BBFC, MPAA, US TV or foreign certification onto U/PG/12/15/18"""
    return CERTIFICATION_MAP.get(code, DEFAULT_RATING)


def _film_certification(metadata: Dict[str, Any], jurisdiction: str) -> Optional[str]:
    # release_dates.results[].release_dates[0].certification
    results = (metadata.get("release_dates") or {}).get("results") or []
    for entry in results:
        if entry.get("iso_3166_1") != jurisdiction:
            continue
        dated = entry.get("release_dates") or []
        if dated:
            return dated[0].get("certification") or None
        return None
    return None


def _series_certification(metadata: Dict[str, Any], jurisdiction: str) -> Optional[str]:
    # content_ratings.results[].rating
    results = (metadata.get("content_ratings") or {}).get("results") or []
    for entry in results:
        if entry.get("iso_3166_1") == jurisdiction:
            return entry.get("rating") or None
    return None


def certification_for(metadata: Dict[str, Any], is_movie: bool, jurisdiction: str) -> Optional[str]:
    """Raw certification token of one jurisdiction, or None"""
    if is_movie:
        return _film_certification(metadata, jurisdiction)
    return _series_certification(metadata, jurisdiction)


def genre_names(metadata: Dict[str, Any], genre_map: Optional[Dict[int, str]] = None) -> List[str]:
    """
    Genre names of a metadata bundle.
    Detail payloads carry {"id", "name"} objects; list payloads only carry genre_ids,
    which are resolved through genre_map when given.
    """
    genres = metadata.get("genres")
    if genres:
        return [g["name"] for g in genres if isinstance(g, dict) and g.get("name")]

    if genre_map:
        return [genre_map[gid] for gid in metadata.get("genre_ids") or [] if gid in genre_map]

    return []


def content_based_rating(metadata: Dict[str, Any], genre_map: Optional[Dict[int, str]] = None) -> str:
    """
    Heuristic rating from genres, synopsis and vote average.
    Family signals are checked before adult signals; a title showing both is family content.
    """
    genres = [g.lower() for g in genre_names(metadata, genre_map)]
    overview = (metadata.get("overview") or "").lower()
    vote_average = metadata.get("vote_average") or 0

    has_family_genre = any(g in FAMILY_GENRES for g in genres)
    has_family_keywords = any(keyword in overview for keyword in FAMILY_KEYWORDS)

    if has_family_genre or has_family_keywords:
        return RATING_U if vote_average >= 7.0 else RATING_PG

    has_adult_genre = any(g in ADULT_GENRES for g in genres)
    has_adult_keywords = any(keyword in overview for keyword in ADULT_KEYWORDS)

    if has_adult_genre or has_adult_keywords:
        return RATING_18 if "horror" in genres else RATING_15

    if "documentary" in genres:
        return RATING_PG

    if "comedy" in genres and vote_average >= 6.0:
        return RATING_12

    if "drama" in genres:
        return RATING_12 if vote_average >= 7.0 else RATING_15

    return DEFAULT_RATING


def resolve_rating(
    metadata: Optional[Dict[str, Any]],
    is_movie: bool,
    genre_map: Optional[Dict[int, str]] = None,
    primary: str = PRIMARY_JURISDICTION,
    secondary: str = SECONDARY_JURISDICTION,
) -> str:
    """
    Three-tier rating:
    1. certification of the primary jurisdiction (GB)
    2. certification of the secondary jurisdiction (US)
    3. content-based default from genres and synopsis
    """
    metadata = metadata or {}

    for tier, jurisdiction in enumerate((primary, secondary), start=1):
        certification = certification_for(metadata, is_movie, jurisdiction)
        if certification:
            rating = map_certification(certification)
            logger.debug(f"Tier {tier} ({jurisdiction}) certification {certification!r} -> {rating}")
            return rating

    rating = content_based_rating(metadata, genre_map)
    logger.debug(f"Tier 3 content-based rating -> {rating}")
    return rating
