"""
Repository for Titles database operations
"""

import time
import logging
from sqlalchemy import or_, func, cast, String
from sqlalchemy.exc import SQLAlchemyError
from db import db, now_utc
from models.titles import Titles
from constants import (
    GENRE_SYNONYMS,
    SORT_TITLE_ASC,
    SORT_TITLE_DESC,
    SORT_YEAR_ASC,
    SORT_YEAR_DESC,
)

logger = logging.getLogger("main")


def expand_genre(genre):
    """Genre filter value plus its known synonyms"""
    return GENRE_SYNONYMS.get(genre, [genre])


def _genre_clause(genre):
    # JSON list stored as text; match the quoted element, not a substring of another genre
    genres_text = cast(Titles.genres, String)
    return or_(*[genres_text.like(f'%"{variant}"%') for variant in expand_genre(genre)])


def _sort_clauses(sort):
    if sort == SORT_YEAR_ASC:
        return [Titles.release_year.asc(), Titles.title.asc()]
    if sort == SORT_TITLE_ASC:
        return [Titles.title.asc()]
    if sort == SORT_TITLE_DESC:
        return [Titles.title.desc()]
    # relevance and year-desc share the default ordering
    return [Titles.release_year.desc(), Titles.title.asc()]


class TitlesRepository:
    """Repository for Titles database operations"""

    @staticmethod
    def get_by_id(id):
        """Get Titles by primary key ID"""
        return db.session.get(Titles, id)

    @staticmethod
    def get_by_netflix_id(netflix_id, generation):
        return Titles.query.filter_by(netflix_id=netflix_id, generation=generation).first()

    @staticmethod
    def query_filtered(generation, filters=None):
        """
        Base query over one catalog snapshot.

        filters keys: ratings, languages, genres, content_types (lists) and search (str).
        Empty lists are ignored. Genres match if any requested genre (or synonym) is present.
        """
        query = Titles.query.filter(Titles.generation == generation)
        filters = filters or {}

        if filters.get("ratings"):
            query = query.filter(Titles.bbfc_rating.in_(filters["ratings"]))

        if filters.get("languages"):
            query = query.filter(Titles.language.in_(filters["languages"]))

        if filters.get("genres"):
            query = query.filter(or_(*[_genre_clause(g) for g in filters["genres"]]))

        if filters.get("content_types"):
            query = query.filter(Titles.content_type.in_(filters["content_types"]))

        if filters.get("search"):
            query = query.filter(Titles.title.ilike(f"%{filters['search']}%"))

        return query

    @staticmethod
    def get_paged(generation, page, per_page, sort=None, filters=None):
        """
        Database-level pagination for the catalog
        """
        query = TitlesRepository.query_filtered(generation, filters)
        query = query.order_by(*_sort_clauses(sort))

        start = time.time()
        try:
            result = query.paginate(page=page, per_page=per_page, error_out=False)
            duration = (time.time() - start) * 1000.0
            logger.debug(
                f"TitlesRepository.get_paged: page={page} per_page={per_page} sort={sort} "
                f"total={result.total} duration_ms={duration:.1f}"
            )
            return result
        except SQLAlchemyError as e:
            duration = (time.time() - start) * 1000.0
            logger.error(
                f"TitlesRepository.get_paged failed: page={page} per_page={per_page} duration_ms={duration:.1f} error={e}"
            )
            raise

    @staticmethod
    def get_by_rating(rating, generation):
        """All records of a snapshot currently at the given rating"""
        return Titles.query.filter(Titles.generation == generation, Titles.bbfc_rating == rating).all()

    @staticmethod
    def create(**kwargs):
        """Create new Titles record"""
        try:
            item = Titles(**kwargs)
            db.session.add(item)
            db.session.commit()
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def update_rating(id, rating):
        """Change only the rating and the update timestamp"""
        item = db.session.get(Titles, id)
        if not item:
            return None

        item.bbfc_rating = rating
        item.updated_at = now_utc()
        db.session.commit()
        return item

    @staticmethod
    def delete_all():
        """Delete every Titles record, whatever its snapshot"""
        deleted = Titles.query.delete(synchronize_session=False)
        db.session.commit()
        return deleted

    @staticmethod
    def delete_generation(generation):
        """Drop one snapshot"""
        deleted = Titles.query.filter(Titles.generation == generation).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    @staticmethod
    def delete_other_generations(generation):
        """Drop every snapshot except the given one"""
        deleted = Titles.query.filter(Titles.generation != generation).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    @staticmethod
    def count(generation):
        return Titles.query.filter(Titles.generation == generation).count()

    @staticmethod
    def get_stats(generation):
        """Counts per rating, language and genre for one snapshot"""
        rating_rows = (
            db.session.query(Titles.bbfc_rating, func.count(Titles.id))
            .filter(Titles.generation == generation)
            .group_by(Titles.bbfc_rating)
            .all()
        )
        language_rows = (
            db.session.query(Titles.language, func.count(Titles.id))
            .filter(Titles.generation == generation)
            .group_by(Titles.language)
            .all()
        )

        genre_dist = {}
        for (genres,) in db.session.query(Titles.genres).filter(Titles.generation == generation).all():
            for g in genres or []:
                genre_dist[g] = genre_dist.get(g, 0) + 1

        return {
            "bbfcRatings": [{"rating": r, "count": c} for r, c in rating_rows if r is not None],
            "languages": [
                {"language": lang, "count": c}
                for lang, c in sorted(language_rows, key=lambda x: x[1], reverse=True)
                if lang is not None
            ],
            "genres": [
                {"genre": g, "count": c} for g, c in sorted(genre_dist.items(), key=lambda x: x[1], reverse=True)
            ],
        }
