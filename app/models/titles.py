"""
Model: Titles
Canonical catalog record for one Netflix title, as shown to UK viewers
"""

import uuid

from db import db, now_utc


def _new_id():
    return str(uuid.uuid4())


class Titles(db.Model):
    __tablename__ = "titles"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    netflix_id = db.Column(db.String, nullable=False, index=True)  # Watchmode id, region scoped
    generation = db.Column(db.Integer, nullable=False, default=0, index=True)  # Catalog snapshot this row belongs to

    title = db.Column(db.Text, nullable=False)
    synopsis = db.Column(db.Text)
    poster_url = db.Column(db.Text)
    release_year = db.Column(db.Integer, index=True)
    bbfc_rating = db.Column(db.String(5), index=True)  # U, PG, 12, 15, 18
    language = db.Column(db.String(50), index=True)
    content_type = db.Column(db.String(20), nullable=False, default="movie")  # movie, tv_series, tv_miniseries, tv_movie, tv_special
    genres = db.Column(db.JSON, default=list)  # ["Drama", "Crime"]
    cast = db.Column(db.JSON, default=list)  # Top 10 billed names

    created_at = db.Column(db.DateTime, default=now_utc)
    updated_at = db.Column(db.DateTime, default=now_utc)

    __table_args__ = (
        db.UniqueConstraint("netflix_id", "generation", name="uq_titles_netflix_id_generation"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "netflixId": self.netflix_id,
            "title": self.title,
            "synopsis": self.synopsis,
            "posterUrl": self.poster_url,
            "releaseYear": self.release_year,
            "bbfcRating": self.bbfc_rating,
            "language": self.language,
            "contentType": self.content_type,
            "genres": list(self.genres or []),
            "cast": list(self.cast or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
