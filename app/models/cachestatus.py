"""
Model: CacheStatus
Refresh state of the catalog for one region
"""

from db import db, now_utc


class CacheStatus(db.Model):
    """One active row per region; owned by the catalog refresh"""

    __tablename__ = "cache_status"

    id = db.Column(db.Integer, primary_key=True)
    region = db.Column(db.String(10), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)  # 'pending', 'updating', 'completed', 'failed'
    total_movies = db.Column(db.Integer, default=0)
    last_updated = db.Column(db.DateTime, default=now_utc)
    is_active = db.Column(db.Boolean, default=True)

    # Snapshot currently visible to readers
    current_generation = db.Column(db.Integer, nullable=False, default=0)

    # Refresh lease
    lock_holder = db.Column(db.String(64))
    lock_expires_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            "id": self.id,
            "region": self.region,
            "status": self.status,
            "totalMovies": self.total_movies,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "isActive": self.is_active,
            "currentGeneration": self.current_generation,
        }
