"""
Repository for CacheStatus database operations
"""

from datetime import timedelta
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from db import db, now_utc
from models.cachestatus import CacheStatus


class CacheStatusRepository:
    """Repository for CacheStatus database operations"""

    @staticmethod
    def get_active(region):
        """Get the live CacheStatus row for a region"""
        return CacheStatus.query.filter_by(region=region, is_active=True).first()

    @staticmethod
    def create(**kwargs):
        """Create new CacheStatus record, retiring any previous active row for the region"""
        try:
            region = kwargs.get("region")
            CacheStatus.query.filter_by(region=region, is_active=True).update(
                {"is_active": False}, synchronize_session=False
            )
            item = CacheStatus(is_active=True, **kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def get_or_create(region):
        item = CacheStatusRepository.get_active(region)
        if item:
            return item
        return CacheStatusRepository.create(region=region, status="pending", total_movies=0)

    @staticmethod
    def update(region, **kwargs):
        """Update the active row of a region and stamp last_updated"""
        item = CacheStatusRepository.get_active(region)
        if not item:
            return None

        for key, value in kwargs.items():
            if hasattr(item, key):
                setattr(item, key, value)
        item.last_updated = now_utc()

        db.session.commit()
        return item

    @staticmethod
    def acquire_lease(region, holder, duration: timedelta):
        """
        Conditionally take the refresh lease for a region.
        Succeeds only if nobody holds it or the previous lease expired.
        """
        now = now_utc()
        try:
            acquired = (
                CacheStatus.query.filter(
                    CacheStatus.region == region,
                    CacheStatus.is_active == True,  # noqa: E712
                    or_(CacheStatus.lock_holder.is_(None), CacheStatus.lock_expires_at < now),
                ).update(
                    {"lock_holder": holder, "lock_expires_at": now + duration},
                    synchronize_session=False,
                )
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        db.session.expire_all()
        return acquired == 1

    @staticmethod
    def release_lease(region, holder):
        """Release the lease if this holder still owns it"""
        try:
            released = CacheStatus.query.filter_by(region=region, is_active=True, lock_holder=holder).update(
                {"lock_holder": None, "lock_expires_at": None}, synchronize_session=False
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        db.session.expire_all()
        return released == 1
