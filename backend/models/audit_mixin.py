from sqlalchemy import Column, DateTime, String

from utils.timeutils import now


class TimestampMixin:
    """Created/updated timestamps plus the identifier of the acting user.

    Timestamps are timezone-aware and taken in the business timezone
    (APP_TIMEZONE, Asia/Kolkata by default).
    """
    created_at = Column(DateTime(timezone=True), default=now)
    updated_at = Column(DateTime(timezone=True), onupdate=now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)


class SoftDeleteMixin:
    """Soft-delete columns (deleted_at, deleted_by).

    Used for ledger rows and the balances they point at. Rows carrying
    `deleted_at` are hidden from ORM queries by the listener in database.py.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)


class AuditMixin(TimestampMixin, SoftDeleteMixin):
    """Timestamps + soft-delete."""
    pass
