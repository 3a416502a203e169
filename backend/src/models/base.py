"""SQLAlchemy declarative base and the timestamp mixin shared by users and notes."""
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class TimestampMixin:
    """
    created_at and updated_at columns, both TIMESTAMP WITH TIME ZONE.

    Defaults use clock_timestamp() rather than now() so rows written within one
    transaction still get distinct, ordered times; search relies on that order.

    updated_at has no onupdate hook. It marks the last content save and is set
    explicitly by the save path, so lock acquire/release and moves leave it alone.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
        index=True,  # search orders by most recently saved
    )
