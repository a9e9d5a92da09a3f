"""Shared mixins and time helpers for the stats models."""

from datetime import datetime

import pytz
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


class TimestampMixin(SQLModel):
    """Adds created_at and updated_at timestamps.

    Core-level upserts bypass ``default_factory``, so bulk writers must pass
    both columns explicitly (see ``db.crud.stats``).
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column_kwargs={"onupdate": utc_now},
        sa_type=DateTime(timezone=True),
    )
