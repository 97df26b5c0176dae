from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime
from sqlalchemy.dialects.mysql import DATETIME as MySQLDateTime
from sqlmodel import Field, SQLModel


def utc_now():
    return datetime.now(timezone.utc)


def _timestamp_type():
    return DateTime(timezone=True).with_variant(MySQLDateTime(fsp=6), "mysql")


class IDModel(SQLModel):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True, index=True)


class TimestampModel(SQLModel):
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=_timestamp_type(),
        sa_column_kwargs={"nullable": False},
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=_timestamp_type(),
        sa_column_kwargs={"nullable": False, "onupdate": utc_now},
    )


class ReportFields(SQLModel):
    """Columns shared by citizen issues and building-at-risk reports."""

    title: str
    description: str
    reported_by: str = Field(index=True)
    assigned_to: Optional[str] = None
    # Stored raw; legacy rows may hold values outside the current enumeration.
    status: str = Field(default='pending', index=True)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    thumbnail: Optional[str] = None
    dismissed_at: Optional[datetime] = Field(default=None, sa_type=_timestamp_type())
