from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.dialects.mysql import DATETIME as MySQLDateTime
from sqlmodel import Field, SQLModel


def _utc_now():
    return datetime.now(timezone.utc)


def utc_datetime_type():
    return DateTime(timezone=True).with_variant(MySQLDateTime(fsp=6), "mysql")


class IDModel(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)


class TimestampModel(SQLModel):
    created_at: datetime = Field(
        default_factory=_utc_now,
        sa_type=utc_datetime_type(),
        sa_column_kwargs={"nullable": False},
    )
    updated_at: datetime = Field(
        default_factory=_utc_now,
        sa_type=utc_datetime_type(),
        sa_column_kwargs={"nullable": False, "onupdate": _utc_now},
    )
