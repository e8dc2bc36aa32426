from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel, utc_datetime_type


class RefreshToken(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'refresh_tokens'

    token: str = Field(index=True, unique=True, max_length=128)
    user_id: int = Field(foreign_key='users.id', index=True)
    expires_at: datetime = Field(sa_type=utc_datetime_type(), sa_column_kwargs={"nullable": False})
    # flipped false -> true exactly once, never reset
    is_revoked: bool = Field(default=False, nullable=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_type=utc_datetime_type())
