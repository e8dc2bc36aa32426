from typing import Optional
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel
from app.models.enums import UserRole, enum_column


class User(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'users'

    email: str = Field(index=True, unique=True, max_length=255)
    hashed_password: str
    first_name: str = Field(default='', max_length=100)
    last_name: str = Field(default='', max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = True
    role: UserRole = Field(default=UserRole.CUSTOMER, sa_column=enum_column(UserRole, 'user_role'))
