from typing import Optional
from sqlmodel import Session, select

from app.models.user import User
from app.schemas.user import UserOut


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        is_active=user.is_active,
        role=user.role,
    )


def get_user(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def list_users(session: Session, limit: int = 50, offset: int = 0) -> list[User]:
    statement = select(User).order_by(User.id).offset(offset).limit(limit)
    return list(session.exec(statement).all())
