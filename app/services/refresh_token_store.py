from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, delete, or_, update
from sqlmodel import Session, select

from app.models.refresh_token import RefreshToken


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def insert_refresh_token(
    session: Session,
    user_id: int,
    token: str,
    created_at: datetime,
    expires_at: datetime,
    commit: bool = True,
) -> RefreshToken:
    record = RefreshToken(
        user_id=user_id,
        token=token,
        created_at=created_at,
        updated_at=created_at,
        expires_at=expires_at,
    )
    session.add(record)
    if commit:
        session.commit()
        session.refresh(record)
    else:
        session.flush()
    return record


def find_refresh_token(session: Session, token: str) -> Optional[RefreshToken]:
    statement = select(RefreshToken).where(RefreshToken.token == token).execution_options(populate_existing=True)
    return session.exec(statement).first()


def _revoke_if_active(session: Session, token: str, now: datetime) -> bool:
    statement = (
        update(RefreshToken)
        .where(RefreshToken.token == token)
        .where(RefreshToken.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=now)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(statement)
    return result.rowcount == 1


def try_consume_refresh_token(
    session: Session,
    token: str,
    now: Optional[datetime] = None,
    commit: bool = True,
) -> Optional[RefreshToken]:
    """Atomically flip ``is_revoked`` from false to true for ``token``.

    This is a single guarded UPDATE; the affected row count is the only
    success signal, so two concurrent callers can never both win. Returns the
    consumed row, or ``None`` when the token is unknown or already revoked (in
    which case nothing was written).

    With ``commit=False`` the caller owns the transaction and must commit or
    roll back, which lets rotation insert the replacement row atomically.
    """
    now = now or utc_now()
    if not _revoke_if_active(session, token, now):
        if commit:
            session.rollback()
        return None
    if commit:
        session.commit()
    return find_refresh_token(session, token)


def revoke_refresh_token(session: Session, token: str, now: Optional[datetime] = None) -> bool:
    """Revoke ``token``; ``False`` means nothing changed (unknown or already revoked)."""
    now = now or utc_now()
    revoked = _revoke_if_active(session, token, now)
    if revoked:
        session.commit()
    else:
        session.rollback()
    return revoked


def list_active_refresh_tokens(
    session: Session,
    user_id: int,
    now: Optional[datetime] = None,
) -> list[RefreshToken]:
    now = now or utc_now()
    statement = (
        select(RefreshToken)
        .where(RefreshToken.user_id == user_id)
        .where(RefreshToken.is_revoked.is_(False))
        .where(RefreshToken.expires_at > now)
        .order_by(RefreshToken.created_at.desc())
    )
    return list(session.exec(statement).all())


def purge_stale_refresh_tokens(
    session: Session,
    now: Optional[datetime] = None,
    retention: timedelta = timedelta(0),
) -> int:
    """Delete rows that have been revoked or expired for longer than ``retention``.

    Housekeeping only: rotation and logout never call this.
    """
    cutoff = (now or utc_now()) - retention
    statement = delete(RefreshToken).where(
        or_(
            RefreshToken.expires_at <= cutoff,
            and_(
                RefreshToken.is_revoked.is_(True),
                or_(RefreshToken.revoked_at.is_(None), RefreshToken.revoked_at <= cutoff),
            ),
        )
    ).execution_options(synchronize_session=False)
    result = session.execute(statement)
    session.commit()
    return result.rowcount
