"""Session lifecycle: issuing token pairs, rotating refresh tokens, logout.

Refresh tokens are single use. Rotation consumes the presented token with a
guarded UPDATE and inserts its replacement in the same transaction, so among
any number of concurrent rotations of one token at most one succeeds.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlmodel import Session

from app.core.config import settings
from app.models.user import User
from app.services.errors import (
    InvalidTokenError,
    TokenExpiredError,
    TokenRevokedError,
    TokenValidationError,
)
from app.services.refresh_token_store import (
    ensure_utc,
    find_refresh_token,
    insert_refresh_token,
    revoke_refresh_token,
    try_consume_refresh_token,
    utc_now,
)
from app.services.token_generator import generate_refresh_token
from app.services.token_signer import AccessClaims, get_token_signer

TOKEN_REQUIRED = 'token required'
INVALID_TOKEN = 'invalid token'
ALREADY_REVOKED = 'already revoked'


@dataclass(frozen=True)
class SessionPair:
    access_token: str
    refresh_token: str
    expires_in: int
    email: str
    token_type: str = 'bearer'


@dataclass(frozen=True)
class LogoutResult:
    success: bool
    reason: Optional[str] = None


def _mint_pair(session: Session, user: User, now: datetime, commit: bool) -> SessionPair:
    signer = get_token_signer()
    claims = AccessClaims(subject_id=user.id, email=user.email, role=user.role)
    access_token = signer.issue(claims, now=now)
    record = insert_refresh_token(
        session,
        user_id=user.id,
        token=generate_refresh_token(),
        created_at=now,
        expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        commit=commit,
    )
    return SessionPair(
        access_token=access_token,
        refresh_token=record.token,
        expires_in=int(signer.ttl.total_seconds()),
        email=user.email,
    )


def issue_session(session: Session, user: User, now: Optional[datetime] = None) -> SessionPair:
    """Issue one access token and one stored refresh token for an authenticated user."""
    now = now or utc_now()
    pair = _mint_pair(session, user, now, commit=True)
    logger.info('auth.session.issued', user_id=user.id)
    return pair


def rotate_session(session: Session, presented_token: str, now: Optional[datetime] = None) -> SessionPair:
    if not presented_token or not presented_token.strip():
        raise TokenValidationError(TOKEN_REQUIRED)
    now = now or utc_now()

    record = find_refresh_token(session, presented_token)
    if record is None:
        logger.info('auth.rotate.rejected', reason='unknown')
        raise InvalidTokenError()
    token_id, user_id = record.id, record.user_id
    # expiry and revocation gate independently; an expired row is left untouched
    if ensure_utc(record.expires_at) <= now:
        logger.info('auth.rotate.rejected', reason='expired', token_id=token_id, user_id=user_id)
        raise TokenExpiredError()
    if record.is_revoked:
        logger.warning('auth.rotate.rejected', reason='revoked', token_id=token_id, user_id=user_id)
        raise TokenRevokedError()

    user = session.get(User, user_id)
    if user is None or not user.is_active:
        logger.warning('auth.rotate.rejected', reason='inactive_owner', token_id=token_id, user_id=user_id)
        raise InvalidTokenError()

    if try_consume_refresh_token(session, presented_token, now=now, commit=False) is None:
        session.rollback()
        logger.warning('auth.rotate.rejected', reason='lost_race', token_id=token_id, user_id=user_id)
        raise TokenRevokedError()
    try:
        pair = _mint_pair(session, user, now, commit=False)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info('auth.rotate.succeeded', token_id=token_id, user_id=user_id)
    return pair


def logout(session: Session, presented_token: str, now: Optional[datetime] = None) -> LogoutResult:
    """Revoke a refresh token. The paired access token stays valid until it expires."""
    if not presented_token or not presented_token.strip():
        return LogoutResult(success=False, reason=TOKEN_REQUIRED)

    record = find_refresh_token(session, presented_token)
    if record is None:
        logger.info('auth.logout.rejected', reason='unknown')
        return LogoutResult(success=False, reason=INVALID_TOKEN)
    token_id, user_id = record.id, record.user_id
    if record.is_revoked or not revoke_refresh_token(session, presented_token, now=now):
        logger.info('auth.logout.rejected', reason='revoked', token_id=token_id, user_id=user_id)
        return LogoutResult(success=False, reason=ALREADY_REVOKED)

    logger.info('auth.logout.succeeded', token_id=token_id, user_id=user_id)
    return LogoutResult(success=True)
