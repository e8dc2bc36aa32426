from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

from jose import JWTError, jwt

from app.core.config import settings
from app.models.enums import UserRole
from app.services.errors import UnauthenticatedError

ACCESS_TOKEN_TYPE = 'access'


@dataclass(frozen=True)
class AccessClaims:
    subject_id: int
    email: str
    role: UserRole


class TokenSigner:
    """Issues and validates self-contained HMAC-signed access tokens.

    Validation never touches storage: a token is good iff its signature,
    issuer, audience and expiry check out.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str,
        issuer: str,
        audience: str,
        ttl: timedelta,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.ttl = ttl

    def issue(self, claims: AccessClaims, ttl: Optional[timedelta] = None, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            'sub': str(claims.subject_id),
            'email': claims.email,
            'role': claims.role.value,
            'iss': self.issuer,
            'aud': self.audience,
            'type': ACCESS_TOKEN_TYPE,
            'iat': now,
            'exp': now + (ttl if ttl is not None else self.ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str, now: Optional[datetime] = None) -> AccessClaims:
        if not token:
            raise UnauthenticatedError('malformed')
        try:
            jwt.get_unverified_header(token)
        except JWTError as exc:
            raise UnauthenticatedError('malformed') from exc
        try:
            # registered claims are checked below so each failure keeps its own reason
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={'verify_aud': False, 'verify_iss': False, 'verify_exp': False},
            )
        except JWTError as exc:
            raise UnauthenticatedError('bad_signature') from exc

        if payload.get('iss') != self.issuer:
            raise UnauthenticatedError('wrong_issuer')
        if not _audience_matches(payload.get('aud'), self.audience):
            raise UnauthenticatedError('wrong_audience')
        now = now or datetime.now(timezone.utc)
        exp = payload.get('exp')
        if not isinstance(exp, (int, float)) or exp <= now.timestamp():
            raise UnauthenticatedError('expired')
        if payload.get('type') != ACCESS_TOKEN_TYPE:
            raise UnauthenticatedError('wrong_type')
        return _claims_from_payload(payload)


def _audience_matches(value: Any, audience: str) -> bool:
    if isinstance(value, str):
        return value == audience
    if isinstance(value, list):
        return audience in value
    return False


def _claims_from_payload(payload: dict) -> AccessClaims:
    try:
        subject_id = int(payload['sub'])
        email = payload['email']
        role = UserRole(payload['role'])
    except (KeyError, TypeError, ValueError) as exc:
        raise UnauthenticatedError('bad_claims') from exc
    if not isinstance(email, str) or not email:
        raise UnauthenticatedError('bad_claims')
    return AccessClaims(subject_id=subject_id, email=email, role=role)


@lru_cache
def get_token_signer() -> TokenSigner:
    return TokenSigner(
        secret=settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
