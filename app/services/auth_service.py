from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from passlib.context import CryptContext
from sqlmodel import Session, select
from app.models.user import User
from app.models.enums import UserRole
from app.services.errors import UnauthenticatedError
from app.services.token_signer import AccessClaims, get_token_signer

pwd_context = CryptContext(schemes=['bcrypt'], deprecated='auto')
security = HTTPBearer(auto_error=False)

CREDENTIALS_ERROR = 'Could not validate credentials'


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == normalize_email(email))).first()


def create_user(
    session: Session,
    email: str,
    password: str,
    first_name: str = '',
    last_name: str = '',
    phone_number: Optional[str] = None,
    role: UserRole = UserRole.CUSTOMER,
) -> User:
    user = User(
        email=normalize_email(email),
        hashed_password=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone_number=phone_number.strip() if phone_number else None,
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def authenticate_user(session: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(session, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=CREDENTIALS_ERROR,
        headers={'WWW-Authenticate': 'Bearer'},
    )


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AccessClaims:
    # signature and expiry only; access tokens are never looked up in storage
    if credentials is None:
        logger.info('auth.access.rejected', reason='missing')
        raise _unauthenticated()
    try:
        return get_token_signer().validate(credentials.credentials)
    except UnauthenticatedError as exc:
        logger.info('auth.access.rejected', reason=exc.reason)
        raise _unauthenticated() from exc


def require_roles(*roles: UserRole):
    allowed = frozenset(roles)

    def _dependency(claims: AccessClaims = Depends(get_current_claims)) -> AccessClaims:
        if claims.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Insufficient role')
        return claims

    return _dependency


require_admin = require_roles(UserRole.ADMIN)
