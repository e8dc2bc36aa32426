from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserOut
from app.services.auth_service import authenticate_user, create_user, get_user_by_email
from app.services.errors import SessionError, TokenExpiredError, TokenValidationError
from app.services.session_service import SessionPair, issue_session, logout as revoke_session, rotate_session
from app.services.user_service import to_user_out

router = APIRouter(prefix='/auth', tags=['auth'])


def _to_token_response(pair: SessionPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type=pair.token_type,
        expires_in=pair.expires_in,
        email=pair.email,
    )


def _refresh_error(exc: SessionError) -> HTTPException:
    if isinstance(exc, TokenValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    # unknown and revoked tokens look the same from outside
    if isinstance(exc, TokenExpiredError):
        detail, description = 'Refresh token expired', 'token_expired'
    else:
        detail, description = 'Invalid refresh token', 'token_invalid'
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={'WWW-Authenticate': f'Bearer error="invalid_token", error_description="{description}"'},
    )


@router.post('/register', response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, session: Session = Depends(get_session)) -> UserOut:
    if get_user_by_email(session, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Email already registered')
    user = create_user(
        session,
        payload.email,
        payload.password,
        first_name=payload.first_name or '',
        last_name=payload.last_name or '',
        phone_number=payload.phone_number,
    )
    return to_user_out(user)


@router.post('/login', response_model=TokenResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)) -> TokenResponse:
    user = authenticate_user(session, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email or password')
    return _to_token_response(issue_session(session, user))


@router.post('/refresh', response_model=TokenResponse)
def refresh(payload: RefreshRequest, session: Session = Depends(get_session)) -> TokenResponse:
    try:
        pair = rotate_session(session, payload.refresh_token)
    except SessionError as exc:
        raise _refresh_error(exc) from exc
    return _to_token_response(pair)


@router.post('/logout')
def logout(payload: LogoutRequest, session: Session = Depends(get_session)) -> dict:
    result = revoke_session(session, payload.refresh_token)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.reason)
    return {'status': 'ok'}
