from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.session import get_session
from app.schemas.auth import ClaimsOut, SessionOut
from app.services.auth_service import get_current_claims
from app.services.refresh_token_store import list_active_refresh_tokens
from app.services.token_signer import AccessClaims

router = APIRouter(prefix='/me', tags=['me'])


@router.get('', response_model=ClaimsOut)
def get_me(claims: AccessClaims = Depends(get_current_claims)) -> ClaimsOut:
    return ClaimsOut(id=claims.subject_id, email=claims.email, role=claims.role)


@router.get('/sessions', response_model=list[SessionOut])
def list_my_sessions(
    session: Session = Depends(get_session),
    claims: AccessClaims = Depends(get_current_claims),
) -> list[SessionOut]:
    records = list_active_refresh_tokens(session, claims.subject_id)
    return [SessionOut(id=record.id, created_at=record.created_at, expires_at=record.expires_at) for record in records]
