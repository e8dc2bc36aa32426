from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.enums import UserRole
from app.schemas.user import UserOut
from app.services.auth_service import require_admin, require_roles
from app.services.token_signer import AccessClaims
from app.services.user_service import get_user, list_users, to_user_out

router = APIRouter(prefix='/users', tags=['users'])


@router.get('', response_model=list[UserOut])
def get_users(
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    _: AccessClaims = Depends(require_admin),
) -> list[UserOut]:
    return [to_user_out(user) for user in list_users(session, limit=limit, offset=offset)]


@router.get('/{user_id}', response_model=UserOut)
def get_user_by_id(
    user_id: int,
    session: Session = Depends(get_session),
    _: AccessClaims = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
) -> UserOut:
    user = get_user(session, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    return to_user_out(user)
