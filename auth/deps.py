from typing import Optional
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from auth.models import User, get_db
from auth.security import decode_access_token, verify_csrf_token
from core.errors import AuthenticationFailed, PermissionDenied

security = HTTPBearer(auto_error=False)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    if credentials is None:
        return None

    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        return None

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        return None

    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    current_user: Optional[User] = Depends(get_current_user_optional)
) -> User:
    if current_user is None:
        error = AuthenticationFailed()
        raise HTTPException(
            status_code=error.status_code,
            detail=error.to_detail(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


async def verify_request(
    current_user: User = Depends(get_current_user),
    x_csrf_token: Optional[str] = Header(default=None),
) -> User:
    """
    Gate for every studio call.

    Checks, in order: a valid bearer token, a CSRF token issued to the
    same user, and the upload capability. Runs before any provider call.
    """
    if not verify_csrf_token(x_csrf_token, current_user.id):
        error = AuthenticationFailed("Security check failed.")
        raise HTTPException(status_code=403, detail=error.to_detail())

    if not current_user.can_upload:
        error = PermissionDenied()
        raise HTTPException(status_code=error.status_code, detail=error.to_detail())

    return current_user
