from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from auth.models import User, get_db
from auth.deps import get_current_user
from auth.schemas import UserCreate, UserLogin, TokenResponse, UserOut, CsrfTokenResponse
from auth.security import hash_password, verify_password, create_access_token, create_csrf_token
from core.errors import AuthenticationFailed
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(email=user_data.email, hashed_password=hash_password(user_data.password))
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user


@router.post("/login", response_model=TokenResponse)
def login(user_data: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == user_data.email).first()
    if user is None or not verify_password(user_data.password, user.hashed_password):
        logger.warning("Rejected login attempt")
        error = AuthenticationFailed("Incorrect email or password.")
        raise HTTPException(
            status_code=error.status_code,
            detail=error.to_detail(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(access_token=create_access_token({"sub": user.id}))


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    """The caller's account, including whether it may use the studio."""
    return current_user


@router.get("/csrf", response_model=CsrfTokenResponse)
def csrf_token(current_user: User = Depends(get_current_user)):
    """
    Issue the anti-forgery token the studio endpoints expect in X-CSRF-Token.

    Bound to the caller; a token issued to one user is rejected for another.
    """
    return CsrfTokenResponse(csrf_token=create_csrf_token(current_user.id))
