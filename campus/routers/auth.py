import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Annotated

from campus.core.security.auth import generate_access_token, get_current_user
from campus.crud import users as users_crud
from campus.db.session import get_db
from campus.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue_token(db: Session, email: str, password: str) -> dict:
    user = users_crud.authenticate_user(db, email, password)

    # Verify credentials
    if not user:
        logger.warning("Failed login attempt for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
        )

    return {
        "access_token": generate_access_token(user),
        "token_type": "bearer",
        "user": user,
    }

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    return users_crud.register_user(db, request.model_dump())

@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    return _issue_token(db, request.email, request.password)

@router.post("/token", response_model=TokenResponse)
def login_form(request: Annotated[OAuth2PasswordRequestForm, Depends()], db: Session = Depends(get_db)):
    """OAuth2 password flow; the form's ``username`` field carries the email."""
    return _issue_token(db, request.username, request.password)

@router.post("/refresh", response_model=TokenResponse)
def refresh(current_user: dict = Depends(get_current_user)):
    user = current_user["user"]
    return {"access_token": generate_access_token(user), "token_type": "bearer", "user": user}
