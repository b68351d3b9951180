from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from campus.core.security.auth import get_current_user
from campus.crud import users as users_crud
from campus.db.session import get_db
from campus.models.user import RoleType
from campus.schemas.user import UserCreateRequest, UserRead, UserStats, UserUpdateRequest

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserRead)
def get_current_user_info(current_user: dict = Depends(get_current_user)):
    return current_user["user"]

@router.get("/stats", response_model=UserStats)
def get_user_stats(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.user_stats(db, current_user["user"])

@router.get("", response_model=List[UserRead])
def list_users(
    role: Optional[RoleType] = None,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.list_users(db, current_user["user"], role)

@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    request: UserCreateRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.create_user(db, request.model_dump(), current_user["user"])

@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.view_user(db, user_id, current_user["user"])

@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    request: UserUpdateRequest,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.update_user(db, user_id, request.model_dump(exclude_unset=True), current_user["user"])

@router.post("/{user_id}/activate", response_model=UserRead)
def activate_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.set_user_active(db, user_id, True, current_user["user"])

@router.post("/{user_id}/deactivate", response_model=UserRead)
def deactivate_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return users_crud.set_user_active(db, user_id, False, current_user["user"])

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    users_crud.remove_user(db, user_id, current_user["user"])
