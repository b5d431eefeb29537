from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from quizhub.database import get_db
from quizhub.model.users import User
from quizhub.router.api.logics.user_logic import (
    delete_user_logic,
    get_user_logic,
    login_logic,
    parse_user_id,
    register_logic,
    update_user_logic,
)
from quizhub.router.dependencies import get_current_user
from quizhub.schema.auth_schema import LoginOut, LoginRequest, UserRegister
from quizhub.schema.user_schema import UserOut, UserProfileOut, UserUpdate

router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(request: UserRegister, db: Session = Depends(get_db)):
    """Create an account.

    Raises:
        ValidationError: A field is missing or the email is malformed
        ConflictError: The email is already registered
    """
    return register_logic(db, request)


@router.post("/login", response_model=LoginOut, status_code=status.HTTP_200_OK)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token valid 24 hours."""
    return login_logic(db, request)


@router.get("/me", response_model=UserProfileOut, status_code=status.HTTP_200_OK)
async def get_me(user: User = Depends(get_current_user)):
    return UserProfileOut(user=UserOut(id=user.id, name=user.name, email=user.email))


@router.get("/{user_id}", response_model=UserProfileOut, status_code=status.HTTP_200_OK)
async def get_user(user_id: str, db: Session = Depends(get_db)):
    """Public profile fields of an account. No authentication required."""
    return get_user_logic(db, parse_user_id(user_id))


@router.put("/{user_id}", response_model=UserOut, status_code=status.HTTP_200_OK)
async def update_user(
    user_id: str,
    request: UserUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update the caller's own name, email or password."""
    return update_user_logic(db, parse_user_id(user_id), request, user)


@router.delete("/{user_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete the caller's own account and every quiz it owns."""
    return delete_user_logic(db, parse_user_id(user_id), user)
