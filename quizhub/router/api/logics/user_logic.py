from typing import Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizhub.auth_util import create_access_token, get_password_hash, verify_password
from quizhub.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from quizhub.log import get_logger
from quizhub.model.quizzes import Quiz
from quizhub.model.users import User
from quizhub.router.api.logics.quiz_logic import delete_quiz_trees
from quizhub.schema.auth_schema import LoginOut, LoginRequest, UserRegister
from quizhub.schema.user_schema import UserOut, UserProfileOut, UserUpdate

log = get_logger(__name__)


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, name=user.name, email=user.email)


def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def register_logic(db: Session, request: UserRegister) -> UserOut:
    if not request.name or not request.email or not request.password:
        raise ValidationError("name, email and password are required")

    email = request.email
    if _email_taken(db, email):
        raise ConflictError("Email already in use")

    user = User(
        name=request.name.strip(),
        email=email,
        hashed_password=get_password_hash(request.password),
        is_active=True,
        is_admin=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # lost a race with another registration for the same email
        db.rollback()
        raise ConflictError("Email already in use") from e
    db.refresh(user)

    log.info("Registered user %s", user.id)
    return _user_out(user)


def login_logic(db: Session, request: LoginRequest) -> LoginOut:
    if not request.email or not request.password:
        raise ValidationError("Email and password are required")
    email = request.email

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    if not verify_password(request.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(subject=user.id, email=user.email)
    return LoginOut(
        message="Login successful",
        user_id=user.id,
        username=user.name,
        token=token,
    )


def parse_user_id(raw_id: str) -> int:
    try:
        return int(raw_id)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid user ID") from e


def get_user_logic(db: Session, user_id: int) -> UserProfileOut:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return UserProfileOut(user=_user_out(user))


def _find_self(db: Session, user_id: int, current_user: User) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if current_user.id != user.id:
        raise ForbiddenError("Access denied")
    return user


def update_user_logic(db: Session, user_id: int, request: UserUpdate, current_user: User) -> UserOut:
    """Self-service profile update. Only the fields that are sent change."""
    user = _find_self(db, user_id, current_user)

    if request.name:
        user.name = request.name.strip()
    if request.email:
        email = request.email
        if _email_taken(db, email, exclude_id=user.id):
            raise ConflictError("Email already in use")
        user.email = email
    if request.password:
        user.hashed_password = get_password_hash(request.password)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Email already in use") from e

    return _user_out(user)


def delete_user_logic(db: Session, user_id: int, current_user: User) -> Dict[str, bool]:
    """Delete the caller's own account together with every quiz it owns."""
    user = _find_self(db, user_id, current_user)
    try:
        quiz_ids = [row.id for row in db.query(Quiz.id).filter(Quiz.owner_user_id == user.id)]
        delete_quiz_trees(db, quiz_ids)
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("Deleted user %s and %d quiz(zes)", user_id, len(quiz_ids))
    return {"ok": True}
