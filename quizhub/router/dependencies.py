from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from quizhub.auth_util import decode_access_token
from quizhub.database import get_db
from quizhub.exceptions import AuthenticationError, NotFoundError
from quizhub.log import get_logger
from quizhub.model.users import User
from quizhub.schema.auth_schema import TokenPayload

log = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/user/login", auto_error=False)


def get_token(token: Optional[str] = Depends(oauth2_scheme)) -> TokenPayload:
    if not token:
        raise AuthenticationError("Authentication required")
    try:
        payload = decode_access_token(token)
        token_data = TokenPayload(**payload)
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token expired") from e
    except (JWTError, ValidationError) as e:
        log.debug("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid token") from e
    return token_data


def get_current_user(
    db: Session = Depends(get_db), token: TokenPayload = Depends(get_token)
) -> User:
    try:
        user_id = int(token.sub)
    except ValueError as e:
        raise AuthenticationError("Invalid token") from e
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user
