from typing import Optional

from pydantic import BaseModel, EmailStr


class TokenPayload(BaseModel):
    """Payload for Bearer Access Token"""
    sub: str  # user id
    email: Optional[str] = None
    exp: int
    iat: int


class UserRegister(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginOut(BaseModel):
    message: str
    user_id: int
    username: str
    token: str
    token_type: str = "bearer"
