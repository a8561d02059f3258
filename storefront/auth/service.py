import logging
from typing import Dict, Any

import sqlalchemy as sa
from pydantic import BaseModel, EmailStr, Field

from .model import User, ROLE_USER
from .security import check_password, hash_password, issue_token
from ..common.database import session_scope
from ..common.errors import Conflict, Unauthorized

_logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


def _auth_payload(user: User) -> Dict[str, Any]:
    return {"token": issue_token(user.id, user.role), "user": user.to_public()}


async def register(data: RegisterRequest, role: str = ROLE_USER) -> Dict[str, Any]:
    email = str(data.email).lower()
    async with session_scope() as session:
        async with session.begin():
            res = await session.execute(sa.select(User.id).where(User.email == email))
            if res.first() is not None:
                raise Conflict("Email already in use")
            user = User(name=data.name, email=email, password_hash=hash_password(data.password), role=role)
            session.add(user)
            await session.flush()
    _logger.info("User registered | user_id=%s role=%s", user.id, user.role)
    return _auth_payload(user)


async def login(data: LoginRequest) -> Dict[str, Any]:
    email = str(data.email).lower()
    async with session_scope() as session:
        res = await session.execute(sa.select(User).where(User.email == email))
        user = res.scalar_one_or_none()
    if user is None or not check_password(data.password, user.password_hash):
        _logger.info("Login rejected | email=%s", email)
        raise Unauthorized("Invalid credentials")
    return _auth_payload(user)
