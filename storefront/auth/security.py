from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict

import bcrypt
import jwt

from .model import ROLE_ADMIN
from ..common.config import settings
from ..common.db import utcnow
from ..common.errors import Unauthorized

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """The caller as resolved from a bearer token."""

    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))


def issue_token(user_id: int, role: str) -> str:
    payload: Dict[str, Any] = {
        "id": user_id,
        "role": role,
        "exp": utcnow() + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return Identity(id=int(payload["id"]), role=str(payload.get("role", "")))
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token") from exc
