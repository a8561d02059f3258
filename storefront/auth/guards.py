from functools import wraps

from quart import g, request

from .security import Identity, decode_token
from ..common.errors import Forbidden, Unauthorized


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip()
    return ""


def current_identity() -> Identity:
    return g.identity


def require_auth(view):
    @wraps(view)
    async def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise Unauthorized("Missing token")
        g.identity = decode_token(token)
        return await view(*args, **kwargs)

    return wrapper


def require_admin(view):
    """Must sit below ``require_auth`` so the identity is already resolved."""

    @wraps(view)
    async def wrapper(*args, **kwargs):
        identity = getattr(g, "identity", None)
        if identity is None or not identity.is_admin:
            raise Forbidden("Admin only")
        return await view(*args, **kwargs)

    return wrapper
