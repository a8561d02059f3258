from quart import Blueprint, jsonify

from .service import LoginRequest, RegisterRequest, login, register
from ..common.validation import validate_body

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/register")
async def register_post():
    result = await validate_body(RegisterRequest)
    if not result.ok:
        raise result.to_error()
    payload = await register(result.value)
    return jsonify(payload), 201


@bp.post("/login")
async def login_post():
    result = await validate_body(LoginRequest)
    if not result.ok:
        raise result.to_error()
    return jsonify(await login(result.value))
