"""Request-body validation returning a result instead of raising."""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from quart import request

from .errors import ValidationError

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[M]):
    value: M
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    errors: List[Dict[str, Any]]
    ok: bool = field(default=False, init=False)

    def to_error(self) -> ValidationError:
        return ValidationError(self.errors)


Result = Union[Valid[M], Invalid]

MALFORMED_BODY = Invalid([{"field": "body", "message": "Malformed JSON"}])


def _format(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def validate(model: Type[M], payload: Any) -> Result:
    if payload is None:
        payload = {}
    try:
        return Valid(model.model_validate(payload))
    except PydanticValidationError as exc:
        return Invalid(_format(exc))


async def validate_body(model: Type[M]) -> Result:
    """Validate the current request's JSON body against ``model``.

    An absent body validates as ``{}``; a body that does not parse is invalid.
    """
    payload = await request.get_json(force=True, silent=True)
    if payload is None and (await request.get_data()).strip():
        return MALFORMED_BODY
    return validate(model, payload)
