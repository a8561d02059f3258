"""Error taxonomy shared by every blueprint.

Each error carries the HTTP status it renders with. The application-level
handler in ``storefront.app`` turns any ``ApiError`` into a
``{"status", "message"}`` body.
"""

from typing import Any, Dict, List, Optional


class ApiError(Exception):
    status = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message}


class BadRequest(ApiError):
    status = 400
    default_message = "Bad request"


class ValidationError(BadRequest):
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class Unauthorized(ApiError):
    status = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status = 404
    default_message = "Not found"


class Conflict(ApiError):
    status = 409
    default_message = "Conflict"


# Checkout: user-correctable problems with the cart
class EmptyCart(BadRequest):
    default_message = "Cart is empty"


class ProductUnavailable(BadRequest):
    default_message = "Product unavailable in cart"


class InsufficientStock(BadRequest):
    def __init__(self, slug: str, requested: int, available: int):
        super().__init__(f"Insufficient stock for {slug}")
        self.slug = slug
        self.requested = requested
        self.available = available


# Cancellation eligibility
class AlreadyCancelled(BadRequest):
    default_message = "Already cancelled"


class CancelNotAllowed(BadRequest):
    default_message = "Cannot cancel after payment or processing"


# Transactional failures; the unit of work is rolled back before these surface
class StockConflict(ApiError):
    def __init__(self, slug: str):
        super().__init__(f"Stock update failed for {slug}")
        self.slug = slug


class CheckoutFailed(ApiError):
    default_message = "Order creation failed"

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class CancelFailed(ApiError):
    default_message = "Cancel failed"

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__
