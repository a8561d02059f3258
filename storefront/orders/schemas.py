from typing import Optional

from pydantic import BaseModel, Field

from .model import OrderStatus, PaymentMethod, PaymentStatus


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=2)
    phone: str = Field(min_length=6)
    address1: str = Field(min_length=3)
    address2: Optional[str] = None
    city: str = Field(min_length=2)
    state: Optional[str] = None
    postal_code: str = Field(min_length=3)
    country: str = Field(min_length=2)


class CreateOrderRequest(BaseModel):
    shipping_address: Optional[ShippingAddress] = None
    payment_method: Optional[PaymentMethod] = None


class UpdateOrderStatusRequest(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
