"""Turns a validated cart into an order draft with frozen prices and totals."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from .model import PaymentMethod
from .snapshot import CartSnapshot
from ..common.money import ZERO, as_decimal, round2

FeePolicy = Callable[[Decimal], Decimal]


def flat_shipping(subtotal: Decimal) -> Decimal:
    return ZERO


def no_tax(subtotal: Decimal) -> Decimal:
    return ZERO


@dataclass(frozen=True)
class LineItem:
    product_id: int
    title: str
    slug: str
    price: Decimal
    qty: int
    line_total: Decimal


@dataclass(frozen=True)
class OrderDraft:
    user_id: int
    cart_id: int
    items: List[LineItem]
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    grand_total: Decimal
    payment_method: str = PaymentMethod.COD.value
    shipping_address: Dict[str, Any] = field(default_factory=dict)


def build_draft(
    snapshot: CartSnapshot,
    shipping_address: Optional[Dict[str, Any]] = None,
    payment_method: Optional[PaymentMethod] = None,
    shipping_policy: FeePolicy = flat_shipping,
    tax_policy: FeePolicy = no_tax,
) -> OrderDraft:
    items: List[LineItem] = []
    running = ZERO
    for line in snapshot.lines:
        price = as_decimal(line.product.price)
        line_total = round2(price * line.qty)
        running += line_total
        items.append(
            LineItem(
                product_id=line.product.id,
                title=line.product.title,
                slug=line.product.slug,
                price=price,
                qty=line.qty,
                line_total=line_total,
            )
        )

    subtotal = round2(running)
    shipping_fee = round2(shipping_policy(subtotal))
    tax = round2(tax_policy(subtotal))
    grand_total = round2(subtotal + shipping_fee + tax)

    return OrderDraft(
        user_id=snapshot.user_id,
        cart_id=snapshot.cart_id,
        items=items,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        tax=tax,
        grand_total=grand_total,
        payment_method=(payment_method or PaymentMethod.COD).value,
        shipping_address=dict(shipping_address or {}),
    )
