"""Order item validation and pricing."""
from typing import List

from printshop.core.errors import ValidationError
from printshop.models.order import OrderItem
from printshop.schemas.order import OrderItemCreate
from printshop.utils.money import line_total_cents, to_cents


def validate_items(items: List[OrderItemCreate]) -> None:
    """
    Validate order items.

    Rules:
    - at least one item
    - unit_price must be non-negative
    - quantity must be positive
    """
    if not items:
        raise ValidationError("Order must have at least one item")

    for item in items:
        if item.unit_price < 0:
            raise ValidationError(
                f"Item '{item.name}' has negative price: {item.unit_price}"
            )
        if item.quantity <= 0:
            raise ValidationError(
                f"Item '{item.name}' has non-positive quantity: {item.quantity}"
            )


def price_items(items: List[OrderItemCreate]) -> List[OrderItem]:
    """Validate and price items. Line totals are rounded half-up to the cent."""
    validate_items(items)
    priced = []
    for item in items:
        unit_price_cents = to_cents(item.unit_price)
        priced.append(OrderItem(
            **item.model_dump(exclude={"unit_price"}),
            unit_price_cents=unit_price_cents,
            total_cents=line_total_cents(unit_price_cents, item.quantity)
        ))
    return priced


def calculate_total(items: List[OrderItem]) -> int:
    """Order total in cents: the sum of line totals."""
    return sum(item.total_cents for item in items)
