# Overview: Selling-price derivation shared by item create and update.

"""
Pricing rule (authoritative)

- discount_percentage > 0: selling = original * (1 - discount / 100),
  overriding any explicitly supplied selling price.
- otherwise: the explicit selling price is used verbatim.
- Decimal arithmetic only; money is quantized to 0.01 (or to whole cents for
  the cents variant) with ROUND_HALF_UP.
- Applied on catalog writes only. Sales snapshot the stored selling price.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from ..validation import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MAX_DISCOUNT = HUNDRED


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def validate_discount(discount_percentage) -> Decimal:
    """Normalize a discount percentage; None means no discount."""
    if discount_percentage is None:
        return Decimal("0")
    discount = _as_decimal(discount_percentage)
    if discount < 0 or discount > MAX_DISCOUNT:
        raise ValidationError("discount_percentage must be between 0 and 100")
    return discount


def derive_selling_price(original_price, discount_percentage, explicit_selling_price) -> Decimal:
    """
    Derive the selling price in currency units (2 fractional digits).

    >>> derive_selling_price(Decimal("1000"), Decimal("20"), None)
    Decimal('800.00')
    """
    discount = validate_discount(discount_percentage)

    if discount > 0:
        if original_price is None:
            raise ValidationError("original_price is required when a discount is applied")
        original = _as_decimal(original_price)
        return (original * (1 - discount / HUNDRED)).quantize(CENT, rounding=ROUND_HALF_UP)

    if explicit_selling_price is None:
        raise ValidationError("selling price is required when no discount is applied")
    return _as_decimal(explicit_selling_price).quantize(CENT, rounding=ROUND_HALF_UP)


def derive_selling_price_cents(
    original_price_cents: int | None,
    discount_percentage,
    explicit_selling_price_cents: int | None,
) -> int:
    """Same rule on integer cents; the discounted result rounds half-up to a whole cent."""
    discount = validate_discount(discount_percentage)

    if discount > 0:
        if original_price_cents is None:
            raise ValidationError("original_price_cents is required when a discount is applied")
        cents = Decimal(original_price_cents) * (1 - discount / HUNDRED)
        return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    if explicit_selling_price_cents is None:
        raise ValidationError("selling_price_cents is required when no discount is applied")
    return int(explicit_selling_price_cents)


def cents_to_decimal(cents: int | None) -> Decimal:
    """Display helper: 80000 -> Decimal('800.00')."""
    return (Decimal(cents or 0) / HUNDRED).quantize(CENT)
