from decimal import Decimal

import pytest

from stockledger.services.pricing import (
    cents_to_decimal,
    derive_selling_price,
    derive_selling_price_cents,
    validate_discount,
)
from stockledger.validation import ValidationError


def test_discount_overrides_explicit_price():
    assert derive_selling_price(Decimal("1000"), Decimal("20"), Decimal("999")) == Decimal("800.00")


def test_discount_without_explicit_price():
    assert derive_selling_price(Decimal("1000"), Decimal("20"), None) == Decimal("800.00")


def test_zero_discount_uses_explicit_price_verbatim():
    assert derive_selling_price(Decimal("1000"), Decimal("0"), Decimal("950")) == Decimal("950.00")
    assert derive_selling_price(Decimal("1000"), None, Decimal("950.5")) == Decimal("950.50")


def test_rounding_is_half_up_to_two_places():
    # 0.125 is exactly representable in Decimal; half-up goes to 0.13
    assert derive_selling_price(Decimal("0.25"), Decimal("50"), None) == Decimal("0.13")
    assert derive_selling_price(Decimal("19.99"), Decimal("33.33"), None) == Decimal("13.33")


def test_full_discount_is_free():
    assert derive_selling_price(Decimal("500"), Decimal("100"), None) == Decimal("0.00")


def test_missing_selling_price_without_discount_rejected():
    with pytest.raises(ValidationError):
        derive_selling_price(Decimal("1000"), Decimal("0"), None)


@pytest.mark.parametrize("discount", [Decimal("-1"), Decimal("100.01"), "150"])
def test_discount_out_of_range_rejected(discount):
    with pytest.raises(ValidationError):
        validate_discount(discount)


def test_cents_variant():
    assert derive_selling_price_cents(100000, Decimal("20"), None) == 80000
    assert derive_selling_price_cents(100000, Decimal("20"), 12345) == 80000
    assert derive_selling_price_cents(100000, Decimal("0"), 95000) == 95000
    # 999 * 0.85 = 849.15 -> 849
    assert derive_selling_price_cents(999, Decimal("15"), None) == 849
    # 333 * 0.5 = 166.5 -> 167
    assert derive_selling_price_cents(333, Decimal("50"), None) == 167


def test_cents_variant_requires_price_without_discount():
    with pytest.raises(ValidationError):
        derive_selling_price_cents(100000, None, None)


def test_cents_to_decimal():
    assert cents_to_decimal(80000) == Decimal("800.00")
    assert cents_to_decimal(None) == Decimal("0.00")
