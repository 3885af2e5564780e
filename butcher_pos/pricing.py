"""
Pricing rules for cart lines and cart aggregates.

Currency amounts are whole Bolivianos rounded half-up at every documented
point: line subtotal, line total and grand total are each rounded on their
own, never derived from one unrounded running total. All functions are pure
and accept any object exposing ``qty``, ``unit_price`` and ``discount``.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CURRENCY_QUANTUM = Decimal("1")
INPUT_QUANTUM = Decimal("0.01")
WEIGHT_QUANTUM = Decimal("0.001")
UNIT_PRICE_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Coerce ints, strings and floats to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_bs(value) -> Decimal:
    """Round half-up to whole Bolivianos."""
    return to_decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def round_input(value) -> Decimal:
    """Discount and price inputs keep 2 decimals."""
    return to_decimal(value).quantize(INPUT_QUANTUM, rounding=ROUND_HALF_UP)


def line_subtotal(line) -> Decimal:
    return round_bs(line.qty * line.unit_price)


def line_total(line) -> Decimal:
    """Subtotal minus discount. Not clamped: a full discount gives 0."""
    return line_subtotal(line) - round_bs(line.discount)


def display_total(line) -> Decimal:
    """Line total floored at 0 for display."""
    return max(ZERO, line_total(line))


def cart_subtotal(lines: Iterable) -> Decimal:
    return round_bs(sum((line_subtotal(line) for line in lines), ZERO))


def item_discounts_total(lines: Iterable) -> Decimal:
    return round_bs(sum((to_decimal(line.discount) for line in lines), ZERO))


def cart_total(lines: Iterable, cart_discount=ZERO) -> Decimal:
    """Grand total, never negative."""
    lines = list(lines)
    total = cart_subtotal(lines) - item_discounts_total(lines) - round_bs(cart_discount)
    return max(ZERO, round_bs(total))


def effective_unit_price(qty, unit_price, discount) -> Decimal:
    """Post-discount price per unit (or per kg)."""
    qty = to_decimal(qty)
    if qty == 0:
        return to_decimal(unit_price)
    return (round_bs(qty * unit_price) - to_decimal(discount)) / qty


def price_override_discount(qty, original_unit_price, new_unit_price) -> Decimal:
    """Discount that brings a line from its original price to ``new_unit_price``."""
    discount = round_bs(qty * original_unit_price) - round_bs(qty * new_unit_price)
    return max(ZERO, discount)


def rescale_discount(old_qty, new_qty, unit_price, discount) -> Decimal:
    """
    Discount for ``new_qty`` that keeps the effective unit price of the line.

    Clamped to [0, new subtotal].
    """
    discount = to_decimal(discount)
    if discount == 0:
        return ZERO
    effective = effective_unit_price(old_qty, unit_price, discount)
    new_subtotal = round_bs(new_qty * unit_price)
    new_discount = new_subtotal - round_bs(new_qty * effective)
    return min(max(ZERO, new_discount), new_subtotal)


def price_per_kg(total_price, weight_kg) -> Decimal:
    """Per-kg price kept to 4 decimals, the precision sale lines store."""
    weight_kg = to_decimal(weight_kg)
    if weight_kg == 0:
        return ZERO
    return (to_decimal(total_price) / weight_kg).quantize(UNIT_PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def package_price(unit_price_per_kg, weight_kg) -> Decimal:
    """Whole-package price for a per-kg price."""
    return round_bs(to_decimal(unit_price_per_kg) * to_decimal(weight_kg))


def expected_scale_price(weight_kg, catalog_price) -> Decimal:
    """What the label should read at the catalog per-kg price."""
    return round_bs(to_decimal(weight_kg) * to_decimal(catalog_price))
