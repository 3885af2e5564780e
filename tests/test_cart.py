"""Tests for the cart engine."""
from decimal import Decimal
import pytest

from butcher_pos.cart import Cart, normalize_qty
from butcher_pos.errors import (
    AppException, LineNotFoundError, InvalidQuantityError, InsufficientStockError,
    InvalidDiscountError, InvalidPriceError, InvalidManualEntryError,
    BatchRequiredError, BatchUnavailableError,
)
from butcher_pos.pricing import line_subtotal
from butcher_pos.schemas import BatchInfo, LineState, SaleType

from conftest import make_batch


class TestAddLine:
    """Tests for adding loose products."""

    def test_adds_unit_line(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        assert line.qty == 2
        assert line.unit_price == Decimal("12")
        assert line.subtotal == Decimal("24")
        assert cart.total == Decimal("24")

    def test_merges_same_product_and_price(self, unit_product):
        cart = Cart()
        first = cart.add_line(unit_product, 1)
        second = cart.add_line(unit_product, 2)
        assert first is second
        assert len(cart) == 1
        assert first.qty == 3

    def test_different_price_gets_own_line(self, weight_product):
        cart = Cart()
        cart.add_line(weight_product, Decimal("1.0"))
        cart.add_line(weight_product, Decimal("1.0"), unit_price=Decimal("55"))
        assert len(cart) == 2

    def test_merge_preserves_effective_price(self, weight_product):
        cart = Cart()
        line = cart.add_line(weight_product, Decimal("1.0"))
        cart.set_line_discount(line.id, 10)
        cart.add_line(weight_product, Decimal("1.0"))
        assert line.qty == Decimal("2.0")
        assert line.discount == Decimal("20")
        assert line.total == Decimal("80")

    def test_zero_or_negative_rejected(self, unit_product):
        cart = Cart()
        with pytest.raises(InvalidQuantityError):
            cart.add_line(unit_product, 0)
        with pytest.raises(InvalidQuantityError):
            cart.add_line(unit_product, -1)
        assert len(cart) == 0

    def test_fractional_units_rejected(self, unit_product):
        with pytest.raises(InvalidQuantityError):
            Cart().add_line(unit_product, Decimal("1.5"))

    def test_weight_quantity_keeps_grams(self, weight_product):
        line = Cart().add_line(weight_product, Decimal("0.3456"))
        assert line.qty == Decimal("0.346")

    def test_vacuum_product_requires_batch(self, vacuum_product):
        with pytest.raises(BatchRequiredError):
            Cart().add_line(vacuum_product, 1)

    def test_stock_exceeded_rejected_with_available(self, stocked_product):
        cart = Cart()
        cart.add_line(stocked_product, 4)
        with pytest.raises(InsufficientStockError) as exc:
            cart.add_line(stocked_product, 2)
        assert exc.value.details["available"] == 1
        assert cart.lines[0].qty == 4

    def test_available_stock(self, stocked_product, unit_product):
        cart = Cart()
        cart.add_line(stocked_product, 3)
        assert cart.available_stock(stocked_product) == 2
        assert cart.available_stock(unit_product) is None

    def test_merges_into_line_being_edited(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        cart.update_qty(line.id, 0, commit=False)
        merged = cart.add_line(unit_product, 1)
        assert merged is line
        assert line.qty == 3
        assert line.state == LineState.DRAFT
        assert line.pending_qty == 0
        cart.commit_line(line.id)
        assert len(cart) == 1
        assert line.state == LineState.COMMITTED


class TestPackages:
    """Tests for batch and phantom lines."""

    def test_batch_line_has_qty_one(self, vacuum_product):
        cart = Cart()
        line = cart.add_batch(vacuum_product, make_batch())
        assert line.qty == 1
        assert line.batch_id == "b-1"
        assert line.actual_weight == Decimal("2.500")
        assert line.subtotal == Decimal("120")
        assert not line.needs_batch_creation

    def test_same_batch_twice_rejected(self, vacuum_product):
        cart = Cart()
        cart.add_batch(vacuum_product, make_batch())
        with pytest.raises(BatchUnavailableError):
            cart.add_batch(vacuum_product, make_batch())
        assert len(cart) == 1

    def test_packages_never_merge(self, vacuum_product):
        cart = Cart()
        cart.add_manual_batch(vacuum_product, "1.5", "72")
        cart.add_manual_batch(vacuum_product, "1.5", "72")
        assert len(cart) == 2

    def test_manual_batch_is_phantom(self, vacuum_product):
        line = Cart().add_manual_batch(vacuum_product, Decimal("1.25"), Decimal("60"))
        assert line.needs_batch_creation is True
        assert line.batch_id is None
        assert line.is_package

    def test_manual_batch_invalid_entry(self, vacuum_product):
        cart = Cart()
        with pytest.raises(InvalidManualEntryError):
            cart.add_manual_batch(vacuum_product, 0, 60)
        assert len(cart) == 0

    def test_scan_consumes_matching_batch(self, vacuum_product):
        line = Cart().add_scanned_package(vacuum_product, [make_batch()], Decimal("2.5"), Decimal("120"))
        assert line.batch_id == "b-1"

    def test_scan_without_match_goes_phantom(self, vacuum_product):
        line = Cart().add_scanned_package(vacuum_product, [make_batch()], Decimal("1.8"), Decimal("86"))
        assert line.needs_batch_creation is True
        assert line.actual_weight == Decimal("1.8")

    def test_package_qty_is_fixed(self, vacuum_product):
        cart = Cart()
        line = cart.add_batch(vacuum_product, make_batch())
        with pytest.raises(InvalidQuantityError):
            cart.update_qty(line.id, 2)
        assert cart.update_qty(line.id, 1).qty == 1

    def test_package_via_add_line(self, vacuum_product):
        info = BatchInfo(actual_weight=Decimal("1.1"), unit_price=Decimal("53"))
        line = Cart().add_line(vacuum_product, batch_info=info)
        assert line.needs_batch_creation


class TestUpdateQty:
    """Tests for quantity edits and drafts."""

    def test_scenario_b(self, weight_product):
        cart = Cart()
        line = cart.add_line(weight_product, Decimal("1.0"))
        assert line.subtotal == Decimal("50")
        cart.set_line_discount(line.id, 10)
        assert line.total == Decimal("40")
        cart.update_qty(line.id, Decimal("2.0"))
        assert line.discount == Decimal("20")
        assert line.total == Decimal("80")

    def test_negative_rejected(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product)
        with pytest.raises(InvalidQuantityError):
            cart.update_qty(line.id, -1)

    def test_draft_allows_zero_until_commit(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 3)
        cart.update_qty(line.id, 0, commit=False)
        assert line.state == LineState.DRAFT
        assert line.qty == 3
        cart.commit_line(line.id)
        assert line.state == LineState.COMMITTED
        assert line.qty == 1

    def test_commit_is_idempotent(self, weight_product):
        cart = Cart()
        line = cart.add_line(weight_product, Decimal("1"))
        cart.update_qty(line.id, Decimal("0.456"), commit=False)
        cart.commit_line(line.id)
        cart.commit_line(line.id)
        assert line.qty == Decimal("0.46")

    def test_stock_checked_excluding_own_line(self, stocked_product):
        cart = Cart()
        line = cart.add_line(stocked_product, 2)
        cart.update_qty(line.id, 5)
        assert line.qty == 5
        with pytest.raises(InsufficientStockError):
            cart.update_qty(line.id, 6)
        assert line.qty == 5

    def test_unknown_line(self):
        with pytest.raises(LineNotFoundError):
            Cart().update_qty("nope", 1)


class TestNormalizeQty:
    """Tests for operator quantity normalization."""

    def test_units_truncate_to_whole_minimum_one(self):
        assert normalize_qty(SaleType.UNIT, Decimal("2.7")) == 2
        assert normalize_qty(SaleType.UNIT, Decimal("0.9")) == 1
        assert normalize_qty(SaleType.UNIT, 0) == 1

    def test_weights_two_decimals_minimum(self):
        assert normalize_qty(SaleType.WEIGHT, Decimal("1.005")) == Decimal("1.01")
        assert normalize_qty(SaleType.WEIGHT, 0) == Decimal("0.01")


class TestDiscounts:
    """Tests for item and cart discounts."""

    def test_discount_bounds(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        with pytest.raises(InvalidDiscountError) as exc:
            cart.set_line_discount(line.id, 25)
        assert exc.value.details["max"] == "24"
        with pytest.raises(InvalidDiscountError):
            cart.set_line_discount(line.id, -1)
        assert line.discount == 0

    def test_full_discount_gives_zero_total(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        cart.set_line_discount(line.id, 24)
        assert line.total == 0
        assert line.total + line.discount == line_subtotal(line)

    def test_discount_rounded_to_whole_bs(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        cart.set_line_discount(line.id, Decimal("3.5"))
        assert line.discount == Decimal("4")

    def test_cart_discount_validated_against_subtotal(self, unit_product):
        cart = Cart()
        cart.add_line(unit_product, 2)
        with pytest.raises(InvalidDiscountError):
            cart.set_cart_discount(30)
        cart.set_cart_discount(4)
        assert cart.total == Decimal("20")

    def test_total_never_negative(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        cart.set_line_discount(line.id, 20)
        cart.set_cart_discount(24)
        assert cart.total == 0

    def test_reapplying_rescaled_discount_is_idempotent(self, weight_product):
        cart = Cart()
        line = cart.add_line(weight_product, Decimal("1.0"))
        cart.set_line_discount(line.id, 10)
        cart.update_qty(line.id, Decimal("2.0"))
        before = cart.snapshot().model_dump()
        cart.set_line_discount(line.id, line.discount)
        assert cart.snapshot().model_dump() == before

    def test_reapplying_override_discount_is_idempotent(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 3)
        cart.set_line_unit_price(line.id, Decimal("10.5"))
        before = cart.snapshot().model_dump()
        cart.set_line_discount(line.id, line.discount)
        assert cart.snapshot().model_dump() == before


class TestUnitPriceOverride:
    """Tests for price overrides."""

    def test_override_becomes_discount(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product, 2)
        cart.set_line_unit_price(line.id, 10)
        assert line.unit_price == Decimal("12")
        assert line.discount == Decimal("4")
        assert line.total == Decimal("20")

    def test_invalid_price(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product)
        with pytest.raises(InvalidPriceError):
            cart.set_line_unit_price(line.id, 0)

    def test_per_kg_override_on_package(self, vacuum_product):
        cart = Cart()
        line = cart.add_batch(vacuum_product, make_batch())  # 2.5 kg @ 120
        cart.set_line_unit_price(line.id, 40, per_kg=True)   # 100
        assert line.discount == Decimal("20")
        assert line.total == Decimal("100")


class TestLifecycle:
    """Tests for removal, snapshots and batch registration."""

    def test_remove_line(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product)
        removed = cart.remove_line(line.id)
        assert removed.state == LineState.REMOVED
        assert len(cart) == 0
        with pytest.raises(LineNotFoundError):
            cart.get_line(line.id)

    def test_snapshot_is_detached(self, unit_product):
        cart = Cart()
        cart.add_line(unit_product, 2)
        snap = cart.snapshot()
        cart.add_line(unit_product, 1)
        assert snap.lines[0].qty == 2
        assert snap.totals.total == Decimal("24")

    def test_register_batch_on_phantom(self, vacuum_product):
        cart = Cart()
        line = cart.add_manual_batch(vacuum_product, "1.5", "72")
        cart.register_batch(line.id, "b-real")
        assert line.batch_id == "b-real"
        assert line.needs_batch_creation is False
        assert line.state == LineState.BATCH_REGISTERED

    def test_register_batch_on_regular_line_rejected(self, unit_product):
        cart = Cart()
        line = cart.add_line(unit_product)
        with pytest.raises(AppException):
            cart.register_batch(line.id, "b-real")

    def test_clear(self, unit_product):
        cart = Cart()
        cart.add_line(unit_product, 2)
        cart.set_cart_discount(2)
        cart.clear()
        assert len(cart) == 0
        assert cart.total == 0
        assert cart.cart_discount == 0
