"""Tests for the position arithmetic (pure functions, no database)."""

from decimal import Decimal

import pytest

from kadig.services.positions import (
    PositionState,
    apply_application,
    apply_redemption,
    calculate_gain_percent,
    edit_position,
    money,
    open_amount_position,
    open_position,
    revalue,
)


def unit_position() -> PositionState:
    """100 units bought at 10.00, quoted at 12.00."""
    return PositionState(
        quantity=Decimal("100"),
        purchase_price=Decimal("10.00"),
        current_price=Decimal("12.00"),
        total_invested=Decimal("1000.00"),
        current_value=Decimal("1200.00"),
        gain_percent=Decimal("20.0000"),
    )


def amount_position() -> PositionState:
    """A fixed income position: 1800.00 invested, worth 2000.00."""
    return PositionState(
        quantity=None,
        purchase_price=None,
        current_price=None,
        total_invested=Decimal("1800.00"),
        current_value=Decimal("2000.00"),
    )


# =============================================================================
# Gain and rounding
# =============================================================================


class TestGainPercent:

    def test_positive_gain(self):
        assert calculate_gain_percent(Decimal("1200"), Decimal("1000")) == Decimal("20.0000")

    def test_loss(self):
        assert calculate_gain_percent(Decimal("750"), Decimal("1000")) == Decimal("-25.0000")

    def test_nothing_invested(self):
        """Zero cost basis gives 0 rather than dividing by zero."""
        assert calculate_gain_percent(Decimal("500"), Decimal("0")) == Decimal("0")

    def test_money_rounds_half_up(self):
        assert money(Decimal("10.005")) == Decimal("10.01")
        assert money(Decimal("10.004")) == Decimal("10.00")


# =============================================================================
# Opening positions
# =============================================================================


class TestOpenPosition:

    def test_at_purchase_price(self):
        state = open_position(Decimal("100"), Decimal("10"))

        assert state.current_value == Decimal("1000.00")
        assert state.total_invested == Decimal("1000.00")
        assert state.gain_percent == Decimal("0")

    def test_with_market_price(self):
        state = open_position(Decimal("100"), Decimal("10"), market_price=Decimal("12"))

        assert state.current_value == Decimal("1200.00")
        assert state.total_invested == Decimal("1000.00")
        assert state.gain_percent == Decimal("20.0000")

    def test_invested_with_fees(self):
        """An explicit cost basis overrides quantity x price."""
        state = open_position(Decimal("10"), Decimal("10"), total_invested=Decimal("105"))

        assert state.total_invested == Decimal("105.00")
        assert state.current_value == Decimal("100.00")

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValueError, match="Quantity"):
            open_position(Decimal("0"), Decimal("10"))

    def test_rejects_zero_price(self):
        with pytest.raises(ValueError, match="Purchase price"):
            open_position(Decimal("1"), Decimal("0"))

    def test_amount_only(self):
        state = open_amount_position(Decimal("5000"), Decimal("5250"))

        assert state.quantity is None
        assert state.purchase_price is None
        assert state.total_invested == Decimal("5000.00")
        assert state.current_value == Decimal("5250.00")
        assert state.gain_percent == Decimal("5.0000")

    def test_amount_only_defaults_value_to_amount(self):
        state = open_amount_position(Decimal("300"))
        assert state.current_value == Decimal("300.00")


# =============================================================================
# Applications
# =============================================================================


class TestApplication:

    def test_weighted_average_price(self):
        """50 more units at 14.00 on top of 100 at 10.00."""
        result = apply_application(
            unit_position(), quantity=Decimal("50"), unit_price=Decimal("14")
        )

        state = result.state
        assert state.quantity == Decimal("150")
        assert state.purchase_price == Decimal("11.33333333")
        assert state.total_invested == Decimal("1700.00")
        assert state.current_value == Decimal("1900.00")
        assert result.amount == Decimal("700.00")
        assert result.quantity == Decimal("50")

    def test_unit_price_defaults_to_purchase_price(self):
        result = apply_application(unit_position(), quantity=Decimal("10"))

        assert result.unit_price == Decimal("10.00")
        assert result.state.total_invested == Decimal("1100.00")

    def test_amount_only_grows_value_and_invested(self):
        result = apply_application(amount_position(), amount=Decimal("500"))

        assert result.state.total_invested == Decimal("2300.00")
        assert result.state.current_value == Decimal("2500.00")
        assert result.quantity is None
        assert result.amount == Decimal("500.00")

    def test_requires_quantity_or_amount(self):
        with pytest.raises(ValueError):
            apply_application(unit_position())

    def test_rejects_negative_quantity(self):
        with pytest.raises(ValueError, match="Quantity"):
            apply_application(unit_position(), quantity=Decimal("-1"))


# =============================================================================
# Redemptions
# =============================================================================


class TestRedemption:

    def test_partial_by_quantity(self):
        """Redeeming 25 of 100 units leaves 75% of value and cost basis."""
        result = apply_redemption(unit_position(), quantity=Decimal("25"))

        assert not result.closed
        assert result.amount == Decimal("300.00")
        assert result.unit_price == Decimal("12.00")
        assert result.state.quantity == Decimal("75")
        assert result.state.current_value == Decimal("900.00")
        assert result.state.total_invested == Decimal("750.00")
        assert result.state.gain_percent == Decimal("20.0000")

    def test_gross_amount_overrides_proportional_value(self):
        result = apply_redemption(
            unit_position(), quantity=Decimal("25"), amount=Decimal("310")
        )

        assert result.amount == Decimal("310.00")
        assert result.state.current_value == Decimal("900.00")

    def test_partial_by_amount(self):
        result = apply_redemption(amount_position(), amount=Decimal("500"))

        assert not result.closed
        assert result.quantity is None
        assert result.state.current_value == Decimal("1500.00")
        assert result.state.total_invested == Decimal("1350.00")

    def test_whole_quantity_closes(self):
        result = apply_redemption(unit_position(), quantity=Decimal("100"))

        assert result.closed
        assert result.state is None
        assert result.amount == Decimal("1200.00")

    def test_more_than_held_is_capped(self):
        result = apply_redemption(unit_position(), quantity=Decimal("150"))

        assert result.closed
        assert result.quantity == Decimal("100")

    def test_amount_above_value_closes(self):
        result = apply_redemption(amount_position(), amount=Decimal("2500"))
        assert result.closed

    def test_sub_cent_remainder_closes(self):
        """Leaving value that rounds to 0.00 closes instead of storing dust."""
        state = PositionState(
            quantity=Decimal("100"),
            purchase_price=Decimal("1"),
            current_price=Decimal("1"),
            total_invested=Decimal("100.00"),
            current_value=Decimal("100.00"),
        )

        result = apply_redemption(state, quantity=Decimal("99.99999"))

        assert result.closed
        assert result.state is None
        assert result.quantity == Decimal("100")

    def test_quantity_below_column_scale_closes(self):
        result = apply_redemption(unit_position(), quantity=Decimal("99.999999999"))

        assert result.closed
        assert result.state is None

    def test_remaining_state_is_at_column_scale(self):
        result = apply_redemption(unit_position(), quantity=Decimal("33.333333333"))

        state = result.state
        assert not result.closed
        assert state.quantity == Decimal("66.66666667")
        assert state.current_value == Decimal("800.00")
        assert state.current_value > 0

    def test_total(self):
        result = apply_redemption(unit_position(), total=True)

        assert result.closed
        assert result.quantity == Decimal("100")
        assert result.amount == Decimal("1200.00")

    def test_quantity_on_amount_only_position(self):
        with pytest.raises(ValueError, match="no quantity"):
            apply_redemption(amount_position(), quantity=Decimal("1"))

    def test_requires_something_to_redeem(self):
        with pytest.raises(ValueError):
            apply_redemption(unit_position())


# =============================================================================
# Revaluation and manual edits
# =============================================================================


class TestRevalue:

    def test_new_price(self):
        state = revalue(unit_position(), Decimal("15"))

        assert state.current_price == Decimal("15")
        assert state.current_value == Decimal("1500.00")
        assert state.total_invested == Decimal("1000.00")
        assert state.gain_percent == Decimal("50.0000")

    def test_rejects_zero_price(self):
        with pytest.raises(ValueError):
            revalue(unit_position(), Decimal("0"))


class TestEditPosition:

    def test_value_from_current_price(self):
        state = edit_position(Decimal("10"), Decimal("20"), current_price=Decimal("25"))

        assert state.total_invested == Decimal("200.00")
        assert state.current_value == Decimal("250.00")
        assert state.gain_percent == Decimal("25.0000")

    def test_without_quote_uses_purchase_price(self):
        state = edit_position(Decimal("10"), Decimal("20"))
        assert state.current_value == Decimal("200.00")

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValueError):
            edit_position(Decimal("0"), Decimal("20"))
