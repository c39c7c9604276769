"""Position arithmetic - applications, redemptions and revaluations.

Pure functions over a PositionState. Nothing here touches the database;
services.investments loads rows, calls these and writes the result back.

Rules:
1. gain_percent = (current_value - total_invested) / total_invested * 100, 0 when nothing invested
2. An application with a quantity recomputes the quantity-weighted average purchase price
3. A redemption reduces quantity, value and cost basis by the same ratio (q/Q or amount/V)
4. A position whose remaining quantity or value is <= 0 is closed (the row gets deleted)
"""

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
PRICE_STEP = Decimal("0.00000001")
PERCENT_STEP = Decimal("0.0001")
ZERO = Decimal("0")


def money(value: Decimal) -> Decimal:
    """Round to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_STEP, rounding=ROUND_HALF_UP)


@dataclass
class PositionState:
    """The numeric fields of a position."""

    quantity: Decimal | None
    purchase_price: Decimal | None
    current_price: Decimal | None
    total_invested: Decimal
    current_value: Decimal
    gain_percent: Decimal = ZERO


@dataclass
class ApplicationResult:
    """Outcome of adding money to a position."""

    state: PositionState
    quantity: Decimal | None  # Units added
    unit_price: Decimal
    amount: Decimal  # Cash put in


@dataclass
class RedemptionResult:
    """Outcome of taking money out of a position."""

    state: PositionState | None  # None when the position was closed
    quantity: Decimal | None  # Units redeemed
    unit_price: Decimal | None
    amount: Decimal  # Cash received
    closed: bool


def calculate_gain_percent(current_value: Decimal, total_invested: Decimal) -> Decimal:
    """Gain over cost basis, in percent."""
    if total_invested <= 0:
        return ZERO
    return ((current_value - total_invested) / total_invested * 100).quantize(
        PERCENT_STEP, rounding=ROUND_HALF_UP
    )


def _with_gain(state: PositionState) -> PositionState:
    state.gain_percent = calculate_gain_percent(state.current_value, state.total_invested)
    return state


def open_position(
    quantity: Decimal,
    purchase_price: Decimal,
    market_price: Decimal | None = None,
    total_invested: Decimal | None = None,
) -> PositionState:
    """Build the state of a brand-new position.

    Args:
        quantity: Units bought
        purchase_price: Price paid per unit
        market_price: Current quote, defaults to the purchase price
        total_invested: Cost basis when it differs from quantity * price (fees)

    Raises:
        ValueError: If quantity or price is not positive
    """
    if quantity <= 0:
        raise ValueError("Quantity must be positive")
    if purchase_price <= 0:
        raise ValueError("Purchase price must be positive")

    price_now = market_price if market_price is not None and market_price > 0 else purchase_price
    invested = total_invested if total_invested is not None else quantity * purchase_price

    return _with_gain(
        PositionState(
            quantity=quantity,
            purchase_price=_price(purchase_price),
            current_price=_price(price_now),
            total_invested=money(invested),
            current_value=money(quantity * price_now),
        )
    )


def open_amount_position(amount: Decimal, current_value: Decimal | None = None) -> PositionState:
    """Build a position tracked by amount only (no units)."""
    if amount <= 0:
        raise ValueError("Amount must be positive")
    value = current_value if current_value is not None else amount
    if value < 0:
        raise ValueError("Current value cannot be negative")
    return _with_gain(
        PositionState(
            quantity=None,
            purchase_price=None,
            current_price=None,
            total_invested=money(amount),
            current_value=money(value),
        )
    )


def apply_application(
    state: PositionState,
    quantity: Decimal | None = None,
    unit_price: Decimal | None = None,
    amount: Decimal | None = None,
) -> ApplicationResult:
    """Add a contribution to an existing position.

    With a quantity the position gains units: the added value is
    quantity * unit_price and the purchase price becomes the weighted
    average. Without one (amount-only assets) value and cost basis both
    grow by the amount.

    Raises:
        ValueError: If neither a positive quantity nor a positive amount is given
    """
    if quantity is not None and quantity <= 0:
        raise ValueError("Quantity must be positive")
    if amount is not None and amount <= 0:
        raise ValueError("Amount must be positive")
    if quantity is None and amount is None:
        raise ValueError("Provide a quantity or an amount")

    if quantity is None:
        # Amount-only contribution
        new_state = replace(
            state,
            total_invested=money(state.total_invested + amount),
            current_value=money(state.current_value + amount),
        )
        price = unit_price if unit_price is not None else amount
        return ApplicationResult(
            state=_with_gain(new_state), quantity=None, unit_price=price, amount=money(amount)
        )

    if unit_price is None or unit_price <= 0:
        if amount is not None:
            unit_price = amount / quantity
        elif state.purchase_price:
            unit_price = state.purchase_price
        elif state.current_price:
            unit_price = state.current_price
        else:
            raise ValueError("Unit price is required for this position")

    paid = amount if amount is not None else quantity * unit_price
    old_quantity = state.quantity or ZERO
    new_quantity = old_quantity + quantity
    new_value = state.current_value + quantity * unit_price
    new_invested = state.total_invested + paid

    if state.purchase_price is not None and old_quantity > 0:
        average_price = (old_quantity * state.purchase_price + quantity * unit_price) / new_quantity
    else:
        average_price = new_invested / new_quantity

    new_state = PositionState(
        quantity=new_quantity,
        purchase_price=_price(average_price),
        current_price=_price(new_value / new_quantity),
        total_invested=money(new_invested),
        current_value=money(new_value),
    )
    return ApplicationResult(
        state=_with_gain(new_state),
        quantity=quantity,
        unit_price=_price(unit_price),
        amount=money(paid),
    )


def apply_redemption(
    state: PositionState,
    quantity: Decimal | None = None,
    amount: Decimal | None = None,
    total: bool = False,
) -> RedemptionResult:
    """Take money out of a position.

    The redeemed fraction is quantity / position quantity when a quantity
    is given, otherwise amount / position value. Quantity, value and cost
    basis all shrink by that fraction, so the remaining value is
    V * (1 - q/Q). When a quantity is given, amount is the gross cash
    received (defaults to the proportional value).

    Raises:
        ValueError: If the redemption cannot be computed for this position
    """
    if total:
        unit_price = None
        if state.quantity:
            unit_price = _price(state.current_value / state.quantity)
        return RedemptionResult(
            state=None,
            quantity=state.quantity,
            unit_price=unit_price,
            amount=money(amount if amount is not None else state.current_value),
            closed=True,
        )

    if quantity is not None and quantity <= 0:
        raise ValueError("Quantity must be positive")
    if amount is not None and amount <= 0:
        raise ValueError("Amount must be positive")

    if quantity is not None:
        if not state.quantity:
            raise ValueError("Position has no quantity; redeem by amount instead")
        redeemed_quantity = min(quantity, state.quantity)
        ratio = redeemed_quantity / state.quantity
    elif amount is not None:
        if state.current_value <= 0:
            raise ValueError("Position has no value to redeem")
        ratio = min(amount / state.current_value, Decimal("1"))
        redeemed_quantity = state.quantity * ratio if state.quantity else None
    else:
        raise ValueError("Provide a quantity or an amount")

    redeemed_value = amount if amount is not None else state.current_value * ratio
    unit_price = None
    if redeemed_quantity:
        unit_price = _price(redeemed_value / redeemed_quantity)

    # Stored at column scale: cents for value, 8 places for quantity
    remaining_value = money(state.current_value * (1 - ratio))
    remaining_quantity = None
    if state.quantity:
        remaining_quantity = _price(state.quantity - redeemed_quantity)

    closed = remaining_value <= 0 or (remaining_quantity is not None and remaining_quantity <= 0)
    if closed:
        # Any dust left behind leaves with the rest
        return RedemptionResult(
            state=None,
            quantity=state.quantity,
            unit_price=unit_price,
            amount=money(redeemed_value),
            closed=True,
        )

    new_state = PositionState(
        quantity=remaining_quantity,
        purchase_price=state.purchase_price,
        current_price=(
            _price(remaining_value / remaining_quantity)
            if remaining_quantity
            else state.current_price
        ),
        total_invested=money(max(ZERO, state.total_invested * (1 - ratio))),
        current_value=remaining_value,
    )
    return RedemptionResult(
        state=_with_gain(new_state),
        quantity=redeemed_quantity,
        unit_price=unit_price,
        amount=money(redeemed_value),
        closed=False,
    )


def revalue(state: PositionState, price: Decimal) -> PositionState:
    """Mark a position to market at a new unit price."""
    if price <= 0:
        raise ValueError("Price must be positive")
    units = state.quantity if state.quantity else Decimal("1")
    return _with_gain(
        replace(state, current_price=_price(price), current_value=money(units * price))
    )


def edit_position(
    quantity: Decimal,
    purchase_price: Decimal,
    current_price: Decimal | None = None,
    total_invested: Decimal | None = None,
) -> PositionState:
    """Rebuild a position from manually corrected figures.

    Value is quantity * current price (the purchase price when no quote);
    cost basis defaults to quantity * purchase price.
    """
    if quantity <= 0:
        raise ValueError("Quantity must be positive")
    if purchase_price < 0:
        raise ValueError("Purchase price cannot be negative")

    price_now = current_price if current_price else purchase_price
    invested = total_invested if total_invested is not None else quantity * purchase_price
    return _with_gain(
        PositionState(
            quantity=quantity,
            purchase_price=_price(purchase_price),
            current_price=_price(price_now),
            total_invested=money(invested),
            current_value=money(quantity * price_now),
        )
    )
