"""
Payment tendering against a cart total.

Tendered amounts are whole Bolivianos. Change is only ever given back from
the cash portion of a payment.
"""
from decimal import Decimal

from .errors import InsufficientPaymentError, InvalidPaymentError
from .logging_config import get_logger
from .pricing import ZERO, round_bs
from .schemas.sale import PaymentMethod, PaymentRequest, PaymentReceipt

logger = get_logger("payment")


def _amount(value) -> Decimal:
    return round_bs(value) if value is not None else ZERO


def tender(total: Decimal, request: PaymentRequest) -> PaymentReceipt:
    """Validate a payment and work out the change."""
    total = round_bs(total)
    method = request.method

    if method == PaymentMethod.CASH:
        cash = _amount(request.cash_amount)
        if cash < total:
            raise InsufficientPaymentError(total, cash)
        return PaymentReceipt(
            method=method, total=total, cash_amount=cash, change_amount=cash - total
        )

    if method == PaymentMethod.CARD:
        return PaymentReceipt(method=method, total=total, card_amount=total, change_amount=ZERO)

    if method == PaymentMethod.TRANSFER:
        return PaymentReceipt(method=method, total=total, transfer_amount=total, change_amount=ZERO)

    # MIXED
    cash = _amount(request.cash_amount)
    card = _amount(request.card_amount)
    transfer = _amount(request.transfer_amount)
    tendered = cash + card + transfer
    if tendered < total:
        raise InsufficientPaymentError(total, tendered)

    change = tendered - total
    if change > cash:
        raise InvalidPaymentError("Card and transfer amounts cannot exceed the total", card + transfer, total)
    logger.debug(f"[PAY] Mixed payment cash={cash} card={card} transfer={transfer} change={change}")
    return PaymentReceipt(
        method=method,
        total=total,
        cash_amount=cash,
        card_amount=card,
        transfer_amount=transfer,
        change_amount=change,
    )
