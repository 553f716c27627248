# credit_ledger/services/balance.py
"""
Balance calculator for sales and layaways.

Pure functions only: the callers fetch ``total_amount`` and the payment
amounts (or their SQL sum) and get back a :class:`Balance`. Every "is it
paid?" comparison goes through :data:`EPSILON` so float drift from the
store never leaves a record stuck one ten-thousandth short.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from credit_ledger.errors import ValidationError

EPSILON = Decimal("0.001")
MONEY_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0")
# Numeric(18, 4): 14 integer digits
MAX_AMOUNT = Decimal(10) ** 14


def quantize(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Parse a caller-supplied amount. Rejects bools, text, NaN and infinity."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.", field=field)
    try:
        # str() keeps floats like 100.0005 from picking up binary noise
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number.", field=field)
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(
            f"{field} must be less than {MAX_AMOUNT:,.0f}.", field=field
        )
    return quantize(amount)


def to_positive_money(value: Any, field: str = "amount") -> Decimal:
    amount = to_money(value, field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be a positive number.", field=field)
    return amount


def _stored(value: Optional[Any]) -> Decimal:
    # values read back from the store: Decimal, float, int or NULL
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return quantize(value)
    return quantize(Decimal(str(value)))


@dataclass(frozen=True)
class Balance:
    total_amount: Decimal
    total_paid: Decimal
    raw_outstanding: Decimal

    @property
    def outstanding_balance(self) -> Decimal:
        """Outstanding amount, floored at zero."""
        return self.raw_outstanding if self.raw_outstanding > ZERO else ZERO

    @property
    def is_fully_paid(self) -> bool:
        return is_fully_paid(self.raw_outstanding)

    def would_overpay(self, amount: Decimal) -> bool:
        return exceeds_balance(amount, self.raw_outstanding)


def balance_from_totals(total_amount: Any, total_paid: Optional[Any]) -> Balance:
    total = _stored(total_amount)
    paid = _stored(total_paid)
    return Balance(total_amount=total, total_paid=paid, raw_outstanding=total - paid)


def compute_balance(total_amount: Any, payment_amounts: Iterable[Any]) -> Balance:
    paid = sum((_stored(amount) for amount in payment_amounts), ZERO)
    return balance_from_totals(total_amount, paid)


def is_fully_paid(outstanding: Decimal) -> bool:
    return outstanding <= EPSILON


def exceeds_balance(amount: Decimal, outstanding: Decimal) -> bool:
    # overage strictly below EPSILON is absorbed, EPSILON or more is rejected
    return amount - outstanding >= EPSILON
