# credit_ledger/services/admission.py
"""
Payment admission control.

A payment is admitted only if it targets exactly one existing sale or
layaway and does not exceed that parent's outstanding balance. The balance
check, the insert, and the status reconciliation after it run as one unit:
under the parent's lock and inside a single transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Tuple, Union

from credit_ledger.constants import LayawayStatus, ParentKind, SaleStatus
from credit_ledger.db.engine import transaction
from credit_ledger.db.queries import fetch_parent_totals
from credit_ledger.db.schema import payments
from credit_ledger.errors import NotFound, OverpaymentError, ValidationError
from credit_ledger.services.balance import (
    Balance,
    balance_from_totals,
    to_positive_money,
)
from credit_ledger.services.dates import parse_iso_date
from credit_ledger.services.locks import parent_lock
from credit_ledger.services.reconciler import reconcile_parent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentRequest:
    amount: Any
    payment_date: Any
    sale_id: Optional[int] = None
    layaway_id: Optional[int] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class AdmittedPayment:
    id: int
    sale_id: Optional[int]
    layaway_id: Optional[int]
    amount: Decimal
    payment_date: date
    comment: Optional[str]
    balance: Balance
    parent_status: Union[SaleStatus, LayawayStatus]


def resolve_parent(request: PaymentRequest) -> Tuple[ParentKind, int]:
    has_sale = request.sale_id is not None
    has_layaway = request.layaway_id is not None
    if has_sale == has_layaway:
        raise ValidationError(
            "Payment must be linked to either a sale_id OR a layaway_id, "
            "but not both or neither."
        )
    if has_sale:
        return ParentKind.SALE, int(request.sale_id)
    return ParentKind.LAYAWAY, int(request.layaway_id)


def admit_payment(request: PaymentRequest) -> AdmittedPayment:
    kind, parent_id = resolve_parent(request)
    amount = to_positive_money(request.amount, "amount")
    payment_date = parse_iso_date(request.payment_date, "payment_date")
    comment = request.comment or None

    with parent_lock(kind, parent_id), transaction(
        f"admitting payment for {kind.value} {parent_id}"
    ) as conn:
        row = fetch_parent_totals(conn, kind, parent_id)
        if row is None:
            raise NotFound(f"{kind.label} with ID {parent_id} not found.")

        before = balance_from_totals(row["total_amount"], row["total_paid"])
        if before.would_overpay(amount):
            raise OverpaymentError(
                amount, before.raw_outstanding, kind.value, parent_id
            )

        values = {
            "sale_id": parent_id if kind is ParentKind.SALE else None,
            "layaway_id": parent_id if kind is ParentKind.LAYAWAY else None,
            "amount": amount,
            "payment_date": payment_date,
            "comment": comment,
        }
        result = conn.execute(payments.insert().values(**values))
        payment_id = result.inserted_primary_key[0]

        after, status = reconcile_parent(conn, kind, parent_id)

    logger.info(
        "Payment %s of %s admitted for %s %s (outstanding %s, status %s)",
        payment_id, amount, kind.value, parent_id,
        after.outstanding_balance, status.value,
    )
    return AdmittedPayment(
        id=payment_id,
        balance=after,
        parent_status=status,
        **values,
    )
