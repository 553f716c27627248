# credit_ledger/api/payments.py

from typing import List, Optional

from fastapi import APIRouter, Query

from credit_ledger.db.engine import connection
from credit_ledger.db.queries import payments_for
from credit_ledger.models.payments import AdmittedPaymentOut, PaymentCreate, PaymentOut
from credit_ledger.services.admission import PaymentRequest, admit_payment

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=List[PaymentOut])
def list_payments(
    sale_id: Optional[int] = Query(default=None, description="Only payments for this sale"),
    layaway_id: Optional[int] = Query(default=None, description="Only payments for this layaway"),
) -> List[PaymentOut]:
    """
    Payments, newest first, optionally filtered by sale and/or layaway.
    """
    with connection("fetching payments") as conn:
        rows = conn.execute(payments_for(sale_id, layaway_id)).mappings().all()

    return [PaymentOut(**row) for row in rows]


@router.post("/", response_model=AdmittedPaymentOut, status_code=201)
def create_payment(payload: PaymentCreate) -> AdmittedPaymentOut:
    """
    Record a payment against exactly one sale or layaway. Rejected when it
    would overpay the outstanding balance.
    """
    admitted = admit_payment(
        PaymentRequest(
            sale_id=payload.sale_id,
            layaway_id=payload.layaway_id,
            amount=payload.amount,
            payment_date=payload.payment_date,
            comment=payload.comment,
        )
    )

    return AdmittedPaymentOut(
        id=admitted.id,
        sale_id=admitted.sale_id,
        layaway_id=admitted.layaway_id,
        amount=admitted.amount,
        payment_date=admitted.payment_date,
        comment=admitted.comment,
        parent_status=admitted.parent_status.value,
        parent_total_paid=admitted.balance.total_paid,
        parent_outstanding_balance=admitted.balance.outstanding_balance,
    )
