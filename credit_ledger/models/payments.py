# credit_ledger/models/payments.py

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    # exactly one of sale_id / layaway_id; checked by admission control
    sale_id: Optional[int] = None
    layaway_id: Optional[int] = None
    amount: Decimal
    payment_date: str = Field(..., description="YYYY-MM-DD")
    comment: Optional[str] = None


class PaymentOut(BaseModel):
    id: int
    sale_id: Optional[int] = None
    layaway_id: Optional[int] = None
    amount: Decimal
    payment_date: date
    comment: Optional[str] = None

    class Config:
        from_attributes = True


class AdmittedPaymentOut(PaymentOut):
    parent_status: str
    parent_total_paid: Decimal
    parent_outstanding_balance: Decimal
