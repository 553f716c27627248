# credit_ledger/models/layaways.py

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from credit_ledger.constants import LayawayStatus


class LayawayCreate(BaseModel):
    client_id: int
    product: str = Field(..., min_length=1)
    total_amount: Decimal = Field(..., gt=0)
    created_on: Optional[str] = Field(
        default=None, description="YYYY-MM-DD; defaults to today"
    )


class LayawayDateUpdate(BaseModel):
    created_on: str = Field(..., description="YYYY-MM-DD")


class LayawayOut(BaseModel):
    id: int
    client_id: int
    client_name: str
    product: str
    total_amount: Decimal
    created_on: date
    status: LayawayStatus
    delivered_on: Optional[date] = None
    total_paid: Decimal
    outstanding_balance: Decimal

    class Config:
        from_attributes = True


class LayawayTransitionOut(BaseModel):
    id: int
    status: LayawayStatus
    previous_status: LayawayStatus
    delivered_on: Optional[date] = None
    message: str


class LayawayDateOut(BaseModel):
    id: int
    created_on: date
    message: str
