# credit_ledger/models/sales.py

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from credit_ledger.constants import SaleStatus


class SaleCreate(BaseModel):
    client_id: int
    product: str = Field(..., min_length=1)
    total_amount: Decimal = Field(..., gt=0)
    sale_date: str = Field(..., description="YYYY-MM-DD")


class SaleDateUpdate(BaseModel):
    sale_date: str = Field(..., description="YYYY-MM-DD")


class SaleOut(BaseModel):
    id: int
    client_id: int
    client_name: str
    product: str
    total_amount: Decimal
    sale_date: date
    status: SaleStatus
    total_paid: Decimal
    outstanding_balance: Decimal

    class Config:
        from_attributes = True


class SaleDateOut(BaseModel):
    id: int
    sale_date: date
    message: str
