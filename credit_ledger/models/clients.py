# credit_ledger/models/clients.py

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    identifier: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class ClientContactUpdate(BaseModel):
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class ClientOut(BaseModel):
    id: int
    name: str
    identifier: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None

    class Config:
        from_attributes = True


class DeletedOut(BaseModel):
    id: int
    message: str
