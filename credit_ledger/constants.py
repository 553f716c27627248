# credit_ledger/constants.py

from enum import Enum


class SaleStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"


class LayawayStatus(str, Enum):
    RESERVED = "Reserved"
    PAID = "Paid"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ParentKind(str, Enum):
    """What a payment is applied to."""

    SALE = "sale"
    LAYAWAY = "layaway"

    @property
    def label(self) -> str:
        return self.value.capitalize()
