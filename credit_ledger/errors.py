# credit_ledger/errors.py
"""
Typed failures raised by the ledger core.

Each error knows the HTTP status it maps to; the FastAPI app turns them into
``{"code", "detail", "fields"}`` responses. Nothing here is retried.
"""

from typing import Any, Dict


class LedgerError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class ValidationError(LedgerError):
    """Malformed or missing input."""

    code = "validation_error"


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"


class OverpaymentError(LedgerError):
    code = "overpayment"

    def __init__(self, amount, outstanding_balance, parent: str, parent_id: int) -> None:
        super().__init__(
            f"Payment amount ({amount}) exceeds remaining balance "
            f"({outstanding_balance:.2f}) for {parent} {parent_id}.",
            amount=amount,
            outstanding_balance=outstanding_balance,
            parent=parent,
            parent_id=parent_id,
        )
        self.amount = amount
        self.outstanding_balance = outstanding_balance


class InvalidStateTransition(LedgerError):
    code = "invalid_state_transition"

    def __init__(self, layaway_id: int, current_status: str, target_status: str) -> None:
        super().__init__(
            f"Layaway {layaway_id} cannot move from '{current_status}' to "
            f"'{target_status}'. Current status: {current_status}",
            current_status=current_status,
            target_status=target_status,
        )
        self.current_status = current_status
        self.target_status = target_status


class ConflictError(LedgerError):
    status_code = 409
    code = "conflict"


class StorageFailure(LedgerError):
    status_code = 500
    code = "storage_failure"
