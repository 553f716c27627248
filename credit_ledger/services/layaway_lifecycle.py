# credit_ledger/services/layaway_lifecycle.py
"""
Layaway lifecycle rules.

    Reserved --(fully paid)--> Paid --(deliver)--> Delivered
    Reserved | Paid --(cancel)--> Cancelled

Delivered and Cancelled are terminal. Only ``Reserved -> Paid`` is driven by
the balance (the reconciler applies it); the other edges are explicit
actions validated here against :data:`ALLOWED_TRANSITIONS`.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import update

from credit_ledger.constants import LayawayStatus, ParentKind
from credit_ledger.db.engine import transaction
from credit_ledger.db.schema import layaways
from credit_ledger.errors import InvalidStateTransition, NotFound
from credit_ledger.services.dates import today
from credit_ledger.services.locks import parent_lock
from credit_ledger.services.reconciler import reconcile_parent

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({LayawayStatus.DELIVERED, LayawayStatus.CANCELLED})

ALLOWED_TRANSITIONS = {
    LayawayStatus.RESERVED: frozenset({LayawayStatus.PAID, LayawayStatus.CANCELLED}),
    LayawayStatus.PAID: frozenset({LayawayStatus.DELIVERED, LayawayStatus.CANCELLED}),
}


def can_transition(from_status: LayawayStatus, to_status: LayawayStatus) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def validate_transition(
    layaway_id: int, current: LayawayStatus, target: LayawayStatus
) -> None:
    if not can_transition(current, target):
        raise InvalidStateTransition(layaway_id, current.value, target.value)


def _transition(
    layaway_id: int,
    target: LayawayStatus,
    values: Dict[str, Any],
) -> Dict[str, Any]:
    with parent_lock(ParentKind.LAYAWAY, layaway_id), transaction(
        f"moving layaway {layaway_id} to {target.value}"
    ) as conn:
        # heal a stale Reserved before judging the transition
        reconciled = reconcile_parent(conn, ParentKind.LAYAWAY, layaway_id)
        if reconciled is None:
            raise NotFound(f"Layaway with ID {layaway_id} not found.")
        _, current = reconciled

        validate_transition(layaway_id, current, target)
        conn.execute(
            update(layaways)
            .where(
                layaways.c.id == layaway_id,
                layaways.c.status == current.value,
            )
            .values(status=target.value, **values)
        )

    logger.info("Layaway %s status %s -> %s", layaway_id, current.value, target.value)
    return {"id": layaway_id, "status": target, "previous_status": current, **values}


def deliver_layaway(layaway_id: int, on: Optional[date] = None) -> Dict[str, Any]:
    """Paid -> Delivered, stamping the delivery date (today by default)."""
    delivered_on = on or today()
    return _transition(
        layaway_id, LayawayStatus.DELIVERED, {"delivered_on": delivered_on}
    )


def cancel_layaway(layaway_id: int) -> Dict[str, Any]:
    return _transition(layaway_id, LayawayStatus.CANCELLED, {})
