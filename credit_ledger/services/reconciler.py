# credit_ledger/services/reconciler.py
"""
Status reconciler.

A sale's status is a cached projection of its balance; a layaway only gets
the balance-driven ``Reserved -> Paid`` edge, while delivery and cancellation
are actions (see :mod:`credit_ledger.services.layaway_lifecycle`) that a
recomputation never undoes.

Writes are conditional on the stored value still being stale, so running the
reconciler twice with the same balance performs at most one effective write.
"""

import logging
from typing import Dict, Optional, Tuple, Union

from sqlalchemy import update
from sqlalchemy.engine import Connection

from credit_ledger.constants import LayawayStatus, ParentKind, SaleStatus
from credit_ledger.db.engine import transaction
from credit_ledger.db.queries import fetch_parent_totals
from credit_ledger.db.schema import layaways, sales
from credit_ledger.errors import StorageFailure
from credit_ledger.services.balance import Balance, balance_from_totals
from credit_ledger.services.locks import parent_lock

logger = logging.getLogger(__name__)


def sale_status_for(balance: Balance) -> SaleStatus:
    return SaleStatus.PAID if balance.is_fully_paid else SaleStatus.PENDING


def layaway_status_for(current: LayawayStatus, balance: Balance) -> LayawayStatus:
    if current is LayawayStatus.RESERVED and balance.is_fully_paid:
        return LayawayStatus.PAID
    return current


def apply_sale_status(conn: Connection, sale_id: int, status: SaleStatus) -> bool:
    """Returns True when a row actually changed."""
    result = conn.execute(
        update(sales)
        .where(sales.c.id == sale_id, sales.c.status != status.value)
        .values(status=status.value)
    )
    return result.rowcount > 0


def apply_layaway_paid(conn: Connection, layaway_id: int) -> bool:
    result = conn.execute(
        update(layaways)
        .where(
            layaways.c.id == layaway_id,
            layaways.c.status == LayawayStatus.RESERVED.value,
        )
        .values(status=LayawayStatus.PAID.value)
    )
    return result.rowcount > 0


def reconcile_sale(
    conn: Connection, sale_id: int, current: str, balance: Balance
) -> SaleStatus:
    target = sale_status_for(balance)
    if current != target.value and apply_sale_status(conn, sale_id, target):
        logger.info("Sale %s status %s -> %s", sale_id, current, target.value)
    return target


def reconcile_layaway(
    conn: Connection, layaway_id: int, current: str, balance: Balance
) -> LayawayStatus:
    status = LayawayStatus(current)
    target = layaway_status_for(status, balance)
    if target is not status and apply_layaway_paid(conn, layaway_id):
        logger.info("Layaway %s status %s -> %s", layaway_id, current, target.value)
    return target


def reconcile_parent(
    conn: Connection, kind: ParentKind, parent_id: int
) -> Optional[Tuple[Balance, Union[SaleStatus, LayawayStatus]]]:
    """
    Recompute one parent's balance from the store and bring its status in
    line. Returns ``(balance, status)`` or None when the parent is gone.
    """
    row = fetch_parent_totals(conn, kind, parent_id)
    if row is None:
        return None
    balance = balance_from_totals(row["total_amount"], row["total_paid"])
    if kind is ParentKind.SALE:
        status: Union[SaleStatus, LayawayStatus] = reconcile_sale(
            conn, parent_id, row["status"], balance
        )
    else:
        status = reconcile_layaway(conn, parent_id, row["status"], balance)
    return balance, status


def persist_sale_statuses(stale: Dict[int, SaleStatus]) -> int:
    """
    Best-effort write-back after a read. The ids come from the read's
    snapshot, but each status is re-derived from live totals under the
    sale's lock, so a payment admitted in between is never undone. Each
    record gets its own transaction; failures are logged and left for the
    next read to heal.
    """
    written = 0
    for sale_id, status in stale.items():
        try:
            with parent_lock(ParentKind.SALE, sale_id), transaction(
                "reconciling sale status"
            ) as conn:
                row = fetch_parent_totals(conn, ParentKind.SALE, sale_id)
                if row is None:
                    continue
                balance = balance_from_totals(row["total_amount"], row["total_paid"])
                target = sale_status_for(balance)
                if row["status"] != target.value and apply_sale_status(conn, sale_id, target):
                    written += 1
                    logger.info("Sale %s status %s -> %s", sale_id, row["status"], target.value)
        except StorageFailure as exc:
            logger.warning(
                "Could not persist status %s for sale %s: %s",
                status.value, sale_id, exc,
            )
    return written


def persist_layaway_statuses(stale: Dict[int, LayawayStatus]) -> int:
    written = 0
    for layaway_id, status in stale.items():
        if status is not LayawayStatus.PAID:
            continue
        try:
            with parent_lock(ParentKind.LAYAWAY, layaway_id), transaction(
                "reconciling layaway status"
            ) as conn:
                row = fetch_parent_totals(conn, ParentKind.LAYAWAY, layaway_id)
                if row is None:
                    continue
                balance = balance_from_totals(row["total_amount"], row["total_paid"])
                current = LayawayStatus(row["status"])
                if layaway_status_for(current, balance) is not current and apply_layaway_paid(conn, layaway_id):
                    written += 1
                    logger.info("Layaway %s status %s -> Paid", layaway_id, current.value)
        except StorageFailure as exc:
            logger.warning(
                "Could not persist status %s for layaway %s: %s",
                status.value, layaway_id, exc,
            )
    return written
