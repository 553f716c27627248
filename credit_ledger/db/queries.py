# credit_ledger/db/queries.py
"""
Aggregate queries shared by the API and the reconciliation engine.

Totals are summed in SQL (LEFT JOIN payments, GROUP BY parent) and handed to
the balance calculator; outstanding balances are never computed in SQL.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection, RowMapping
from sqlalchemy.sql import Select

from credit_ledger.constants import ParentKind
from credit_ledger.db.schema import clients, layaways, payments, sales


def _paid_column():
    return func.coalesce(func.sum(payments.c.amount), 0).label("total_paid")


def sales_with_totals() -> Select:
    """Every sale with its client name and summed payments, newest first."""
    return (
        select(
            sales.c.id,
            sales.c.client_id,
            clients.c.name.label("client_name"),
            sales.c.product,
            sales.c.total_amount,
            sales.c.sale_date,
            sales.c.status,
            _paid_column(),
        )
        .select_from(
            sales.join(clients).outerjoin(
                payments, payments.c.sale_id == sales.c.id
            )
        )
        .group_by(sales.c.id, clients.c.name)
        .order_by(sales.c.sale_date.desc(), sales.c.id.desc())
    )


def layaways_with_totals() -> Select:
    return (
        select(
            layaways.c.id,
            layaways.c.client_id,
            clients.c.name.label("client_name"),
            layaways.c.product,
            layaways.c.total_amount,
            layaways.c.created_on,
            layaways.c.status,
            layaways.c.delivered_on,
            _paid_column(),
        )
        .select_from(
            layaways.join(clients).outerjoin(
                payments, payments.c.layaway_id == layaways.c.id
            )
        )
        .group_by(layaways.c.id, clients.c.name)
        .order_by(layaways.c.created_on.desc(), layaways.c.id.desc())
    )


def _parent_table(kind: ParentKind):
    if kind is ParentKind.SALE:
        return sales, payments.c.sale_id
    return layaways, payments.c.layaway_id


def fetch_parent_totals(
    conn: Connection, kind: ParentKind, parent_id: int
) -> Optional[RowMapping]:
    """
    ``id``, ``total_amount``, ``status`` and ``total_paid`` for one sale or
    layaway, or None when it does not exist.
    """
    table, fk = _parent_table(kind)
    stmt = (
        select(
            table.c.id,
            table.c.total_amount,
            table.c.status,
            _paid_column(),
        )
        .select_from(table.outerjoin(payments, fk == table.c.id))
        .where(table.c.id == parent_id)
        .group_by(table.c.id)
    )
    return conn.execute(stmt).mappings().first()


def payments_for(sale_id: Optional[int] = None, layaway_id: Optional[int] = None) -> Select:
    stmt = select(
        payments.c.id,
        payments.c.sale_id,
        payments.c.layaway_id,
        payments.c.amount,
        payments.c.payment_date,
        payments.c.comment,
    )
    if sale_id is not None:
        stmt = stmt.where(payments.c.sale_id == sale_id)
    if layaway_id is not None:
        stmt = stmt.where(payments.c.layaway_id == layaway_id)
    return stmt.order_by(payments.c.payment_date.desc(), payments.c.id.desc())
