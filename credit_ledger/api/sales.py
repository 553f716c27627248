# credit_ledger/api/sales.py

import logging
from typing import Dict, List

from fastapi import APIRouter
from sqlalchemy import delete, select, update

from credit_ledger.constants import SaleStatus
from credit_ledger.db.engine import connection, transaction
from credit_ledger.db.queries import sales_with_totals
from credit_ledger.db.schema import clients, sales
from credit_ledger.errors import NotFound, ValidationError
from credit_ledger.models.clients import DeletedOut
from credit_ledger.models.sales import SaleCreate, SaleDateOut, SaleDateUpdate, SaleOut
from credit_ledger.services.balance import balance_from_totals, to_positive_money
from credit_ledger.services.dates import parse_iso_date
from credit_ledger.services.reconciler import persist_sale_statuses, sale_status_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["sales"])


def _reconciled(rows) -> List[SaleOut]:
    """
    Derive each sale's status from its balance and write back the stale ones.
    The response carries the derived status even if the write-back fails.
    """
    items: List[SaleOut] = []
    stale: Dict[int, SaleStatus] = {}

    for row in rows:
        balance = balance_from_totals(row["total_amount"], row["total_paid"])
        status = sale_status_for(balance)
        if status.value != row["status"]:
            stale[row["id"]] = status

        items.append(
            SaleOut(
                id=row["id"],
                client_id=row["client_id"],
                client_name=row["client_name"],
                product=row["product"],
                total_amount=balance.total_amount,
                sale_date=row["sale_date"],
                status=status,
                total_paid=balance.total_paid,
                outstanding_balance=balance.outstanding_balance,
            )
        )

    if stale:
        persist_sale_statuses(stale)
    return items


@router.get("/", response_model=List[SaleOut])
def list_sales() -> List[SaleOut]:
    """
    All sales with total paid and outstanding balance, newest first.
    """
    with connection("fetching sales") as conn:
        rows = conn.execute(sales_with_totals()).mappings().all()

    return _reconciled(rows)


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: int) -> SaleOut:
    with connection("fetching sale") as conn:
        row = conn.execute(
            sales_with_totals().where(sales.c.id == sale_id)
        ).mappings().first()

    if row is None:
        raise NotFound("Sale not found.")

    return _reconciled([row])[0]


@router.post("/", response_model=SaleOut, status_code=201)
def create_sale(payload: SaleCreate) -> SaleOut:
    product = payload.product.strip()
    if not product:
        raise ValidationError("Product is required.", field="product")
    total_amount = to_positive_money(payload.total_amount, "total_amount")
    sale_date = parse_iso_date(payload.sale_date, "sale_date")

    with transaction("adding sale") as conn:
        client_name = conn.execute(
            select(clients.c.name).where(clients.c.id == payload.client_id)
        ).scalar_one_or_none()
        if client_name is None:
            raise NotFound(f"Client with ID {payload.client_id} not found.")

        result = conn.execute(
            sales.insert().values(
                client_id=payload.client_id,
                product=product,
                total_amount=total_amount,
                sale_date=sale_date,
                status=SaleStatus.PENDING.value,
            )
        )
        sale_id = result.inserted_primary_key[0]

    logger.info("Sale %s created for client %s (%s)", sale_id, payload.client_id, total_amount)
    return SaleOut(
        id=sale_id,
        client_id=payload.client_id,
        client_name=client_name,
        product=product,
        total_amount=total_amount,
        sale_date=sale_date,
        status=SaleStatus.PENDING,
        total_paid=0,
        outstanding_balance=total_amount,
    )


@router.put("/{sale_id}/date", response_model=SaleDateOut)
def update_sale_date(sale_id: int, payload: SaleDateUpdate) -> SaleDateOut:
    sale_date = parse_iso_date(payload.sale_date, "sale_date")

    with transaction("updating sale date") as conn:
        result = conn.execute(
            update(sales).where(sales.c.id == sale_id).values(sale_date=sale_date)
        )
        if result.rowcount == 0:
            raise NotFound("Sale not found.")

    return SaleDateOut(id=sale_id, sale_date=sale_date, message="Sale date updated.")


@router.delete("/{sale_id}", response_model=DeletedOut)
def delete_sale(sale_id: int) -> DeletedOut:
    # payments go with it (ON DELETE CASCADE)
    with transaction("deleting sale") as conn:
        result = conn.execute(delete(sales).where(sales.c.id == sale_id))
        if result.rowcount == 0:
            raise NotFound("Sale not found.")

    logger.info("Sale %s deleted", sale_id)
    return DeletedOut(id=sale_id, message=f"Sale #{sale_id} deleted.")
