# credit_ledger/api/layaways.py

import logging
from typing import Dict, List

from fastapi import APIRouter
from sqlalchemy import delete, select, update

from credit_ledger.constants import LayawayStatus
from credit_ledger.db.engine import connection, transaction
from credit_ledger.db.queries import layaways_with_totals
from credit_ledger.db.schema import clients, layaways
from credit_ledger.errors import NotFound, ValidationError
from credit_ledger.models.clients import DeletedOut
from credit_ledger.models.layaways import (
    LayawayCreate,
    LayawayDateOut,
    LayawayDateUpdate,
    LayawayOut,
    LayawayTransitionOut,
)
from credit_ledger.services.balance import balance_from_totals, to_positive_money
from credit_ledger.services.dates import parse_iso_date, parse_optional_date, today
from credit_ledger.services.layaway_lifecycle import cancel_layaway, deliver_layaway
from credit_ledger.services.reconciler import layaway_status_for, persist_layaway_statuses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/layaways", tags=["layaways"])


def _reconciled(rows) -> List[LayawayOut]:
    items: List[LayawayOut] = []
    stale: Dict[int, LayawayStatus] = {}

    for row in rows:
        balance = balance_from_totals(row["total_amount"], row["total_paid"])
        current = LayawayStatus(row["status"])
        status = layaway_status_for(current, balance)
        if status is not current:
            stale[row["id"]] = status

        items.append(
            LayawayOut(
                id=row["id"],
                client_id=row["client_id"],
                client_name=row["client_name"],
                product=row["product"],
                total_amount=balance.total_amount,
                created_on=row["created_on"],
                status=status,
                delivered_on=row["delivered_on"],
                total_paid=balance.total_paid,
                outstanding_balance=balance.outstanding_balance,
            )
        )

    if stale:
        persist_layaway_statuses(stale)
    return items


@router.get("/", response_model=List[LayawayOut])
def list_layaways() -> List[LayawayOut]:
    """
    All layaways with total paid and outstanding balance, newest first.
    Fully paid layaways still marked Reserved are moved to Paid on the way out.
    """
    with connection("fetching layaways") as conn:
        rows = conn.execute(layaways_with_totals()).mappings().all()

    return _reconciled(rows)


@router.get("/{layaway_id}", response_model=LayawayOut)
def get_layaway(layaway_id: int) -> LayawayOut:
    with connection("fetching layaway") as conn:
        row = conn.execute(
            layaways_with_totals().where(layaways.c.id == layaway_id)
        ).mappings().first()

    if row is None:
        raise NotFound("Layaway not found.")

    return _reconciled([row])[0]


@router.post("/", response_model=LayawayOut, status_code=201)
def create_layaway(payload: LayawayCreate) -> LayawayOut:
    product = payload.product.strip()
    if not product:
        raise ValidationError("Product is required.", field="product")
    total_amount = to_positive_money(payload.total_amount, "total_amount")
    created_on = parse_optional_date(payload.created_on, "created_on") or today()

    with transaction("creating layaway") as conn:
        client_name = conn.execute(
            select(clients.c.name).where(clients.c.id == payload.client_id)
        ).scalar_one_or_none()
        if client_name is None:
            raise NotFound(f"Client with ID {payload.client_id} not found.")

        result = conn.execute(
            layaways.insert().values(
                client_id=payload.client_id,
                product=product,
                total_amount=total_amount,
                created_on=created_on,
                status=LayawayStatus.RESERVED.value,
            )
        )
        layaway_id = result.inserted_primary_key[0]

    logger.info("Layaway %s created for client %s (%s)", layaway_id, payload.client_id, total_amount)
    return LayawayOut(
        id=layaway_id,
        client_id=payload.client_id,
        client_name=client_name,
        product=product,
        total_amount=total_amount,
        created_on=created_on,
        status=LayawayStatus.RESERVED,
        delivered_on=None,
        total_paid=0,
        outstanding_balance=total_amount,
    )


@router.put("/{layaway_id}/deliver", response_model=LayawayTransitionOut)
def deliver(layaway_id: int) -> LayawayTransitionOut:
    result = deliver_layaway(layaway_id)
    return LayawayTransitionOut(message="Layaway marked as delivered.", **result)


@router.put("/{layaway_id}/cancel", response_model=LayawayTransitionOut)
def cancel(layaway_id: int) -> LayawayTransitionOut:
    result = cancel_layaway(layaway_id)
    return LayawayTransitionOut(message="Layaway cancelled.", **result)


@router.put("/{layaway_id}/date", response_model=LayawayDateOut)
def update_layaway_date(layaway_id: int, payload: LayawayDateUpdate) -> LayawayDateOut:
    created_on = parse_iso_date(payload.created_on, "created_on")

    with transaction("updating layaway date") as conn:
        result = conn.execute(
            update(layaways)
            .where(layaways.c.id == layaway_id)
            .values(created_on=created_on)
        )
        if result.rowcount == 0:
            raise NotFound("Layaway not found.")

    return LayawayDateOut(
        id=layaway_id, created_on=created_on, message="Layaway creation date updated."
    )


@router.delete("/{layaway_id}", response_model=DeletedOut)
def delete_layaway(layaway_id: int) -> DeletedOut:
    with transaction("deleting layaway") as conn:
        result = conn.execute(delete(layaways).where(layaways.c.id == layaway_id))
        if result.rowcount == 0:
            raise NotFound("Layaway not found.")

    logger.info("Layaway %s deleted", layaway_id)
    return DeletedOut(id=layaway_id, message=f"Layaway #{layaway_id} deleted.")
