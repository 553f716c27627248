# credit_ledger/api/clients.py

import logging
from typing import List

from fastapi import APIRouter
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from credit_ledger.db.engine import connection, transaction
from credit_ledger.db.schema import clients
from credit_ledger.errors import ConflictError, NotFound, ValidationError
from credit_ledger.models.clients import (
    ClientContactUpdate,
    ClientCreate,
    ClientOut,
    DeletedOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


def _client_columns():
    return select(
        clients.c.id,
        clients.c.name,
        clients.c.identifier,
        clients.c.phone,
        clients.c.email,
    )


def _row_to_client(row) -> ClientOut:
    return ClientOut(
        id=row["id"],
        name=row["name"],
        identifier=row["identifier"],
        phone=row["phone"],
        email=row["email"],
    )


def _blank_to_none(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


@router.get("/", response_model=List[ClientOut])
def list_clients() -> List[ClientOut]:
    """
    Return all clients ordered by name.
    """
    with connection("fetching clients") as conn:
        rows = conn.execute(
            _client_columns().order_by(clients.c.name.asc())
        ).mappings().all()

    return [_row_to_client(row) for row in rows]


@router.post("/", response_model=ClientOut, status_code=201)
def create_client(payload: ClientCreate) -> ClientOut:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Client name is required.", field="name")
    identifier = _blank_to_none(payload.identifier)

    values = {
        "name": name,
        "identifier": identifier,
        "phone": _blank_to_none(payload.phone),
        "email": str(payload.email) if payload.email else None,
    }

    with transaction("adding client") as conn:
        try:
            result = conn.execute(clients.insert().values(**values))
        except IntegrityError:
            raise ConflictError(
                f"Client identifier '{identifier}' already exists.",
                field="identifier",
            )
        client_id = result.inserted_primary_key[0]

    logger.info("Client %s created (%s)", client_id, name)
    return ClientOut(id=client_id, **values)


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: int) -> ClientOut:
    """
    Return a single client by ID.
    """
    with connection("fetching client") as conn:
        row = conn.execute(
            _client_columns().where(clients.c.id == client_id)
        ).mappings().first()

    if row is None:
        raise NotFound("Client not found.")

    return _row_to_client(row)


@router.put("/{client_id}", response_model=ClientOut)
def update_client_contact(client_id: int, payload: ClientContactUpdate) -> ClientOut:
    """
    Update phone and/or email. Fields left out of the body are untouched;
    an explicit null clears the field.
    """
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(
            "Provide at least a phone or an email to update.",
            fields=["phone", "email"],
        )
    if changes.get("email") is not None:
        changes["email"] = str(changes["email"])

    with transaction("updating client") as conn:
        result = conn.execute(
            update(clients).where(clients.c.id == client_id).values(**changes)
        )
        if result.rowcount == 0:
            raise NotFound("Client not found.")
        row = conn.execute(
            _client_columns().where(clients.c.id == client_id)
        ).mappings().first()

    return _row_to_client(row)


@router.delete("/{client_id}", response_model=DeletedOut)
def delete_client(client_id: int) -> DeletedOut:
    """
    Delete a client together with its sales, layaways and their payments.
    """
    with transaction("deleting client") as conn:
        result = conn.execute(delete(clients).where(clients.c.id == client_id))
        if result.rowcount == 0:
            raise NotFound("Client not found.")

    logger.info("Client %s deleted", client_id)
    return DeletedOut(id=client_id, message=f"Client #{client_id} deleted.")
