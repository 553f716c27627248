from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from credit_ledger import app
from credit_ledger.db.engine import dispose_engines, get_engine
from credit_ledger.db.schema import clients, create_schema, layaways, payments, sales


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setenv("CREDIT_LEDGER_DB_URL", url)
    yield url
    dispose_engines()


@pytest.fixture
def engine(db_url):
    engine = get_engine()
    create_schema(engine)
    return engine


@pytest.fixture
def client(engine):
    with TestClient(app) as c:
        yield c


class Seed:
    """Direct inserts, bypassing admission control, to set up stale states."""

    def __init__(self, engine):
        self.engine = engine

    def _insert(self, table, **values):
        with self.engine.begin() as conn:
            return conn.execute(table.insert().values(**values)).inserted_primary_key[0]

    def client(self, name="Ana", identifier=None):
        return self._insert(clients, name=name, identifier=identifier)

    def sale(self, client_id, total="100.00", status="Pending", on=date(2024, 1, 15)):
        return self._insert(
            sales,
            client_id=client_id,
            product="Refrigerador",
            total_amount=Decimal(total),
            sale_date=on,
            status=status,
        )

    def layaway(self, client_id, total="50.00", status="Reserved", on=date(2024, 2, 1)):
        return self._insert(
            layaways,
            client_id=client_id,
            product="Bicicleta",
            total_amount=Decimal(total),
            created_on=on,
            status=status,
        )

    def payment(self, amount, sale_id=None, layaway_id=None, on=date(2024, 3, 1)):
        return self._insert(
            payments,
            sale_id=sale_id,
            layaway_id=layaway_id,
            amount=Decimal(amount),
            payment_date=on,
        )

    def status_of(self, table, row_id):
        with self.engine.connect() as conn:
            return conn.execute(
                select(table.c.status).where(table.c.id == row_id)
            ).scalar_one()

    def set_status(self, table, row_id, status):
        with self.engine.begin() as conn:
            conn.execute(
                table.update().where(table.c.id == row_id).values(status=status)
            )

    def count(self, table):
        with self.engine.connect() as conn:
            return len(conn.execute(select(table.c.id)).all())


@pytest.fixture
def seed(engine):
    return Seed(engine)


@pytest.fixture
def api(client):
    """Small helpers that go through the HTTP layer."""

    class Api:
        def client(self, name="Ana", **extra):
            r = client.post("/clients/", json={"name": name, **extra})
            assert r.status_code == 201, r.text
            return r.json()["id"]

        def sale(self, client_id, total="100.00", sale_date="2024-01-15", product="Televisor"):
            r = client.post(
                "/sales/",
                json={
                    "client_id": client_id,
                    "product": product,
                    "total_amount": total,
                    "sale_date": sale_date,
                },
            )
            assert r.status_code == 201, r.text
            return r.json()["id"]

        def layaway(self, client_id, total="50.00", created_on=None, product="Bicicleta"):
            body = {"client_id": client_id, "product": product, "total_amount": total}
            if created_on is not None:
                body["created_on"] = created_on
            r = client.post("/layaways/", json=body)
            assert r.status_code == 201, r.text
            return r.json()["id"]

        def pay(self, amount, sale_id=None, layaway_id=None, payment_date="2024-03-01", comment=None):
            body = {"amount": amount, "payment_date": payment_date}
            if sale_id is not None:
                body["sale_id"] = sale_id
            if layaway_id is not None:
                body["layaway_id"] = layaway_id
            if comment is not None:
                body["comment"] = comment
            return client.post("/payments/", json=body)

    return Api()
