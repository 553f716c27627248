from decimal import Decimal

from sqlalchemy.exc import OperationalError

from credit_ledger.db.schema import sales
from credit_ledger.services import reconciler


def test_create_sale_starts_pending_with_nothing_paid(client, api):
    client_id = api.client("Ana")

    r = client.post(
        "/sales/",
        json={"client_id": client_id, "product": "Televisor", "total_amount": "100.00", "sale_date": "2024-01-15"},
    )

    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "Pending"
    assert body["client_name"] == "Ana"
    assert Decimal(body["total_paid"]) == 0
    assert Decimal(body["outstanding_balance"]) == Decimal("100.00")


def test_create_sale_validation(client, api):
    client_id = api.client()
    base = {"client_id": client_id, "product": "TV", "total_amount": "10", "sale_date": "2024-01-15"}

    assert client.post("/sales/", json={**base, "total_amount": "-1"}).status_code == 400
    assert client.post("/sales/", json={**base, "total_amount": "0"}).status_code == 400
    assert client.post("/sales/", json={**base, "sale_date": "15/01/2024"}).status_code == 400
    assert client.post("/sales/", json={**base, "product": "  "}).status_code == 400
    missing = dict(base)
    del missing["sale_date"]
    assert client.post("/sales/", json=missing).status_code == 400


def test_create_sale_for_unknown_client(client):
    r = client.post(
        "/sales/",
        json={"client_id": 999, "product": "TV", "total_amount": "10", "sale_date": "2024-01-15"},
    )
    assert r.status_code == 404


def test_full_payment_round_trip(client, api):
    sale_id = api.sale(api.client(), total="100.00")

    r = api.pay("100.00", sale_id=sale_id)
    assert r.status_code == 201
    assert r.json()["parent_status"] == "Paid"

    listed = client.get("/sales/").json()
    assert listed[0]["status"] == "Paid"
    assert Decimal(listed[0]["outstanding_balance"]) == 0
    assert Decimal(listed[0]["total_paid"]) == Decimal("100")


def test_list_is_newest_first(client, api):
    client_id = api.client()
    older = api.sale(client_id, sale_date="2024-01-01")
    newer = api.sale(client_id, sale_date="2024-06-01")
    same_day = api.sale(client_id, sale_date="2024-06-01")

    ids = [s["id"] for s in client.get("/sales/").json()]
    assert ids == [same_day, newer, older]


def test_stale_status_heals_on_read(client, api, seed):
    sale_id = api.sale(api.client(), total="100.00")
    api.pay("100.00", sale_id=sale_id)
    seed.set_status(sales, sale_id, "Pending")

    assert client.get("/sales/").json()[0]["status"] == "Paid"
    assert seed.status_of(sales, sale_id) == "Paid"


def test_unbacked_paid_status_reverts_to_pending(client, api, seed):
    sale_id = api.sale(api.client(), total="100.00")
    seed.set_status(sales, sale_id, "Paid")

    assert client.get(f"/sales/{sale_id}").json()["status"] == "Pending"
    assert seed.status_of(sales, sale_id) == "Pending"


def test_failed_write_back_does_not_fail_the_read(client, api, seed, monkeypatch):
    sale_id = api.sale(api.client(), total="100.00")
    seed.payment("100.00", sale_id=sale_id)

    def broken(conn, sale_id, status):
        raise OperationalError("UPDATE sales", {}, Exception("disk I/O error"))

    monkeypatch.setattr(reconciler, "apply_sale_status", broken)

    r = client.get("/sales/")

    assert r.status_code == 200
    assert r.json()[0]["status"] == "Paid"
    assert seed.status_of(sales, sale_id) == "Pending"


def test_get_single_sale(client, api):
    sale_id = api.sale(api.client(), total="80.00")
    api.pay("30", sale_id=sale_id)

    body = client.get(f"/sales/{sale_id}").json()
    assert Decimal(body["outstanding_balance"]) == Decimal("50")
    assert client.get("/sales/999").status_code == 404


def test_update_sale_date(client, api):
    sale_id = api.sale(api.client())

    r = client.put(f"/sales/{sale_id}/date", json={"sale_date": "2023-12-31"})
    assert r.status_code == 200
    assert r.json()["sale_date"] == "2023-12-31"
    assert client.get(f"/sales/{sale_id}").json()["sale_date"] == "2023-12-31"

    assert client.put(f"/sales/{sale_id}/date", json={"sale_date": "2023-12-31T00:00"}).status_code == 400
    assert client.put(f"/sales/{sale_id}/date", json={}).status_code == 400
    assert client.put("/sales/999/date", json={"sale_date": "2023-12-31"}).status_code == 404


def test_delete_sale_removes_its_payments(client, api):
    sale_id = api.sale(api.client())
    api.pay("10", sale_id=sale_id)

    r = client.delete(f"/sales/{sale_id}")

    assert r.status_code == 200
    assert client.get("/payments/", params={"sale_id": sale_id}).json() == []
    assert client.delete(f"/sales/{sale_id}").status_code == 404


def test_huge_total_is_a_validation_error(client, api):
    client_id = api.client()

    r = client.post(
        "/sales/",
        json={"client_id": client_id, "product": "TV", "total_amount": "1e30", "sale_date": "2024-01-15"},
    )

    assert r.status_code == 400
    assert r.json()["fields"]["field"] == "total_amount"
    assert client.get("/sales/").json() == []


def test_storage_failure_on_list_is_a_500(client, monkeypatch):
    from sqlalchemy import text

    from credit_ledger.api import sales as sales_api

    monkeypatch.setattr(sales_api, "sales_with_totals", lambda: text("SELECT * FROM missing_table"))

    r = client.get("/sales/")

    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "storage_failure"
    assert "no such table: missing_table" in body["detail"]
    assert body["fields"] == {}
