def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_list_clients_sorted_by_name(client):
    r = client.post(
        "/clients/",
        json={"name": "Ana", "identifier": "CURP-1", "phone": "555-0101", "email": "ana@tienda.mx"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["name"] == "Ana"
    assert body["identifier"] == "CURP-1"
    assert body["email"] == "ana@tienda.mx"

    client.post("/clients/", json={"name": "Zoe"})
    client.post("/clients/", json={"name": "Beto"})

    names = [c["name"] for c in client.get("/clients/").json()]
    assert names == ["Ana", "Beto", "Zoe"]


def test_client_name_is_required(client):
    assert client.post("/clients/", json={"phone": "555"}).status_code == 400
    r = client.post("/clients/", json={"name": "   "})
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"


def test_duplicate_identifier_is_a_conflict(client):
    client.post("/clients/", json={"name": "Ana", "identifier": "CURP-1"})

    r = client.post("/clients/", json={"name": "Otra Ana", "identifier": "CURP-1"})

    assert r.status_code == 409
    assert r.json()["code"] == "conflict"
    assert "CURP-1" in r.json()["detail"]


def test_clients_without_identifier_do_not_conflict(client):
    assert client.post("/clients/", json={"name": "Ana", "identifier": ""}).status_code == 201
    assert client.post("/clients/", json={"name": "Beto"}).status_code == 201


def test_get_client(client, api):
    client_id = api.client("Ana", phone="555")

    r = client.get(f"/clients/{client_id}")
    assert r.status_code == 200
    assert r.json()["phone"] == "555"

    missing = client.get("/clients/999")
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_update_phone_only(client, api):
    client_id = api.client("Ana", phone="555", email="ana@tienda.mx")

    r = client.put(f"/clients/{client_id}", json={"phone": "777"})

    assert r.status_code == 200
    assert r.json()["phone"] == "777"
    assert r.json()["email"] == "ana@tienda.mx"


def test_update_requires_phone_or_email(client, api):
    client_id = api.client("Ana")

    r = client.put(f"/clients/{client_id}", json={})

    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"


def test_update_rejects_bad_email(client, api):
    client_id = api.client("Ana")
    assert client.put(f"/clients/{client_id}", json={"email": "not-an-email"}).status_code == 400


def test_update_unknown_client(client):
    assert client.put("/clients/999", json={"phone": "1"}).status_code == 404


def test_delete_client_cascades(client, api):
    client_id = api.client("Ana")
    sale_id = api.sale(client_id)
    layaway_id = api.layaway(client_id)
    assert api.pay("10", sale_id=sale_id).status_code == 201
    assert api.pay("10", layaway_id=layaway_id).status_code == 201

    r = client.delete(f"/clients/{client_id}")

    assert r.status_code == 200
    assert client.get("/sales/").json() == []
    assert client.get("/layaways/").json() == []
    assert client.get("/payments/").json() == []
    assert client.delete(f"/clients/{client_id}").status_code == 404
