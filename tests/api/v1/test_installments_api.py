def split(client, **overrides):
    payload = {
        "total_amount": "100.00",
        "installment_count": 3,
        "first_due_date": "2024-01-15",
        "supplier_name": "Papelaria Central",
        "description": "Papel couché",
    }
    payload.update(overrides)
    return client.post("/api/v1/installments/", json=payload)


def test_split_purchase(client):
    response = split(client)

    assert response.status_code == 201
    rows = response.json()
    assert [r["amount_cents"] for r in rows] == [3333, 3333, 3334]
    assert [r["due_date"] for r in rows] == ["2024-01-15", "2024-02-15", "2024-03-15"]


def test_split_validation(client):
    response = split(client, total_amount="0")

    assert response.status_code == 400


def test_pay_and_pending_total(client):
    rows = split(client).json()

    first = client.post(f"/api/v1/installments/{rows[0]['id']}/pay")
    again = client.post(f"/api/v1/installments/{rows[0]['id']}/pay")

    assert first.json()["paid"] is True
    assert again.json() == first.json()
    assert client.get("/api/v1/installments/pending-total").json() == {"count": 2, "total_cents": 6667}


def test_replan_regenerates(client):
    rows = split(client).json()
    client.post(f"/api/v1/installments/{rows[0]['id']}/pay")

    response = client.post("/api/v1/installments/purchases/replan", json={
        "installment_ids": [r["id"] for r in rows],
        "new_installment_count": 2,
    })

    new_rows = response.json()
    assert response.status_code == 200
    assert [r["amount_cents"] for r in new_rows] == [5000, 5000]
    assert not any(r["paid"] for r in new_rows)


def test_replan_edits(client):
    rows = split(client).json()

    response = client.post("/api/v1/installments/purchases/replan", json={
        "installment_ids": [r["id"] for r in rows],
        "common_edits": {"notes": "renegociado"},
        "installment_updates": {rows[2]["id"]: {"amount": "40.00"}},
    })

    updated = response.json()
    assert all(r["notes"] == "renegociado" for r in updated)
    assert updated[2]["amount_cents"] == 4000
    assert updated[0]["amount_cents"] == 3333


def test_edit_installment(client):
    rows = split(client).json()

    response = client.patch(f"/api/v1/installments/{rows[1]['id']}", json={"due_date": "2024-03-01"})

    assert response.json()["due_date"] == "2024-03-01"


def test_delete_purchase(client):
    rows = split(client).json()

    response = client.post("/api/v1/installments/purchases/delete", json={
        "installment_ids": [r["id"] for r in rows]
    })

    assert response.json() == {"deleted": 3}
    assert client.get("/api/v1/installments/").json() == []


def test_unknown_installment_is_404(client):
    assert client.post("/api/v1/installments/missing/pay").status_code == 404


def test_replan_rejects_negative_override(client):
    rows = split(client).json()

    response = client.post("/api/v1/installments/purchases/replan", json={
        "installment_ids": [r["id"] for r in rows],
        "installment_updates": {rows[0]["id"]: {"amount": "-5.00"}},
    })

    assert response.status_code == 400
    assert [r["amount_cents"] for r in client.get("/api/v1/installments/").json()] == [3333, 3333, 3334]
