BASE = "/api/pharmacy/credit"


def _seed_two_visits(seed):
    seed.sale(1, 500, visit_id="IH25-1")
    seed.sale(2, 300, visit_id="IH25-1")
    seed.sale(3, 1200, visit_id="OP25-7", patient_id="P2", patient_name="Vikram Rao")
    seed.payment("pay-1", 400, visit_id="IH25-1")


def test_list_credit_patients(client, seed):
    _seed_two_visits(seed)

    res = client.get(f"{BASE}/patients")

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    items = body["data"]["items"]
    assert [i["label"] for i in items] == ["OP25-7", "IH25-1"]
    assert items[1]["balance"] == "400.00"
    assert items[1]["visit_type"] == "IPD"
    assert [s["sale_id"] for s in items[1]["sales"]] == [1, 2]
    assert body["data"]["summary"]["total_balance"] == "1600.00"
    assert body["meta"]["total"] == 2
    assert body["meta"]["warnings"] == []


def test_search_and_page_size(client, seed):
    _seed_two_visits(seed)

    res = client.get(f"{BASE}/patients", params={"search": "asha", "page_size": 1})

    meta = res.json()["meta"]
    assert [i["patient_id"] for i in res.json()["data"]["items"]] == ["P1"]
    assert (meta["total"], meta["pages"], meta["showing_from"], meta["showing_to"]) == (1, 1, 1, 1)


def test_missing_hospital_header_is_rejected(client):
    res = client.get(f"{BASE}/patients", headers={"X-Hospital-Name": ""})

    assert res.status_code == 400
    assert res.json()["error"]["msg"] == "Hospital not configured"


def test_receive_payment_flow(client, seed):
    _seed_two_visits(seed)

    res = client.post(f"{BASE}/ledgers/payments",
                      json={
                          "key": "IH25-1",
                          "amount": "150.50",
                          "payment_method": "card",
                          "payment_reference": "TXN-77",
                      })

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["payment"]["amount"] == "150.50"
    assert data["payment"]["received_by"] == "Ravi"
    assert data["ledger"]["balance"] == "249.50"

    payments = client.get(f"{BASE}/ledgers/payments", params={"key": "IH25-1"}).json()
    assert payments["meta"]["count"] == 2
    assert payments["meta"]["total_paid"] == "550.50"

    receipt = client.get(f"{BASE}/payments/{data['payment']['id']}/receipt").json()["data"]
    assert receipt["amount_in_words"] == "Rupee One Hundred Fifty One Only"
    assert receipt["payment_method"] == "CARD"


def test_payment_above_balance_is_refused(client, seed):
    _seed_two_visits(seed)

    res = client.post(f"{BASE}/ledgers/payments", json={"key": "IH25-1", "amount": "400.01"})

    assert res.status_code == 409
    assert res.json()["ok"] is False
    history = client.get(f"{BASE}/payments").json()
    assert history["meta"]["total"] == 1


def test_payment_body_validation(client, seed):
    _seed_two_visits(seed)

    res = client.post(f"{BASE}/ledgers/payments",
                      json={"key": "IH25-1", "amount": "10", "payment_method": "CHEQUE"})

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "VALIDATION"


def test_unknown_ledger_is_404(client, seed):
    _seed_two_visits(seed)

    res = client.post(f"{BASE}/ledgers/payments", json={"key": "walkin-P9-99", "amount": "10"})

    assert res.status_code == 404


def test_sale_and_collection_statements(client, seed):
    seed.sale(1, 200, visit_id="OP25-1", method="CASH", discount=5)
    seed.sale(2, 500, visit_id="OP25-1")
    seed.sale(3, 300, visit_id="OP25-1")

    sale = client.get(f"{BASE}/ledgers/statement", params={"key": "OP25-1"}).json()["data"]
    assert sale["mode"] == "sale"
    assert [e["running_balance"] for e in sale["entries"]] == ["0.00", "500.00", "800.00"]
    assert sale["totals"] == {"debit": "200.00", "credit": "800.00", "running_balance": "800.00"}

    coll = client.get(f"{BASE}/ledgers/statement",
                      params={"patient_id": "P1", "mode": "payment"}).json()["data"]
    assert coll["mode"] == "payment"
    assert coll["entries"][0]["paid_amt"] == "200.00"
    assert coll["totals"] == {"paid_amt": "200.00", "discount": "5.00", "balance": "800.00"}


def test_statement_needs_a_key(client):
    res = client.get(f"{BASE}/ledgers/statement")

    assert res.status_code == 400


def test_amount_in_words_endpoint(client):
    res = client.get(f"{BASE}/amount-in-words", params={"amount": "100000.50"})

    data = res.json()["data"]
    assert data["rounded"] == 100001
    assert data["words"] == "One Lakh One"
    assert data["receipt_text"] == "Rupee One Lakh One Only"


def test_amount_in_words_handles_huge_amounts(client):
    res = client.get(f"{BASE}/amount-in-words", params={"amount": "1e30"})

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["rounded"] == 10**30
    assert data["words"] == "One Hundred Crore Crore Crore Crore"


def test_visit_id_that_looks_like_a_walkin_key(client, seed):
    seed.sale(1, 300, visit_id="walkin-7")

    items = client.get(f"{BASE}/patients").json()["data"]["items"]
    assert [i["label"] for i in items] == ["visit:walkin-7"]

    res = client.post(f"{BASE}/ledgers/payments",
                      json={"key": "visit:walkin-7", "amount": "100"})

    assert res.status_code == 201
    assert res.json()["data"]["ledger"]["balance"] == "200.00"
