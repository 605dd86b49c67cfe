from security import create_access_token
from tests.conftest import BUYER_ID, SELLER_ID, _auth_headers


def _create(client, headers, **overrides):
    body = {"seller_id": SELLER_ID, "book_id": 9, "transaction_type": "purchase", "unit_price": "25.00", "quantity": 2}
    body.update(overrides)
    return client.post("/v1/transactions", json=body, headers=headers)


def test_buyer_creates_and_reads_transaction(client, buyer_headers):
    r = _create(client, buyer_headers)
    assert r.status_code == 201, r.text
    tid = r.json()["transaction_id"]

    r2 = client.get(f"/v1/transactions/{tid}", headers=buyer_headers)
    assert r2.status_code == 200, r2.text
    body = r2.json()
    assert body["buyer_id"] == BUYER_ID
    assert body["seller_id"] == SELLER_ID
    assert body["total_amount"] == "50.00"
    assert body["commission_amount"] == "5.00"
    assert body["seller_amount"] == "45.00"
    assert body["payment_status"] == "pending"


def test_requires_auth(client):
    assert _create(client, {}).status_code == 401
    assert client.get("/v1/transactions", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_self_purchase_is_422(client, buyer_headers):
    r = _create(client, buyer_headers, seller_id=BUYER_ID)
    assert r.status_code == 422, r.text
    assert r.json()["detail"] == "Cannot purchase your own book"


def test_bad_price_is_422(client, buyer_headers):
    r = _create(client, buyer_headers, unit_price="0")
    assert r.status_code == 422, r.text


def test_strangers_get_404(client, buyer_headers, admin_headers):
    tid = _create(client, buyer_headers).json()["transaction_id"]
    stranger = _auth_headers(create_access_token("555"))

    assert client.get(f"/v1/transactions/{tid}", headers=stranger).status_code == 404
    assert client.get(f"/v1/transactions/{tid}", headers=admin_headers).status_code == 200
    assert client.get("/v1/transactions/9999", headers=admin_headers).status_code == 404


def test_list_by_role(client, buyer_headers, vendor_headers):
    _create(client, buyer_headers)

    mine = client.get("/v1/transactions?role=purchases", headers=buyer_headers).json()["transactions"]
    assert len(mine) == 1
    assert client.get("/v1/transactions?role=sales", headers=buyer_headers).json()["transactions"] == []
    assert len(client.get("/v1/transactions?role=sales", headers=vendor_headers).json()["transactions"]) == 1


def test_admin_status_updates(client, buyer_headers, admin_headers):
    tid = _create(client, buyer_headers).json()["transaction_id"]

    r = client.post(
        f"/v1/admin/transactions/{tid}/payment-status",
        json={"status": "completed", "reference": "MOMO-77"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text

    r = client.post(f"/v1/admin/transactions/{tid}/payment-status", json={"status": "shipped"}, headers=admin_headers)
    assert r.status_code == 422

    r = client.post(f"/v1/admin/transactions/{tid}/delivery-status", json={"status": "delivered"}, headers=admin_headers)
    assert r.status_code == 200

    tx = client.get(f"/v1/transactions/{tid}", headers=buyer_headers).json()
    assert tx["payment_status"] == "completed"
    assert tx["payment_reference"] == "MOMO-77"
    assert tx["delivery_status"] == "delivered"


def test_admin_cancel_twice_and_delete(client, buyer_headers, admin_headers):
    tid = _create(client, buyer_headers).json()["transaction_id"]

    assert client.post(f"/v1/admin/transactions/{tid}/cancel", headers=admin_headers).json() == {"ok": True}
    assert client.post(f"/v1/admin/transactions/{tid}/cancel", headers=admin_headers).json() == {"ok": False}

    assert client.delete(f"/v1/admin/transactions/{tid}", headers=admin_headers).status_code == 200
    assert client.delete(f"/v1/admin/transactions/{tid}", headers=admin_headers).status_code == 404


def test_admin_routes_need_admin(client, buyer_headers):
    r = client.post("/v1/admin/transactions/1/cancel", headers=buyer_headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "ADMIN_REQUIRED"
