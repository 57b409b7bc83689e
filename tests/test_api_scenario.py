"""Owner funds a shop, a worker buys stock on cash and on borrow, then clears the borrow."""

from decimal import Decimal


def _remaining(client, headers) -> Decimal:
    response = client.get("/api/funds", headers=headers)
    assert response.status_code == 200, response.text
    return Decimal(response.json()["currentRemaining"])


def test_fund_purchase_borrow_and_settlement_walkthrough(client, admin, worker, worker_headers):
    response = client.post("/api/funds", json={"amount": 1000, "givenBy": "owner"}, headers=worker_headers)
    assert response.status_code == 201, response.text
    entry = response.json()
    assert Decimal(entry["givenAmount"]) == Decimal("1000")
    assert Decimal(entry["remainingAmount"]) == Decimal("1000")
    assert entry["ownerId"] == admin.id
    assert entry["shopId"] == "shop1"
    assert entry["givenBy"] == "owner"
    assert _remaining(client, worker_headers) == Decimal("1000")

    response = client.post(
        "/api/purchases",
        json={"itemName": "rice", "quantity": 10, "unitPrice": 40},
        headers=worker_headers,
    )
    assert response.status_code == 201, response.text
    paid = response.json()["purchase"]
    assert Decimal(paid["totalAmount"]) == Decimal("400")
    assert paid["paymentType"] == "paid"
    assert Decimal(paid["item"]["stock"]) == Decimal("10")
    assert _remaining(client, worker_headers) == Decimal("600")

    response = client.post(
        "/api/purchases",
        json={"itemId": paid["itemId"], "quantity": 5, "unitPrice": 100, "paymentType": "borrow"},
        headers=worker_headers,
    )
    assert response.status_code == 201, response.text
    borrowed = response.json()["purchase"]
    assert Decimal(borrowed["borrowAmount"]) == Decimal("500")
    assert _remaining(client, worker_headers) == Decimal("600")

    response = client.post(
        "/api/purchases",
        json={"itemId": paid["itemId"], "quantity": 7, "unitPrice": 100},
        headers=worker_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Insufficient funds. Available: ₹600.00, Required: ₹700.00"}
    items = client.get("/api/items", headers=worker_headers).json()
    assert Decimal(items[0]["stock"]) == Decimal("15")

    response = client.post(
        f"/api/purchases/{borrowed['id']}/pay-borrow",
        json={"amount": 500},
        headers=worker_headers,
    )
    assert response.status_code == 200, response.text
    settled = response.json()["purchase"]
    assert settled["paymentType"] == "paid"
    assert Decimal(settled["borrowAmount"]) == Decimal("0")
    assert _remaining(client, worker_headers) == Decimal("100")

    summary = client.get("/api/funds", headers=worker_headers).json()
    assert Decimal(summary["totalGiven"]) == Decimal("1000")
    assert [f["entryType"] for f in summary["funds"]] == ["debit", "debit", "credit"]


def test_credit_without_owner_is_rejected(client, worker, worker_headers):
    response = client.post("/api/funds", json={"amount": 10, "givenBy": "owner"}, headers=worker_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Owner not found"}


def test_credit_rejects_non_positive_amount(client, admin, worker_headers):
    response = client.post("/api/funds", json={"amount": 0}, headers=worker_headers)
    assert response.status_code == 400
    assert "amount" in response.json()["error"]


def test_admin_can_inspect_any_shop_fund(client, admin, admin_headers, worker_headers):
    client.post("/api/funds", json={"amount": 75}, headers=worker_headers)

    response = client.get("/api/funds", params={"shopId": "shop1"}, headers=admin_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["currentRemaining"]) == Decimal("75")
