from __future__ import annotations


def _create(client, headers, category="Food", amount="12.50", description="Lunch"):
    response = client.post(
        "/api/expenses",
        json={"category": category, "amount": amount, "description": description},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_create_and_list_expense(client, register):
    headers = register()
    created = _create(client, headers)
    assert created["type"] == "expense"
    assert created["category"] == "Food"
    assert created["amount"] == "12.50"
    assert created["description"] == "Lunch"

    listed = client.get("/api/expenses", headers=headers)
    assert listed.status_code == 200
    assert [row["transaction_id"] for row in listed.json()] == [created["transaction_id"]]


def test_list_is_newest_first(client, register):
    headers = register()
    first = _create(client, headers, description="first")
    second = _create(client, headers, description="second")

    ids = [row["transaction_id"] for row in client.get("/api/expenses", headers=headers).json()]
    assert ids == [second["transaction_id"], first["transaction_id"]]


def test_owner_is_taken_from_token_not_body(client, register):
    ana = register()
    bob = register(name="Bob", email="bob@x.com")
    response = client.post(
        "/api/expenses",
        json={"category": "Rent", "amount": 900, "description": "March", "user_id": 999},
        headers=bob,
    )
    assert response.status_code == 200
    assert client.get("/api/expenses", headers=ana).json() == []


def test_other_users_cannot_see_or_touch_expense(client, register):
    ana = register()
    bob = register(name="Bob", email="bob@x.com")
    created = _create(client, ana)
    expense_id = created["transaction_id"]

    assert client.get("/api/expenses", headers=bob).json() == []
    assert client.get(f"/api/expenses/{expense_id}", headers=bob).status_code == 404

    update = client.put(
        f"/api/expenses/{expense_id}",
        json={"category": "Hacked", "amount": "1", "description": ""},
        headers=bob,
    )
    assert update.status_code == 404
    assert update.json() == {"error": "Transaction not found"}

    delete = client.delete(f"/api/expenses/{expense_id}", headers=bob)
    assert delete.status_code == 404

    still_there = client.get(f"/api/expenses/{expense_id}", headers=ana).json()
    assert still_there["category"] == "Food"


def test_update_expense(client, register):
    headers = register()
    created = _create(client, headers)
    response = client.put(
        f"/api/expenses/{created['transaction_id']}",
        json={"category": "Travel", "amount": "45.10", "description": "Train ticket"},
        headers=headers,
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["category"] == "Travel"
    assert payload["amount"] == "45.10"
    assert payload["description"] == "Train ticket"


def test_delete_expense_is_not_repeatable(client, register):
    headers = register()
    created = _create(client, headers)
    path = f"/api/expenses/{created['transaction_id']}"

    first = client.delete(path, headers=headers)
    assert first.status_code == 200
    assert first.json() == {"message": "Transaction deleted successfully"}

    for _ in range(2):
        again = client.delete(path, headers=headers)
        assert again.status_code == 404
        assert again.json() == {"error": "Transaction not found"}


def test_update_missing_expense(client, register):
    headers = register()
    response = client.put(
        "/api/expenses/12345",
        json={"category": "Food", "amount": "3", "description": None},
        headers=headers,
    )
    assert response.status_code == 404


def test_expense_amount_must_be_positive(client, register):
    headers = register()
    for amount in ["0", "-5", "abc", "NaN", "Infinity", None]:
        response = client.post(
            "/api/expenses",
            json={"category": "Food", "amount": amount, "description": "x"},
            headers=headers,
        )
        assert response.status_code == 400, amount
        assert response.json() == {"error": "Amount must be a positive number"}


def test_expense_requires_category(client, register):
    headers = register()
    response = client.post("/api/expenses", json={"amount": "3"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Category is required"}


def test_summary_groups_expenses_and_open_loans(client, register):
    headers = register()
    _create(client, headers, category="Food", amount="12.00")
    _create(client, headers, category="Food", amount="3.00")
    _create(client, headers, category="Books", amount="20.00")
    client.post(
        "/api/loans",
        json={"person_name": "Bea", "type": "lent", "amount": "50", "description": "Dinner"},
        headers=headers,
    )

    summary = client.get("/api/summary", headers=headers)
    assert summary.status_code == 200
    body = summary.json()
    assert body["total_expense"] == "35.00"
    assert {item["category"]: item["total"] for item in body["by_category"]} == {
        "Books": "20.00",
        "Food": "15.00",
    }
    assert body["open_loans"] == [{"type": "lent", "outstanding": "50.00", "count": 1}]


def test_expense_amount_below_one_cent_is_rejected(client, register):
    headers = register()
    response = client.post(
        "/api/expenses",
        json={"category": "Food", "amount": "0.001", "description": "Rounding"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Amount must have at most 2 decimal places"}
    assert client.get("/api/expenses", headers=headers).json() == []
