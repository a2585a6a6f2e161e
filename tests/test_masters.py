"""HTTP tests for master data: drivers, customers, companies, banks, vehicles and friends."""

from datetime import timedelta
from decimal import Decimal

from conftest import reload
from utils.timeutils import now, today


# ---------------------------------------------------------------------------
# Drivers
# ---------------------------------------------------------------------------


def test_admin_creates_and_blocks_a_driver(client, admin_headers):
    resp = client.post("/drivers/", json={"name": "Kumar", "mobile": "9333333333", "password": "1234", "base_salary": "15000"}, headers=admin_headers)
    assert resp.status_code == 201
    driver_id = resp.json()["id"]
    assert resp.json()["status"] == "ACTIVE"

    toggled = client.patch(f"/drivers/{driver_id}/status", headers=admin_headers)
    assert toggled.json()["status"] == "BLOCKED"

    login = client.post("/auth/login", json={"mobile": "9333333333", "password": "1234"})
    assert login.status_code == 401


def test_duplicate_driver_mobile_is_rejected(client, admin_headers, driver):
    resp = client.post("/drivers/", json={"name": "Copy", "mobile": driver.mobile, "password": "1234"}, headers=admin_headers)
    assert resp.status_code == 400


def test_negative_salary_is_rejected(client, admin_headers):
    resp = client.post("/drivers/", json={"name": "Kumar", "mobile": "9333333334", "password": "1234", "base_salary": "-1"}, headers=admin_headers)
    assert resp.status_code == 422


def test_driver_with_history_cannot_be_deleted(client, admin_headers, driver_headers, driver, capital):
    buy = client.post("/transactions/", json={"type": "BUY", "amount": "1", "total_amount": "80"}, headers=driver_headers).json()
    client.delete(f"/transactions/{buy['id']}", headers=admin_headers)

    # Soft-deleted rows still count as history
    assert client.delete(f"/drivers/{driver.id}", headers=admin_headers).status_code == 409


def test_driver_without_history_can_be_deleted(client, admin_headers, driver):
    assert client.delete(f"/drivers/{driver.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/drivers/{driver.id}", headers=admin_headers).status_code == 404


# ---------------------------------------------------------------------------
# Customers and companies
# ---------------------------------------------------------------------------


def test_customer_opening_balance_and_due_list(client, admin_headers):
    client.post("/customers/", json={"name": "Owes", "balance": "250"}, headers=admin_headers)
    client.post("/customers/", json={"name": "Settled"}, headers=admin_headers)

    due = client.get("/customers/due", headers=admin_headers).json()
    assert [c["name"] for c in due] == ["Owes"]


def test_customer_update_cannot_touch_balance(client, db, admin_headers, customer):
    resp = client.patch(f"/customers/{customer.id}", json={"name": "Renamed", "balance": "9999"}, headers=admin_headers)

    assert resp.status_code == 200
    reload(db, customer)
    assert customer.name == "Renamed"
    assert customer.balance == Decimal("0")


def test_deleted_customer_disappears(client, admin_headers, customer):
    assert client.delete(f"/customers/{customer.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/customers/{customer.id}", headers=admin_headers).status_code == 404


def test_customer_history_lists_recent_rows(client, admin_headers, customer, capital):
    client.post("/transactions/", json={"type": "DEBIT_NOTE", "customer_id": customer.id, "total_amount": "40"}, headers=admin_headers)

    history = client.get(f"/customers/{customer.id}/history?days=30", headers=admin_headers).json()
    assert [row["type"] for row in history] == ["DEBIT_NOTE"]


def test_history_starts_no_earlier_than_system_start_date(client, admin_headers, customer, capital):
    client.post("/transactions/", json={"type": "DEBIT_NOTE", "customer_id": customer.id, "total_amount": "40"}, headers=admin_headers)

    client.post("/configurations/", json={"name": "system_start_date", "value": today().isoformat()}, headers=admin_headers)
    history = client.get(f"/customers/{customer.id}/history?days=30", headers=admin_headers).json()
    assert len(history) == 1

    tomorrow = (today() + timedelta(days=1)).isoformat()
    client.patch("/configurations/system_start_date", json={"value": tomorrow}, headers=admin_headers)
    assert client.get(f"/customers/{customer.id}/history?days=30", headers=admin_headers).json() == []


def test_company_names_are_unique(client, admin_headers, company):
    resp = client.post("/companies/", json={"name": company.name}, headers=admin_headers)
    assert resp.status_code == 400


def test_company_opening_amount_due(client, admin_headers):
    resp = client.post("/companies/", json={"name": "Hill Farms", "amount_due": "1200"}, headers=admin_headers)
    assert Decimal(resp.json()["amount_due"]) == Decimal("1200")


# ---------------------------------------------------------------------------
# Banks, vehicles, capital
# ---------------------------------------------------------------------------


def test_bank_summary_totals_balances(client, admin_headers, bank, second_bank):
    summary = client.get("/banks/summary", headers=admin_headers).json()

    assert len(summary["banks"]) == 2
    assert Decimal(summary["total_bank_balance"]) == Decimal("500")


def test_bank_with_money_cannot_be_deleted(client, admin_headers, bank, second_bank):
    assert client.delete(f"/banks/{bank.id}", headers=admin_headers).status_code == 409
    assert client.delete(f"/banks/{second_bank.id}", headers=admin_headers).status_code == 204


def test_vehicle_registration_is_normalised_and_unique(client, admin_headers):
    first = client.post("/vehicles/", json={"registration": " tn02cd5678 "}, headers=admin_headers)
    assert first.json()["registration"] == "TN02CD5678"

    again = client.post("/vehicles/", json={"registration": "TN02CD5678"}, headers=admin_headers)
    assert again.status_code == 400


def test_vehicle_in_use_cannot_be_deleted(client, admin_headers, driver_headers, vehicle, capital):
    client.post("/transactions/", json={"type": "FUEL", "amount": "10", "vehicle_id": vehicle.id}, headers=driver_headers)
    assert client.delete(f"/vehicles/{vehicle.id}", headers=admin_headers).status_code == 409


def test_deleting_a_vehicle_unassigns_drivers(client, db, admin_headers, driver, vehicle):
    driver.vehicle_id = vehicle.id
    db.commit()

    assert client.delete(f"/vehicles/{vehicle.id}", headers=admin_headers).status_code == 204
    assert reload(db, driver).vehicle_id is None


def test_capital_read_applies_rollover(client, db, admin_headers, capital):
    capital.today_cash = Decimal("400")
    capital.cash_last_updated_at = now() - timedelta(days=1)
    db.commit()

    body = client.get("/capital/", headers=admin_headers).json()
    assert Decimal(body["today_cash"]) == Decimal("0")
    assert Decimal(body["total_cash"]) == Decimal("1000")
    assert reload(db, capital).today_cash == Decimal("0")


def test_capital_is_a_singleton(client, admin_headers, capital):
    assert client.post("/capital/", json={"total_cash": "10"}, headers=admin_headers).status_code == 400


def test_borrowed_money_records_the_admin(client, admin, admin_headers):
    resp = client.post("/borrowed-money/", json={
        "borrowed_money": "5000", "borrowed_from": "Uncle", "borrowed_on": "2025-01-15",
    }, headers=admin_headers)

    assert resp.status_code == 201
    assert resp.json()["admin_id"] == admin.id


def test_notifications_unread_first_and_mark_all(client, admin_headers, driver_headers, driver):
    first = client.post("/notifications/", json={"message": "old news"}, headers=admin_headers).json()
    client.post("/notifications/", json={"message": "for Ravi", "user_id": driver.id}, headers=admin_headers)
    client.patch(f"/notifications/{first['id']}/read", headers=driver_headers)

    listed = client.get("/notifications/", headers=driver_headers).json()
    assert [n["message"] for n in listed] == ["for Ravi", "old news"]

    assert client.patch("/notifications/read-all", headers=driver_headers).json() == {"updated": 1}


def test_configurations_initialize_is_idempotent(client, admin_headers):
    first = client.post("/configurations/initialize", headers=admin_headers).json()
    assert set(first["new_configs"]) == {"system_start_date", "STOCK_TOLERANCE"}

    second = client.post("/configurations/initialize", headers=admin_headers).json()
    assert second["new_configs"] == []

    tolerance = client.get("/configurations/?name=STOCK_TOLERANCE", headers=admin_headers).json()
    assert tolerance[0]["value"] == "0.1"
