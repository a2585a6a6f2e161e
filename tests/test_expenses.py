"""Expenses are backed by EXPENSE ledger rows; these tests follow the money."""

from decimal import Decimal

from conftest import reload
from models.transactions import Transaction, TransactionType


def _mirror(db, expense_id):
    db.expire_all()
    return db.query(Transaction).filter(Transaction.expense_id == expense_id).one()


def test_cash_expense_lowers_cash_and_writes_mirror(client, db, admin_headers, capital):
    resp = client.post("/expenses/", json={"type": "CASH", "amount": "120", "category": "Tea", "description": "Loading crew"}, headers=admin_headers)

    assert resp.status_code == 201
    mirror = _mirror(db, resp.json()["id"])
    assert mirror.type == TransactionType.EXPENSE
    assert mirror.sub_type == "Tea"
    assert reload(db, capital).total_cash == Decimal("880")


def test_bank_expense_needs_a_bank(client, admin_headers, capital):
    resp = client.post("/expenses/", json={"type": "BANK", "amount": "50", "category": "Rent"}, headers=admin_headers)
    assert resp.status_code == 422


def test_bank_expense_is_guarded(client, db, admin_headers, bank, capital):
    resp = client.post("/expenses/", json={"type": "BANK", "amount": "600", "category": "Rent", "bank_id": bank.id}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["code"] == "BANK_INSUFFICIENT_FUNDS"
    assert reload(db, bank).balance == Decimal("500")
    assert client.get("/expenses/", headers=admin_headers).json() == []


def test_updating_an_expense_moves_only_the_difference(client, db, admin_headers, bank, capital):
    created = client.post("/expenses/", json={"type": "BANK", "amount": "200", "category": "Rent", "bank_id": bank.id}, headers=admin_headers).json()
    assert reload(db, bank).balance == Decimal("300")

    resp = client.patch(f"/expenses/{created['id']}", json={"amount": "150", "description": "Rent, discounted"}, headers=admin_headers)

    assert resp.status_code == 200
    assert Decimal(resp.json()["amount"]) == Decimal("150")
    assert reload(db, bank).balance == Decimal("350")
    assert _mirror(db, created["id"]).total_amount == Decimal("150")


def test_deleting_an_expense_refunds_it(client, db, admin_headers, capital):
    created = client.post("/expenses/", json={"type": "CASH", "amount": "75", "category": "Toll"}, headers=admin_headers).json()

    assert client.delete(f"/expenses/{created['id']}", headers=admin_headers).status_code == 204
    assert reload(db, capital).total_cash == Decimal("1000")
    assert client.get(f"/expenses/{created['id']}", headers=admin_headers).status_code == 404


def test_expense_summary_splits_cash_and_bank(client, admin_headers, bank, capital):
    client.post("/expenses/", json={"type": "CASH", "amount": "100", "category": "Tea"}, headers=admin_headers)
    client.post("/expenses/", json={"type": "BANK", "amount": "40", "category": "Fees", "bank_id": bank.id}, headers=admin_headers)

    summary = client.get("/expenses/summary", headers=admin_headers).json()
    assert Decimal(summary["cash_total"]) == Decimal("100")
    assert Decimal(summary["bank_total"]) == Decimal("40")
    assert Decimal(summary["total"]) == Decimal("140")
    assert summary["count"] == 2


def test_driver_expense_is_booked_against_the_driver(client, driver, driver_headers, capital):
    resp = client.post("/expenses/", json={"type": "CASH", "amount": "30", "category": "Food"}, headers=driver_headers)

    assert resp.status_code == 201
    assert resp.json()["driver_id"] == driver.id


def test_driver_cannot_spend_from_a_bank(client, driver_headers, bank, capital):
    resp = client.post("/expenses/", json={"type": "BANK", "amount": "30", "category": "Food", "bank_id": bank.id}, headers=driver_headers)
    assert resp.status_code == 403
