"""Aggregators must agree with the deltas the ledger engine applied."""

from decimal import Decimal

import pytest

from conftest import auth_headers, reload
from utils.timeutils import today


@pytest.fixture
def trading_day(client, db, admin_headers, driver_headers, customer, company, bank, capital):
    """A small day of trading: buy, sell, lose some weight, settle up."""

    post = lambda body, headers: client.post("/transactions/", json=body, headers=headers)  # noqa: E731
    post({"type": "BUY", "amount": "100", "rate": "80", "total_amount": "8000", "company_id": company.id}, driver_headers)
    post({
        "type": "SELL", "amount": "50", "rate": "100", "total_amount": "5000",
        "payment_cash": "3000", "payment_upi": "1000", "bank_id": bank.id,
        "party": {"kind": "CUSTOMER", "id": customer.id},
    }, driver_headers)
    post({"type": "WEIGHT_LOSS", "sub_type": "MORTALITY", "amount": "2"}, driver_headers)
    post({"type": "WEIGHT_LOSS", "sub_type": "WASTE", "amount": "3"}, driver_headers)
    post({"type": "FUEL", "amount": "20", "total_amount": "2000"}, driver_headers)
    post({"type": "RECEIVE_PAYMENT", "total_amount": "400", "party": {"kind": "CUSTOMER", "id": customer.id}}, admin_headers)
    post({"type": "PAYMENT", "total_amount": "1500", "bank_id": bank.id, "party": {"kind": "COMPANY", "id": company.id}}, admin_headers)
    client.post("/expenses/", json={"type": "CASH", "amount": "100", "category": "Tea"}, headers=admin_headers)


def test_admin_dashboard_totals(client, admin_headers, trading_day):
    body = client.get("/dashboard/admin", headers=admin_headers).json()

    assert Decimal(body["buy"]["quantity"]) == Decimal("100")
    assert Decimal(body["buy"]["avg_rate"]) == Decimal("80")
    assert Decimal(body["sell"]["total_amount"]) == Decimal("5000")
    assert Decimal(body["weight_loss_quantity"]) == Decimal("5")
    assert Decimal(body["weight_loss_percentage"]) == Decimal("5")
    assert body["fuel_count"] == 1
    assert Decimal(body["payment_received"]) == Decimal("4000")
    assert Decimal(body["today_profit"]) == Decimal("-3000")
    assert Decimal(body["total_available_stock"]) == Decimal("45")
    assert Decimal(body["total_in_market"]) == Decimal("600")
    assert Decimal(body["total_company_due"]) == Decimal("6500")
    assert Decimal(body["total_bank_balance"]) == Decimal("0")
    assert Decimal(body["cash"]["total_cash"]) == Decimal("4300")


def test_dashboard_without_buys_has_zero_loss_percentage(client, admin_headers, capital):
    body = client.get("/dashboard/admin", headers=admin_headers).json()

    assert Decimal(body["weight_loss_percentage"]) == Decimal("0")
    assert Decimal(body["buy"]["avg_rate"]) == Decimal("0")


def test_profit_formula(client, admin_headers, trading_day):
    body = client.get("/dashboard/profit", headers=admin_headers).json()

    # 5000 - 8000 - 100 + 1500 - 400
    assert Decimal(body["profit"]) == Decimal("-2000")
    assert Decimal(body["expense_total"]) == Decimal("100")


def test_cash_flow_matches_cash_movements(client, db, admin_headers, trading_day, capital):
    body = client.get(f"/dashboard/cash-flow?date={today().isoformat()}&account=cash", headers=admin_headers).json()

    assert Decimal(body["total_in"]) == Decimal("3400")
    assert Decimal(body["total_out"]) == Decimal("100")
    assert Decimal(body["net"]) == reload(db, capital).total_cash - Decimal("1000")
    narrations = {entry["narration"] for entry in body["cash_in"] + body["cash_out"]}
    assert "Sale to Hotel Annapurna" in narrations
    assert "Payment received from Hotel Annapurna" in narrations
    assert "Tea expense" in narrations


def test_cash_flow_for_a_bank(client, admin_headers, trading_day, bank):
    body = client.get(f"/dashboard/cash-flow?account={bank.id}", headers=admin_headers).json()

    assert body["account_name"] == "State Bank"
    assert Decimal(body["total_in"]) == Decimal("1000")
    assert Decimal(body["total_out"]) == Decimal("1500")
    assert [entry["narration"] for entry in body["cash_out"]] == ["Payment done to Green Farms"]


def test_cash_flow_rejects_unknown_account(client, admin_headers, capital):
    resp = client.get("/dashboard/cash-flow?account=vault", headers=admin_headers)
    assert resp.status_code == 400


def test_driver_dashboard(client, driver_headers, trading_day):
    body = client.get("/dashboard/driver", headers=driver_headers).json()

    assert Decimal(body["today_buy_kg"]) == Decimal("100")
    assert Decimal(body["today_sell_kg"]) == Decimal("50")
    assert Decimal(body["today_fuel_litres"]) == Decimal("20")
    assert Decimal(body["stock"]) == Decimal("45")
    assert Decimal(body["cash_in_hand"]) == Decimal("3000")


def test_driver_daily_report(client, driver, driver_headers, trading_day):
    body = client.get(f"/reports/driver/{driver.id}", headers=driver_headers).json()

    assert Decimal(body["opening_stock"]) == Decimal("0")
    assert Decimal(body["closing_stock"]) == Decimal("45")
    assert body["rows"][0]["name"] == "Hotel Annapurna"
    assert Decimal(body["rows"][0]["due_change"]) == Decimal("1000")
    assert body["companies"][0]["company_name"] == "Green Farms"
    assert Decimal(body["payments"]["total_collection"]) == Decimal("4000")
    assert Decimal(body["losses"]["waste_kg"]) == Decimal("3")
    assert Decimal(body["losses"]["percentage"]) == Decimal("5")


def test_drivers_cannot_read_each_others_reports(client, driver, other_driver, capital):
    resp = client.get(f"/reports/driver/{driver.id}", headers=auth_headers(other_driver))
    assert resp.status_code == 403
