"""Ledger engine tests run directly against a SQLAlchemy session."""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import principal, reload
from crud import ledger
from crud.stock import get_available_stock
from database import transaction_scope
from models.app_config import AppConfig
from models.cash_to_bank import CashToBank
from models.payments import Payment
from models.transactions import Transaction, TransactionType
from schemas.transactions import LedgerRequestBody, TransactionEdit
from utils.errors import EntityNotFound, InsufficientFunds, InsufficientStock, PermissionDenied, ValidationFailed
from utils.timeutils import now


def record(db, user, **body):
    request = LedgerRequestBody.model_validate(body).root
    acting = principal(user)
    with transaction_scope(db):
        txn = ledger.record_transaction(db, request, acting)
    return txn


def edit(db, user, transaction_id, **changes):
    acting = principal(user)
    with transaction_scope(db):
        txn = ledger.edit_transaction(db, transaction_id, TransactionEdit(**changes), acting)
    return txn


def delete(db, user, transaction_id):
    acting = principal(user)
    with transaction_scope(db):
        txn = ledger.delete_transaction(db, transaction_id, acting)
    return txn


def stock(db, driver):
    db.expire_all()
    return get_available_stock(db, driver.id)


@pytest.fixture
def stocked_driver(db, driver, capital):
    """Driver holding 100 KG from a BUY with no company attached."""

    record(db, driver, type="BUY", amount="100", rate="80", total_amount="8000")
    return driver


@pytest.fixture
def customer_c1(db, customer):
    customer.balance = Decimal("500")
    db.commit()
    return customer


def sell_40(db, driver, customer, bank):
    return record(
        db, driver,
        type="SELL", amount="40", rate="100", total_amount="4000",
        payment_cash="2000", payment_upi="1000", bank_id=bank.id,
        party={"kind": "CUSTOMER", "id": customer.id},
    )


# ---------------------------------------------------------------------------
# Sale scenarios
# ---------------------------------------------------------------------------


def test_sell_moves_stock_and_every_balance(db, stocked_driver, customer_c1, bank, capital):
    """A 40 KG sale splits cash, UPI and credit across the right balances."""

    sell_40(db, stocked_driver, customer_c1, bank)

    assert stock(db, stocked_driver) == Decimal("60")
    reload(db, customer_c1, bank, capital, stocked_driver)
    assert customer_c1.balance == Decimal("1500")
    assert bank.balance == Decimal("1500")
    assert capital.total_cash == Decimal("3000")
    assert stocked_driver.cash_in_hand == Decimal("2000")
    assert stocked_driver.upi_in_hand == Decimal("1000")


def test_sell_beyond_stock_is_rejected_without_side_effects(db, stocked_driver, customer_c1, bank, capital):
    sell_40(db, stocked_driver, customer_c1, bank)

    with pytest.raises(InsufficientStock):
        record(
            db, stocked_driver,
            type="SELL", amount="70", total_amount="7000", payment_cash="7000",
            party={"kind": "CUSTOMER", "id": customer_c1.id},
        )

    assert stock(db, stocked_driver) == Decimal("60")
    reload(db, customer_c1, bank, capital, stocked_driver)
    assert customer_c1.balance == Decimal("1500")
    assert bank.balance == Decimal("1500")
    assert capital.total_cash == Decimal("3000")
    assert stocked_driver.cash_in_hand == Decimal("2000")
    assert db.query(Transaction).filter(Transaction.type == TransactionType.SELL).count() == 1


def test_receive_payment_in_cash_from_customer(db, admin, customer_c1, capital):
    record(db, admin, type="RECEIVE_PAYMENT", total_amount="300", party={"kind": "CUSTOMER", "id": customer_c1.id})

    reload(db, customer_c1, capital)
    assert customer_c1.balance == Decimal("200")
    assert capital.total_cash == Decimal("1300")


def test_deleting_a_sale_restores_every_balance(db, stocked_driver, customer_c1, bank, capital):
    reload(db, capital, bank)
    cash_before, bank_before = capital.total_cash, bank.balance

    sale = sell_40(db, stocked_driver, customer_c1, bank)
    delete(db, stocked_driver, sale.id)

    assert stock(db, stocked_driver) == Decimal("100")
    reload(db, customer_c1, bank, capital, stocked_driver)
    assert customer_c1.balance == Decimal("500")
    assert bank.balance == bank_before
    assert capital.total_cash == cash_before
    assert stocked_driver.cash_in_hand == Decimal("0")
    assert stocked_driver.upi_in_hand == Decimal("0")


def test_sell_within_tolerance_is_allowed(db, driver, capital):
    record(db, driver, type="BUY", amount="10", total_amount="800")
    record(db, driver, type="SELL", amount="10.05", total_amount="1000", payment_cash="1000")

    assert stock(db, driver) == Decimal("-0.05")


def test_zero_tolerance_setting_rejects_the_slack(db, driver, capital):
    db.add(AppConfig(name="STOCK_TOLERANCE", value="0"))
    db.commit()
    record(db, driver, type="BUY", amount="10", total_amount="800")

    with pytest.raises(InsufficientStock):
        record(db, driver, type="SELL", amount="10.05", total_amount="1000", payment_cash="1000")


def test_weight_loss_and_palti_subtract_are_stock_checked(db, driver, other_driver, capital):
    record(db, driver, type="BUY", amount="5", total_amount="400")

    with pytest.raises(InsufficientStock):
        record(db, driver, type="WEIGHT_LOSS", sub_type="MORTALITY", amount="6")
    with pytest.raises(InsufficientStock):
        record(db, driver, type="PALTI", sub_type="SUBTRACT", amount="6", transfer_driver_id=other_driver.id)

    record(db, driver, type="PALTI", sub_type="SUBTRACT", amount="2", transfer_driver_id=other_driver.id)
    record(db, driver, type="WEIGHT_LOSS", sub_type="WASTE", amount="1")
    assert stock(db, driver) == Decimal("2")


def test_deleting_a_buy_that_was_already_sold_is_rejected(db, driver, capital):
    buy = record(db, driver, type="BUY", amount="10", total_amount="800")
    record(db, driver, type="SELL", amount="8", total_amount="1000", payment_cash="1000")

    with pytest.raises(InsufficientStock):
        delete(db, driver, buy.id)
    assert stock(db, driver) == Decimal("2")


# ---------------------------------------------------------------------------
# Edit delta law
# ---------------------------------------------------------------------------


def test_editing_sale_total_moves_customer_by_the_difference(db, stocked_driver, customer_c1, bank, capital):
    sale = sell_40(db, stocked_driver, customer_c1, bank)

    edit(db, stocked_driver, sale.id, total_amount="4500")

    reload(db, customer_c1, bank, capital)
    assert customer_c1.balance == Decimal("2000")
    assert bank.balance == Decimal("1500")
    assert capital.total_cash == Decimal("3000")


def test_edit_then_delete_returns_to_the_start(db, stocked_driver, customer_c1, bank, capital):
    sale = sell_40(db, stocked_driver, customer_c1, bank)
    edit(db, stocked_driver, sale.id, total_amount="3500", payment_cash="500", payment_upi="0")
    delete(db, stocked_driver, sale.id)

    reload(db, customer_c1, bank, capital, stocked_driver)
    assert customer_c1.balance == Decimal("500")
    assert bank.balance == Decimal("500")
    assert capital.total_cash == Decimal("1000")
    assert stocked_driver.cash_in_hand == Decimal("0")


def test_editing_quantity_above_stock_is_rejected(db, stocked_driver, capital):
    sale = record(db, stocked_driver, type="SELL", amount="40", total_amount="4000", payment_cash="4000")

    with pytest.raises(InsufficientStock):
        edit(db, stocked_driver, sale.id, amount="101")
    edit(db, stocked_driver, sale.id, amount="100")
    assert stock(db, stocked_driver) == Decimal("0")


def test_editing_payment_amount_adjusts_the_payment_record(db, admin, customer, capital):
    txn = record(db, admin, type="PAYMENT", total_amount="200", party={"kind": "CUSTOMER", "id": customer.id})
    edit(db, admin, txn.id, total_amount="250")

    reload(db, customer, capital)
    assert customer.balance == Decimal("250")
    assert capital.total_cash == Decimal("750")
    payment = db.query(Payment).filter(Payment.transaction_id == txn.id).one()
    assert payment.amount == Decimal("250")


# ---------------------------------------------------------------------------
# Company sign convention
# ---------------------------------------------------------------------------


def test_company_amount_due_follows_one_sign_convention(db, admin, driver, company, capital):
    """Every row's stored company_delta equals the change it made to amount_due."""

    steps = [
        (driver, dict(type="BUY", amount="10", total_amount="1000", company_id=company.id), Decimal("1000")),
        (admin, dict(type="PAYMENT", total_amount="400", party={"kind": "COMPANY", "id": company.id}), Decimal("-400")),
        (admin, dict(type="RECEIVE_PAYMENT", total_amount="100", party={"kind": "COMPANY", "id": company.id}), Decimal("100")),
        (driver, dict(type="SELL", amount="1", total_amount="200", party={"kind": "COMPANY", "id": company.id}), Decimal("-200")),
    ]
    for user, body, expected_change in steps:
        before = reload(db, company).amount_due
        txn = record(db, user, **body)
        after = reload(db, company).amount_due
        assert after - before == expected_change
        assert reload(db, txn).company_delta == expected_change

    assert reload(db, company).amount_due == Decimal("500")


# ---------------------------------------------------------------------------
# Cash box
# ---------------------------------------------------------------------------


def test_cash_never_goes_negative(db, admin, customer, capital):
    with pytest.raises(InsufficientFunds) as excinfo:
        record(db, admin, type="PAYMENT", total_amount="1500", party={"kind": "CUSTOMER", "id": customer.id})

    assert excinfo.value.code == "TOTAL_CASH_INSUFFICIENT"
    reload(db, customer, capital)
    assert capital.total_cash == Decimal("1000")
    assert customer.balance == Decimal("0")
    assert db.query(Payment).all() == []
    assert db.query(Transaction).all() == []


def test_today_cash_restarts_on_a_new_day(db, admin, capital):
    capital.today_cash = Decimal("700")
    capital.cash_last_updated_at = now() - timedelta(days=2)
    db.commit()

    record(db, admin, type="UPDATE_CASH", amount="50")

    reload(db, capital)
    assert capital.today_cash == Decimal("50")
    assert capital.total_cash == Decimal("1050")


def test_today_cash_accumulates_within_a_day(db, admin, capital):
    record(db, admin, type="UPDATE_CASH", amount="50")
    record(db, admin, type="UPDATE_CASH", amount="-20")

    reload(db, capital)
    assert capital.today_cash == Decimal("30")
    assert capital.total_cash == Decimal("1030")


def test_cash_to_bank_writes_satellite_and_delete_removes_it(db, admin, bank, capital):
    txn = record(db, admin, type="CASH_TO_BANK", bank_id=bank.id, total_amount="200")

    reload(db, bank, capital)
    assert bank.balance == Decimal("700")
    assert capital.total_cash == Decimal("800")
    assert len(db.query(CashToBank).all()) == 1

    delete(db, admin, txn.id)
    reload(db, bank, capital)
    assert bank.balance == Decimal("500")
    assert capital.total_cash == Decimal("1000")
    assert len(db.query(CashToBank).all()) == 0


# ---------------------------------------------------------------------------
# Banks
# ---------------------------------------------------------------------------


def test_bank_transfer_beyond_balance_is_rejected(db, admin, bank, second_bank, capital):
    with pytest.raises(InsufficientFunds) as excinfo:
        record(db, admin, type="BANK_TO_BANK", bank_id=bank.id, to_bank_id=second_bank.id, total_amount="600")

    assert excinfo.value.code == "BANK_INSUFFICIENT_FUNDS"
    reload(db, bank, second_bank)
    assert bank.balance == Decimal("500")
    assert second_bank.balance == Decimal("0")


def test_bank_transfer_moves_both_legs(db, admin, bank, second_bank, capital):
    record(db, admin, type="BANK_TO_BANK", bank_id=bank.id, to_bank_id=second_bank.id, total_amount="150")

    reload(db, bank, second_bank)
    assert bank.balance == Decimal("350")
    assert second_bank.balance == Decimal("150")


def test_update_bank_stores_the_difference(db, admin, bank, capital):
    txn = record(db, admin, type="UPDATE_BANK", bank_id=bank.id, balance="800")

    reload(db, bank, txn)
    assert bank.balance == Decimal("800")
    assert txn.sub_type == "ADD"
    assert txn.total_amount == Decimal("300")

    with pytest.raises(ValidationFailed):
        record(db, admin, type="UPDATE_BANK", bank_id=bank.id, balance="800")


# ---------------------------------------------------------------------------
# Counterparties and compensation
# ---------------------------------------------------------------------------


def test_compensation_against_deleted_customer_fails(db, stocked_driver, customer, capital):
    sale = record(
        db, stocked_driver,
        type="SELL", amount="5", total_amount="500",
        party={"kind": "CUSTOMER", "id": customer.id},
    )
    customer.deleted_at = now()
    db.commit()

    with pytest.raises(EntityNotFound) as excinfo:
        delete(db, stocked_driver, sale.id)

    assert excinfo.value.code == "CUSTOMER_NOT_FOUND"
    assert reload(db, sale).deleted_at is None


def test_driver_hand_over_empties_the_wallet(db, admin, stocked_driver, capital):
    record(db, stocked_driver, type="SELL", amount="10", total_amount="1000", payment_cash="1000")
    record(db, admin, type="RECEIVE_PAYMENT", total_amount="1000", party={"kind": "DRIVER", "id": stocked_driver.id})

    reload(db, stocked_driver)
    assert stocked_driver.cash_in_hand == Decimal("0")


def test_advance_payment_and_notes_move_customer_balance(db, admin, customer, capital):
    record(db, admin, type="ADVANCE_PAYMENT", customer_id=customer.id, total_amount="300")
    record(db, admin, type="DEBIT_NOTE", customer_id=customer.id, total_amount="50")
    record(db, admin, type="CREDIT_NOTE", customer_id=customer.id, total_amount="20")

    reload(db, customer, capital)
    assert customer.balance == Decimal("-270")
    assert capital.total_cash == Decimal("1300")


# ---------------------------------------------------------------------------
# Authorization inside the engine
# ---------------------------------------------------------------------------


def test_drivers_cannot_record_admin_only_types(db, driver, customer, capital):
    with pytest.raises(PermissionDenied):
        record(db, driver, type="PAYMENT", total_amount="10", party={"kind": "CUSTOMER", "id": customer.id})


def test_drivers_cannot_act_for_another_driver(db, driver, other_driver, capital):
    with pytest.raises(PermissionDenied):
        record(db, driver, type="BUY", amount="1", total_amount="80", driver_id=other_driver.id)


def test_drivers_cannot_take_cash_over_from_another_driver(db, driver, other_driver, capital):
    record(db, other_driver, type="BUY", amount="10", total_amount="800")
    record(db, other_driver, type="SELL", amount="10", total_amount="1000", payment_cash="1000")

    with pytest.raises(PermissionDenied):
        record(db, driver, type="RECEIVE_PAYMENT", total_amount="1000", party={"kind": "DRIVER", "id": other_driver.id})

    reload(db, other_driver, capital)
    assert other_driver.cash_in_hand == Decimal("1000")
    assert capital.total_cash == Decimal("2000")


def test_drivers_cannot_hand_over_their_own_cash(db, stocked_driver, capital):
    record(db, stocked_driver, type="SELL", amount="10", total_amount="1000", payment_cash="1000")

    with pytest.raises(PermissionDenied):
        record(db, stocked_driver, type="RECEIVE_PAYMENT", total_amount="500", party={"kind": "DRIVER", "id": stocked_driver.id})


def test_handing_driver_cannot_undo_the_admin_hand_over(db, admin, stocked_driver, capital):
    record(db, stocked_driver, type="SELL", amount="10", total_amount="1000", payment_cash="1000")
    hand_over = record(db, admin, type="RECEIVE_PAYMENT", total_amount="1000", party={"kind": "DRIVER", "id": stocked_driver.id})

    with pytest.raises(PermissionDenied):
        edit(db, stocked_driver, hand_over.id, total_amount="1")
    with pytest.raises(PermissionDenied):
        delete(db, stocked_driver, hand_over.id)

    reload(db, stocked_driver, capital, hand_over)
    assert hand_over.deleted_at is None
    assert stocked_driver.cash_in_hand == Decimal("0")
    assert capital.total_cash == Decimal("3000")


def test_drivers_still_collect_from_customers(db, stocked_driver, customer, capital):
    txn = record(db, stocked_driver, type="RECEIVE_PAYMENT", total_amount="200", party={"kind": "CUSTOMER", "id": customer.id})

    assert reload(db, txn).driver_id == stocked_driver.id
    assert reload(db, customer).balance == Decimal("-200")


def test_admin_may_record_for_a_driver(db, admin, driver, capital):
    txn = record(db, admin, type="BUY", amount="3", total_amount="240", driver_id=driver.id)

    assert reload(db, txn).driver_id == driver.id
    assert stock(db, driver) == Decimal("3")


def test_drivers_cannot_touch_other_drivers_rows(db, driver, other_driver, capital):
    buy = record(db, other_driver, type="BUY", amount="1", total_amount="80")

    with pytest.raises(PermissionDenied):
        edit(db, driver, buy.id, total_amount="90")
    with pytest.raises(PermissionDenied):
        delete(db, driver, buy.id)
