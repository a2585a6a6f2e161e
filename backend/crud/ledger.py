"""
Ledger engine.

Turns a typed ledger request into a Transaction row plus the balance changes
that row implies, and undoes or adjusts those changes when the row is edited
or deleted.

Rules are written once, in `compute_effects`, as a function of the stored
row. The effects actually applied are kept on the row (the *_delta columns):

- create: apply compute_effects(row) and store it
- edit:   apply compute_effects(edited row) - stored, then store the new set
- delete: apply -stored

Counterparty effects are computed in receivable terms (positive means the
counterparty owes the business). Customer.balance is a receivable and takes
them as they are; Company.amount_due is a payable and takes their negation.

Callers run every function here inside `database.transaction_scope` so a
failing guard discards all writes of the operation.
"""
from dataclasses import dataclass, fields
from decimal import Decimal, ROUND_HALF_UP
import logging

from sqlalchemy.orm import Session

from crud import balances
from crud.audit_log import create_audit_log
from crud.stock import ensure_stock_after_change, signed_quantity
from models.cash_to_bank import CashToBank
from models.expenses import Expense, ExpenseType
from models.payments import Payment
from models.transactions import Transaction, TransactionType, Unit
from models.users import UserRole
from models.vehicles import Vehicle
from schemas.audit_log import AuditLogCreate
from schemas.transactions import PartyKind, TransactionEdit
from utils import sqlalchemy_to_dict, to_decimal
from utils.auth_utils import get_user_identifier
from utils.errors import EntityNotFound, PermissionDenied, ValidationFailed
from utils.timeutils import now

logger = logging.getLogger("ledger")

ZERO = Decimal("0")
MONEY = Decimal("0.01")
QUANTITY = Decimal("0.001")

STOCK_TYPES = {
    TransactionType.BUY,
    TransactionType.SHOP_BUY,
    TransactionType.SELL,
    TransactionType.PALTI,
    TransactionType.WEIGHT_LOSS,
}

ADMIN_ONLY_TYPES = {
    TransactionType.PAYMENT,
    TransactionType.DEBIT_NOTE,
    TransactionType.CREDIT_NOTE,
    TransactionType.ADVANCE_PAYMENT,
    TransactionType.CASH_TO_BANK,
    TransactionType.BANK_TO_BANK,
    TransactionType.UPDATE_BANK,
    TransactionType.UPDATE_CASH,
}

# Types whose whole meaning is the money moved; a zero total is not a transaction
POSITIVE_TOTAL_TYPES = ADMIN_ONLY_TYPES | {TransactionType.RECEIVE_PAYMENT, TransactionType.EXPENSE}


def money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY, rounding=ROUND_HALF_UP)


def quantity(value) -> Decimal:
    return to_decimal(value).quantize(QUANTITY, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Effects:
    """Signed balance changes implied by one transaction row."""
    cash: Decimal = ZERO
    bank: Decimal = ZERO
    to_bank: Decimal = ZERO
    customer: Decimal = ZERO
    company: Decimal = ZERO  # receivable terms
    driver_cash: Decimal = ZERO
    driver_upi: Decimal = ZERO

    def __sub__(self, other: "Effects") -> "Effects":
        return Effects(**{f.name: getattr(self, f.name) - getattr(other, f.name) for f in fields(self)})

    def __neg__(self) -> "Effects":
        return Effects() - self


# ---------------------------------------------------------------------------
# Rule catalog
# ---------------------------------------------------------------------------

def _no_effect(txn):
    return Effects()


def _buy_effects(txn):
    if txn.company_id is None:
        return Effects()
    # Goods received on credit: the business now owes the company more
    return Effects(company=-money(txn.total_amount))


def _sell_effects(txn):
    cash = money(txn.payment_cash)
    upi = money(txn.payment_upi)
    change = money(txn.total_amount) - cash - upi
    return Effects(
        cash=cash,
        bank=upi if txn.bank_id is not None else ZERO,
        customer=change if txn.customer_id is not None else ZERO,
        company=change if txn.company_id is not None else ZERO,
        driver_cash=cash,
        driver_upi=upi,
    )


def _settlement(txn, signed_total):
    """Route money through the bank when one is linked, else through cash."""
    if txn.bank_id is not None:
        return {"bank": signed_total}
    return {"cash": signed_total}


def _expense_effects(txn):
    return Effects(**_settlement(txn, -money(txn.total_amount)))


def _payment_effects(txn):
    total = money(txn.total_amount)
    return Effects(
        customer=total if txn.customer_id is not None else ZERO,
        company=total if txn.company_id is not None else ZERO,
        **_settlement(txn, -total),
    )


def _receive_payment_effects(txn):
    total = money(txn.total_amount)
    from_party = txn.customer_id is not None or txn.company_id is not None
    return Effects(
        customer=-total if txn.customer_id is not None else ZERO,
        company=-total if txn.company_id is not None else ZERO,
        # Cash handed over by a driver leaves that driver's wallet
        driver_cash=ZERO if from_party else -total,
        **_settlement(txn, total),
    )


def _debit_note_effects(txn):
    return Effects(customer=money(txn.total_amount))


def _credit_note_effects(txn):
    return Effects(customer=-money(txn.total_amount))


def _advance_payment_effects(txn):
    total = money(txn.total_amount)
    return Effects(customer=-total, cash=total)


def _cash_to_bank_effects(txn):
    total = money(txn.total_amount)
    return Effects(cash=-total, bank=total)


def _bank_to_bank_effects(txn):
    total = money(txn.total_amount)
    return Effects(bank=-total, to_bank=total)


def _signed_adjustment(txn):
    total = money(txn.total_amount)
    return total if txn.sub_type == "ADD" else -total


def _update_bank_effects(txn):
    return Effects(bank=_signed_adjustment(txn))


def _update_cash_effects(txn):
    return Effects(cash=_signed_adjustment(txn))


RULES = {
    TransactionType.BUY: _buy_effects,
    TransactionType.SHOP_BUY: _no_effect,
    TransactionType.SELL: _sell_effects,
    TransactionType.PALTI: _no_effect,
    TransactionType.WEIGHT_LOSS: _no_effect,
    TransactionType.FUEL: _no_effect,
    TransactionType.EXPENSE: _expense_effects,
    TransactionType.PAYMENT: _payment_effects,
    TransactionType.RECEIVE_PAYMENT: _receive_payment_effects,
    TransactionType.DEBIT_NOTE: _debit_note_effects,
    TransactionType.CREDIT_NOTE: _credit_note_effects,
    TransactionType.ADVANCE_PAYMENT: _advance_payment_effects,
    TransactionType.CASH_TO_BANK: _cash_to_bank_effects,
    TransactionType.BANK_TO_BANK: _bank_to_bank_effects,
    TransactionType.UPDATE_BANK: _update_bank_effects,
    TransactionType.UPDATE_CASH: _update_cash_effects,
}


def compute_effects(txn: Transaction) -> Effects:
    return RULES[txn.type](txn)


def stored_effects(txn: Transaction) -> Effects:
    return Effects(
        cash=to_decimal(txn.cash_delta),
        bank=to_decimal(txn.bank_delta),
        to_bank=to_decimal(txn.to_bank_delta),
        customer=to_decimal(txn.customer_delta),
        company=-to_decimal(txn.company_delta),
        driver_cash=to_decimal(txn.driver_cash_delta),
        driver_upi=to_decimal(txn.driver_upi_delta),
    )


def _store_effects(txn: Transaction, effects: Effects):
    txn.cash_delta = effects.cash
    txn.bank_delta = effects.bank
    txn.to_bank_delta = effects.to_bank
    txn.customer_delta = effects.customer
    # Stored as the change made to Company.amount_due
    txn.company_delta = -effects.company
    txn.driver_cash_delta = effects.driver_cash
    txn.driver_upi_delta = effects.driver_upi


def apply_effects(db: Session, txn: Transaction, effects: Effects):
    """Write `effects` to every entity the row links to.

    Linked entities are looked up even when their share is zero, so a row
    pointing at a deleted customer, company or bank fails instead of drifting.
    """
    if txn.customer_id is not None:
        balances.apply_customer_delta(db, txn.customer_id, effects.customer)
    if txn.company_id is not None:
        balances.apply_company_due_delta(db, txn.company_id, -effects.company)
    # Driver wallet, an explicit step of the same unit
    if effects.driver_cash != ZERO or effects.driver_upi != ZERO:
        balances.apply_driver_wallet_delta(db, txn.driver_id, effects.driver_cash, effects.driver_upi)
    if txn.bank_id is not None:
        balances.apply_bank_delta(db, txn.bank_id, effects.bank)
    if txn.to_bank_id is not None:
        balances.apply_bank_delta(db, txn.to_bank_id, effects.to_bank)
    balances.apply_cash_delta(db, effects.cash)


# ---------------------------------------------------------------------------
# Request -> row
# ---------------------------------------------------------------------------

def _is_admin(principal: dict) -> bool:
    return principal.get("role") == UserRole.ADMIN.value


def resolve_driver_id(request, principal: dict) -> int:
    """Acting driver: the principal, unless an admin names another driver."""
    if _is_admin(principal):
        return request.driver_id or principal["user_id"]
    if request.driver_id not in (None, principal["user_id"]):
        raise PermissionDenied("Drivers can only record their own transactions")
    return principal["user_id"]


def _requests_driver_hand_over(request) -> bool:
    party = getattr(request, "party", None)
    return request.type == "RECEIVE_PAYMENT" and party is not None and party.kind == PartyKind.DRIVER


def is_driver_hand_over(txn: Transaction) -> bool:
    """RECEIVE_PAYMENT rows where a driver handed cash to the business."""
    return (
        txn.type == TransactionType.RECEIVE_PAYMENT
        and txn.customer_id is None
        and txn.company_id is None
    )


def _party_ids(party):
    if party is None:
        return None, None
    if party.kind == PartyKind.CUSTOMER:
        return party.id, None
    if party.kind == PartyKind.COMPANY:
        return None, party.id
    return None, None


def _base_row(request, driver_id: int, **values) -> Transaction:
    return Transaction(
        type=TransactionType(request.type),
        driver_id=driver_id,
        date=request.date or now(),
        details=request.details,
        **values,
    )


def _build_buy(db, request, driver_id):
    if request.company_id is not None:
        balances.get_company(db, request.company_id)
    return _base_row(
        request, driver_id,
        unit=Unit.KG,
        amount=quantity(request.amount),
        rate=request.rate,
        total_amount=money(request.total_amount),
        company_id=request.company_id,
    )


def _build_shop_buy(db, request, driver_id):
    return _base_row(
        request, driver_id,
        unit=Unit.KG,
        amount=quantity(request.amount),
        rate=request.rate,
        total_amount=money(request.total_amount),
    )


def _build_sell(db, request, driver_id):
    customer_id, company_id = _party_ids(request.party)
    return _base_row(
        request, driver_id,
        unit=Unit.KG,
        amount=quantity(request.amount),
        rate=request.rate,
        total_amount=money(request.total_amount),
        payment_cash=money(request.payment_cash),
        payment_upi=money(request.payment_upi),
        bank_id=request.bank_id,
        customer_id=customer_id,
        company_id=company_id,
    )


def _build_palti(db, request, driver_id):
    if request.transfer_driver_id is not None:
        balances.get_driver(db, request.transfer_driver_id)
    return _base_row(
        request, driver_id,
        sub_type=request.sub_type,
        unit=Unit.KG,
        amount=quantity(request.amount),
        transfer_driver_id=request.transfer_driver_id,
    )


def _build_weight_loss(db, request, driver_id):
    return _base_row(
        request, driver_id,
        sub_type=request.sub_type,
        unit=Unit.KG,
        amount=quantity(request.amount),
    )


def _build_fuel(db, request, driver_id):
    vehicle_id = request.vehicle_id
    if vehicle_id is None:
        vehicle_id = balances.get_driver(db, driver_id).vehicle_id
    if vehicle_id is not None:
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).with_for_update().first()
        if vehicle is None:
            raise EntityNotFound(f"Vehicle {vehicle_id} not found", code="VEHICLE_NOT_FOUND")
        if request.current_km is not None:
            vehicle.current_km = request.current_km
            if request.image_url:
                vehicle.image_url = request.image_url
    return _base_row(
        request, driver_id,
        unit=Unit.LITRE,
        amount=quantity(request.amount),
        rate=request.rate,
        total_amount=money(request.total_amount),
        vehicle_id=vehicle_id,
        image_url=request.image_url,
        location=request.location,
        gps_lat=request.gps_lat,
        gps_lng=request.gps_lng,
    )


def _build_payment(db, request, driver_id):
    customer_id, company_id = _party_ids(request.party)
    txn = _base_row(
        request, driver_id,
        sub_type=request.party.kind.value,
        unit=Unit.INR,
        total_amount=money(request.total_amount),
        bank_id=request.bank_id,
        customer_id=customer_id,
        company_id=company_id,
    )
    db.add(Payment(
        transaction=txn,
        amount=txn.total_amount,
        description=request.details,
        date=txn.date,
        bank_id=request.bank_id,
        customer_id=customer_id,
        company_id=company_id,
    ))
    return txn


def _build_receive_payment(db, request, driver_id):
    customer_id, company_id = _party_ids(request.party)
    if request.party.kind == PartyKind.DRIVER:
        # The handing-over driver owns the row so the wallet step hits them
        driver_id = balances.get_driver(db, request.party.id).id
    return _base_row(
        request, driver_id,
        sub_type=request.party.kind.value,
        unit=Unit.INR,
        total_amount=money(request.total_amount),
        bank_id=request.bank_id,
        customer_id=customer_id,
        company_id=company_id,
    )


def _build_note(db, request, driver_id):
    return _base_row(
        request, driver_id,
        unit=Unit.INR,
        amount=quantity(request.amount),
        rate=request.rate,
        total_amount=money(request.total_amount),
        customer_id=request.customer_id,
    )


def _build_advance_payment(db, request, driver_id):
    return _base_row(
        request, driver_id,
        unit=Unit.INR,
        total_amount=money(request.total_amount),
        customer_id=request.customer_id,
    )


def _build_cash_to_bank(db, request, driver_id):
    bank = balances.get_bank(db, request.bank_id)
    txn = _base_row(
        request, driver_id,
        unit=Unit.INR,
        total_amount=money(request.total_amount),
        bank_id=bank.id,
    )
    txn.cash_to_bank = CashToBank(
        bank_id=bank.id,
        bank_name=bank.name,
        amount=txn.total_amount,
        date=txn.date,
    )
    return txn


def _build_bank_to_bank(db, request, driver_id):
    return _base_row(
        request, driver_id,
        unit=Unit.INR,
        total_amount=money(request.total_amount),
        bank_id=request.bank_id,
        to_bank_id=request.to_bank_id,
    )


def _build_update_bank(db, request, driver_id):
    bank = balances.get_bank(db, request.bank_id, lock=True)
    difference = money(request.balance) - to_decimal(bank.balance)
    if difference == ZERO:
        raise ValidationFailed(f"Bank '{bank.name}' balance is already {bank.balance}")
    return _base_row(
        request, driver_id,
        sub_type="ADD" if difference > ZERO else "SUBTRACT",
        unit=Unit.INR,
        total_amount=abs(difference),
        bank_id=bank.id,
    )


def _build_update_cash(db, request, driver_id):
    adjustment = money(request.amount)
    return _base_row(
        request, driver_id,
        sub_type="ADD" if adjustment > ZERO else "SUBTRACT",
        unit=Unit.INR,
        total_amount=abs(adjustment),
    )


BUILDERS = {
    "BUY": _build_buy,
    "SHOP_BUY": _build_shop_buy,
    "SELL": _build_sell,
    "PALTI": _build_palti,
    "WEIGHT_LOSS": _build_weight_loss,
    "FUEL": _build_fuel,
    "PAYMENT": _build_payment,
    "RECEIVE_PAYMENT": _build_receive_payment,
    "DEBIT_NOTE": _build_note,
    "CREDIT_NOTE": _build_note,
    "ADVANCE_PAYMENT": _build_advance_payment,
    "CASH_TO_BANK": _build_cash_to_bank,
    "BANK_TO_BANK": _build_bank_to_bank,
    "UPDATE_BANK": _build_update_bank,
    "UPDATE_CASH": _build_update_cash,
}


# ---------------------------------------------------------------------------
# Create / edit / delete
# ---------------------------------------------------------------------------

def _audit(db: Session, txn: Transaction, principal: dict, action: str, old_values=None):
    create_audit_log(db, AuditLogCreate(
        table_name='transactions',
        record_id=txn.id,
        changed_by=get_user_identifier(principal),
        action=action,
        old_values=old_values or {},
        new_values=sqlalchemy_to_dict(txn) if action != 'DELETE' else {},
    ))


def _lock_driver(db: Session, txn: Transaction):
    if txn.driver_id is not None:
        # Serializes stock checks and wallet updates for one driver
        balances.get_driver(db, txn.driver_id, lock=True)


def _record(db: Session, txn: Transaction, principal: dict) -> Transaction:
    txn.created_by = get_user_identifier(principal)
    _lock_driver(db, txn)
    ensure_stock_after_change(db, txn, ZERO, signed_quantity(txn))

    effects = compute_effects(txn)
    apply_effects(db, txn, effects)
    _store_effects(txn, effects)

    db.add(txn)
    db.flush()
    _audit(db, txn, principal, 'CREATE')
    logger.info(
        f"{txn.type.value} transaction {txn.id} recorded for driver {txn.driver_id} "
        f"by user {get_user_identifier(principal)}"
    )
    return txn


def record_transaction(db: Session, request, principal: dict) -> Transaction:
    """Create one ledger entry from a typed request and apply its effects."""
    txn_type = TransactionType(request.type)
    if txn_type in ADMIN_ONLY_TYPES and not _is_admin(principal):
        raise PermissionDenied(f"Only admins can record {txn_type.value} transactions")
    if _requests_driver_hand_over(request) and not _is_admin(principal):
        raise PermissionDenied("Only admins can take cash over from a driver")
    driver_id = resolve_driver_id(request, principal)
    txn = BUILDERS[request.type](db, request, driver_id)
    return _record(db, txn, principal)


def record_expense(db: Session, expense: Expense, principal: dict) -> Transaction:
    """Record the EXPENSE mirror row of a new expense and move the money."""
    if expense.type == ExpenseType.BANK and expense.bank_id is None:
        raise ValidationFailed("Bank expenses need a bank_id")
    db.add(expense)
    txn = Transaction(
        type=TransactionType.EXPENSE,
        sub_type=expense.category,
        unit=Unit.INR,
        total_amount=money(expense.amount),
        bank_id=expense.bank_id if expense.type == ExpenseType.BANK else None,
        driver_id=expense.driver_id,
        details=expense.description,
        date=expense.date or now(),
        expense=expense,
    )
    return _record(db, txn, principal)


def get_transaction_for_update(db: Session, transaction_id: int) -> Transaction:
    txn = db.query(Transaction).filter(Transaction.id == transaction_id).with_for_update().first()
    if txn is None:
        raise EntityNotFound(f"Transaction {transaction_id} not found", code="TRANSACTION_NOT_FOUND")
    return txn


def _check_ownership(txn: Transaction, principal: dict):
    if _is_admin(principal):
        return
    if txn.type in ADMIN_ONLY_TYPES or is_driver_hand_over(txn) or txn.driver_id != principal["user_id"]:
        raise PermissionDenied("You can only change your own transactions")


def _validate_edited_row(txn: Transaction):
    if txn.type in STOCK_TYPES | {TransactionType.FUEL} and to_decimal(txn.amount) <= ZERO:
        raise ValidationFailed("Quantity must be greater than zero")
    if txn.type in POSITIVE_TOTAL_TYPES and to_decimal(txn.total_amount) <= ZERO:
        raise ValidationFailed("Amount must be greater than zero")


def _sync_satellites(db: Session, txn: Transaction):
    if txn.expense is not None:
        txn.expense.amount = txn.total_amount
        txn.expense.description = txn.details
    if txn.cash_to_bank is not None:
        txn.cash_to_bank.amount = txn.total_amount
    for payment in db.query(Payment).filter(Payment.transaction_id == txn.id).all():
        payment.amount = txn.total_amount
        payment.description = txn.details


def edit_transaction(db: Session, transaction_id: int, changes: TransactionEdit, principal: dict) -> Transaction:
    """Edit figures of an existing row and apply only the difference in effects."""
    txn = get_transaction_for_update(db, transaction_id)
    _check_ownership(txn, principal)

    updates = changes.model_dump(exclude_unset=True)
    if txn.type != TransactionType.SELL and ({"payment_cash", "payment_upi"} & set(updates)):
        raise ValidationFailed("Only sales carry a cash/UPI split")

    old_values = sqlalchemy_to_dict(txn)
    old_quantity = signed_quantity(txn)
    old_effects = stored_effects(txn)

    for field, value in updates.items():
        if field == "amount":
            value = quantity(value)
        elif field in ("total_amount", "payment_cash", "payment_upi"):
            value = money(value)
        setattr(txn, field, value)
    _validate_edited_row(txn)

    _lock_driver(db, txn)
    ensure_stock_after_change(db, txn, old_quantity, signed_quantity(txn))

    new_effects = compute_effects(txn)
    apply_effects(db, txn, new_effects - old_effects)
    _store_effects(txn, new_effects)
    _sync_satellites(db, txn)

    txn.updated_at = now()
    txn.updated_by = get_user_identifier(principal)
    db.flush()
    _audit(db, txn, principal, 'UPDATE', old_values=old_values)
    logger.info(f"{txn.type.value} transaction {txn.id} edited by user {get_user_identifier(principal)}")
    return txn


def delete_transaction(db: Session, transaction_id: int, principal: dict) -> Transaction:
    """Reverse exactly what the row applied, then soft-delete it and its satellite."""
    txn = get_transaction_for_update(db, transaction_id)
    _check_ownership(txn, principal)

    old_values = sqlalchemy_to_dict(txn)
    _lock_driver(db, txn)
    ensure_stock_after_change(db, txn, signed_quantity(txn), ZERO)
    apply_effects(db, txn, -stored_effects(txn))

    deleted_at = now()
    deleted_by = get_user_identifier(principal)
    txn.deleted_at = deleted_at
    txn.deleted_by = deleted_by
    satellites = [txn.expense, txn.cash_to_bank]
    satellites += db.query(Payment).filter(Payment.transaction_id == txn.id).all()
    for satellite in satellites:
        if satellite is not None:
            satellite.deleted_at = deleted_at
            satellite.deleted_by = deleted_by

    db.flush()
    _audit(db, txn, principal, 'DELETE', old_values=old_values)
    logger.info(f"{txn.type.value} transaction {txn.id} deleted by user {deleted_by}")
    return txn
