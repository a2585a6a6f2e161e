"""Shared pytest fixtures for the ledger backend tests."""

import os
import tempfile
from decimal import Decimal

# The app reads these at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ledger-logs-"))
os.environ.setdefault("APP_TIMEZONE", "Asia/Kolkata")
os.environ["ENABLE_SCHEDULER"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models.banks import Bank  # noqa: E402
from models.companies import Company  # noqa: E402
from models.customers import Customer  # noqa: E402
from models.total_capital import TotalCapital  # noqa: E402
from models.users import User, UserRole, UserStatus  # noqa: E402
from models.vehicles import Vehicle  # noqa: E402
from utils.auth_utils import create_access_token, hash_password  # noqa: E402
from utils.timeutils import now  # noqa: E402

# One hash for every fixture user keeps the suite fast
PASSWORD = "secret"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def _schema():
    """Recreate every table around each test."""

    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------


def _make_user(db, name, mobile, role, status=UserStatus.ACTIVE, **extra):
    user = User(
        name=name,
        mobile=mobile,
        hashed_password=PASSWORD_HASH,
        role=role,
        status=status,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def principal(user):
    """The dict get_current_user would return for `user`."""

    return {"user_id": user.id, "role": user.role.value, "status": user.status.value, "name": user.name}


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin(db):
    return _make_user(db, "Admin", "9000000001", UserRole.ADMIN)


@pytest.fixture
def driver(db):
    return _make_user(db, "Ravi", "9000000002", UserRole.DRIVER)


@pytest.fixture
def other_driver(db):
    return _make_user(db, "Suresh", "9000000003", UserRole.DRIVER)


@pytest.fixture
def make_user(db):
    """Factory for extra users, e.g. blocked drivers."""

    def _factory(name, mobile, role=UserRole.DRIVER, status=UserStatus.ACTIVE, **extra):
        return _make_user(db, name, mobile, role, status, **extra)

    return _factory


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def driver_headers(driver):
    return auth_headers(driver)


# ---------------------------------------------------------------------------
# Balance store
# ---------------------------------------------------------------------------


@pytest.fixture
def capital(db, monkeypatch):
    """Cash box holding 1000 with TOTAL_CASH_ID pointing at it."""

    record = TotalCapital(total_cash=Decimal("1000"), today_cash=Decimal("0"), cash_last_updated_at=now())
    db.add(record)
    db.commit()
    db.refresh(record)
    monkeypatch.setenv("TOTAL_CASH_ID", str(record.id))
    return record


@pytest.fixture
def bank(db):
    record = Bank(name="State Bank", label="Current", balance=Decimal("500"))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def second_bank(db):
    record = Bank(name="Co-op Bank", label="Savings", balance=Decimal("0"))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def customer(db):
    record = Customer(name="Hotel Annapurna", mobile="9800000001", balance=Decimal("0"))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def company(db):
    record = Company(name="Green Farms", amount_due=Decimal("0"))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def vehicle(db):
    record = Vehicle(registration="TN01AB1234", status="ACTIVE")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def reload(db, *objs):
    """Drop cached state so assertions see what the last request committed."""

    db.expire_all()
    for obj in objs:
        db.refresh(obj)
    return objs[0] if len(objs) == 1 else objs
