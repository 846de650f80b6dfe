"""
Test configuration and fixtures.
"""
import os
import pytest
from typing import Any, Dict, Generator, List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Settings are read at import time, so the environment must be set first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-that-is-long-enough-1234"
os.environ["XENDIT_SECRET_KEY"] = "xnd_development_test_key"
os.environ.pop("XENDIT_CALLBACK_TOKEN", None)
os.environ.pop("CLEAR_CART_ON_CHECKOUT", None)

from kasir.main import app
from kasir.core.deps import get_payment_gateway
from kasir.core.exceptions import InvalidStateError
from kasir.core.security import create_access_token, hash_password
from kasir.db.base import Base
from kasir.db.session import get_db
from kasir.models import (
    AuthAccount,
    Category,
    Outlet,
    OutletStatus,
    Product,
    Role,
    User,
    UserOutlet,
)
from kasir.schemas.xendit import QrPayment


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "password123"


class FakeXenditClient:
    """In-memory stand-in for XenditClient that records every call."""

    def __init__(self):
        self.qr_codes: Dict[str, QrPayment] = {}
        self.created: List[Dict[str, Any]] = []
        self.simulated: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def create_qr_code(self, amount, reference_id, items) -> QrPayment:
        if self.error:
            raise self.error
        qr = QrPayment(
            id=f"qr_{len(self.created) + 1}",
            reference_id=reference_id,
            status="ACTIVE",
            amount=amount,
            currency="IDR",
            qr_string="00020101021226660014ID.CO.QRIS.WWW",
        )
        self.created.append({"amount": amount, "reference_id": reference_id, "items": items})
        self.qr_codes[qr.id] = qr
        return qr

    def get_qr_code(self, qr_id: str) -> QrPayment:
        return self.qr_codes[qr_id]

    def simulate_payment(self, qr_id: str, amount: Optional[int] = None) -> Dict[str, Any]:
        self.simulated.append({"id": qr_id, "amount": amount})
        return {"id": f"qrpy_{qr_id}", "qr_id": qr_id, "amount": amount, "status": "SUCCEEDED"}

    def simulate_payment_qr_code(self, qr_id: str) -> Dict[str, Any]:
        qr = self.get_qr_code(qr_id)
        if qr.status != "SUCCEEDED":
            raise InvalidStateError(f"QR code {qr_id} is not payable in status {qr.status}")
        return self.simulate_payment(qr_id, qr.amount)

    def get_payment_request(self, payment_request_id: str) -> Dict[str, Any]:
        return {"id": payment_request_id, "status": "SUCCEEDED"}


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh in-memory schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway() -> FakeXenditClient:
    return FakeXenditClient()


@pytest.fixture(scope="function")
def client(db: Session, gateway: FakeXenditClient) -> Generator[TestClient, None, None]:
    """Create test client with database session and gateway overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def make_user(db: Session, email: str, role: Role, outlet: Optional[Outlet] = None, fullname: str = "Test User") -> User:
    account = AuthAccount(email=email, hashed_password=hash_password(PASSWORD))
    db.add(account)
    db.flush()
    user = User(account_id=account.id, fullname=fullname, email=email, role=role.value)
    db.add(user)
    db.flush()
    if outlet is not None:
        db.add(UserOutlet(user_id=user.id, outlet_id=outlet.id))
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_access_token(subject=str(user.account_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def outlet(db: Session) -> Outlet:
    outlet = Outlet(name="Kasir Sudirman", address="Jl. Sudirman 1", status=OutletStatus.ACTIVE.value,
                    open_at="08:00", closed_at="22:00")
    db.add(outlet)
    db.commit()
    db.refresh(outlet)
    return outlet


@pytest.fixture
def other_outlet(db: Session) -> Outlet:
    outlet = Outlet(name="Kasir Thamrin", address="Jl. Thamrin 2", status=OutletStatus.ACTIVE.value)
    db.add(outlet)
    db.commit()
    db.refresh(outlet)
    return outlet


@pytest.fixture
def closed_outlet(db: Session) -> Outlet:
    outlet = Outlet(name="Kasir Kemang", address="Jl. Kemang 3", status=OutletStatus.INACTIVE.value)
    db.add(outlet)
    db.commit()
    db.refresh(outlet)
    return outlet


@pytest.fixture
def owner(db: Session) -> User:
    return make_user(db, "owner@example.com", Role.OWNER, fullname="Olivia Owner")


@pytest.fixture
def manager(db: Session, outlet: Outlet) -> User:
    return make_user(db, "manager@example.com", Role.MANAGER, outlet, fullname="Mahmud Manager")


@pytest.fixture
def staff(db: Session, outlet: Outlet) -> User:
    return make_user(db, "staff@example.com", Role.STAFF, outlet, fullname="Sari Staff")


@pytest.fixture
def other_staff(db: Session, other_outlet: Outlet) -> User:
    return make_user(db, "other.staff@example.com", Role.STAFF, other_outlet, fullname="Budi Staff")


@pytest.fixture
def owner_headers(owner: User) -> dict:
    return headers_for(owner)


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return headers_for(manager)


@pytest.fixture
def staff_headers(staff: User) -> dict:
    return headers_for(staff)


@pytest.fixture
def other_staff_headers(other_staff: User) -> dict:
    return headers_for(other_staff)


@pytest.fixture
def category(db: Session) -> Category:
    category = Category(name="Drinks")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def products(db: Session, outlet: Outlet, category: Category) -> List[Product]:
    items = [
        Product(name="Kopi Susu", price=18000, category_id=category.id, outlet_id=outlet.id),
        Product(name="Es Teh", price=5000, category_id=category.id, outlet_id=outlet.id),
    ]
    db.add_all(items)
    db.commit()
    for item in items:
        db.refresh(item)
    return items


@pytest.fixture
def user_factory(db: Session):
    """Build extra users: user_factory(email, role, outlet=None)."""
    def _make(email: str, role: Role, outlet: Optional[Outlet] = None, fullname: str = "Test User") -> User:
        return make_user(db, email, role, outlet, fullname=fullname)
    return _make


@pytest.fixture
def auth_headers_for():
    return headers_for
