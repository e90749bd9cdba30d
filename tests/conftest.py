import os

os.environ["STOCKROOM_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("STOCKROOM_SECRET_KEY", "test-secret-key")

import logging
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

import app.models  # noqa: F401
from app.core.logging_config import LogContext, configure_logging, reset_logging
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.session import build_engine, get_db
from app.main import app
from app.models.enums import AppRole
from app.models.inventory_item import InventoryItem
from app.models.role import Role
from app.models.user import User
from app.services.rbac import ROLE_PERMISSIONS, serialize_permissions


TEST_PASSWORD = "Passw0rd!"


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def roles(db) -> dict[str, Role]:
    rows = {}
    for role_name in ROLE_PERMISSIONS:
        role = Role(name=role_name, permissions=serialize_permissions(role_name))
        db.add(role)
        rows[role_name] = role
    db.commit()
    return rows


@pytest.fixture
def make_user(db, roles, password_hash):
    counter = {"n": 0}

    def _make(role: AppRole = AppRole.EMPLOYEE, name: str | None = None) -> User:
        counter["n"] += 1
        label = name or f"{role.value.lower()}{counter['n']}"
        user = User(
            email=f"{label}@stockroom.test",
            name=label.title(),
            username=label,
            hashed_password=password_hash,
            role_id=roles[role.value].id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user(AppRole.ADMIN, "admin")


@pytest.fixture
def manager(make_user) -> User:
    return make_user(AppRole.MANAGER, "manager")


@pytest.fixture
def employee(make_user) -> User:
    return make_user(AppRole.EMPLOYEE, "employee")


@pytest.fixture
def make_item(db, admin):
    """Insert an item row directly at version 0. A non-zero quantity bypasses the ledger."""
    counter = {"n": 0}

    def _make(
        name: str = "Paper Ream", reorder_level: int = 5, price: str = "10.00", quantity: int = 0
    ) -> InventoryItem:
        counter["n"] += 1
        item = InventoryItem(
            sku=f"TST-{counter['n']:05d}",
            name=name,
            unit="pcs",
            category="Stationery",
            quantity_on_hand=quantity,
            price_per_item=Decimal(price),
            reorder_level=reorder_level,
            max_level=100,
            item_version=0,
            created_by=admin.id,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, role=user.role_name, token_version=user.token_version)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)
        self.lines.append(self.format(record))


@pytest.fixture
def log_capture():
    reset_logging()
    handler = ListHandler()
    configure_logging(level=logging.DEBUG, handler=handler)
    yield handler
    reset_logging()
    LogContext.clear()
