import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from auth import create_token, hash_password
from database import Base, get_db
from main import app
from models.user import User
from routes.expense_routes import get_now
from services.expense_service import ExpenseService
from services.mail_service import CodeSender, get_code_sender

# Wednesday; "Week 34 (2025)" runs Mon 18 Aug to Sun 24 Aug.
FIXED_NOW = datetime(2025, 8, 20, 12, 0, tzinfo=timezone.utc)


class RecordingSender(CodeSender):
    def __init__(self):
        self.sent = []

    def send_code(self, destination, code, purpose, minutes):
        self.sent.append({"to": destination, "code": code, "purpose": purpose})

    def last_code(self):
        return self.sent[-1]["code"]


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def make_user(db, username, email, password="secret123"):
    user = User(username=username, email=email, hashed_password=hash_password(password), is_verified=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return make_user(db, "alice", "alice@example.com")


@pytest.fixture
def other_user(db):
    return make_user(db, "bob", "bob@example.com")


@pytest.fixture
def add_expense(db):
    """Record an expense dated `when`; creation time defaults to the same instant."""

    def _add(owner, when, amount=10, category="food", name="item", created=None):
        return ExpenseService.record_expense(
            db,
            owner.id,
            {"name": name, "amount": amount, "category": category, "date": when},
            now=created or when,
        )

    return _add


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(db, sender):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    app.dependency_overrides[get_code_sender] = lambda: sender
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(user):
    return {"Authorization": f"Bearer {create_token({'user_id': user.id, 'username': user.username})}"}
