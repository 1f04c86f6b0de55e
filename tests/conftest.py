"""Pytest fixtures for testing"""

import pytest
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from tradehub.api.main import create_app
from tradehub.config import settings
from tradehub.infrastructure.database.models import Agent, BankAccount, Base, UserProfile
from tradehub.infrastructure.database.repositories import AccountRepository, ProfileRepository
from tradehub.infrastructure.database.session import get_db, get_session_factory

ADMIN_ID = "admin_1"

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """No webhook, no processing delay, one known admin"""
    monkeypatch.setattr(settings, "events_webhook_url", "")
    monkeypatch.setattr(settings, "document_processing_seconds", 0.0)
    monkeypatch.setattr(settings, "admin_user_ids", [ADMIN_ID])
    monkeypatch.setattr(settings, "kyc_required", False)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    return TestClient(app)


@pytest.fixture
def make_customer(db: Session) -> Callable[..., BankAccount]:
    """Open a profile and account for user_id with the given balance"""

    def _make(user_id: str, balance_cents: int = 0, first_name: str = "Test", last_name: str = "User",
              email: str | None = None, country: str | None = "Morocco") -> BankAccount:
        profiles = ProfileRepository(db)
        profiles.create_profile(
            user_id,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{user_id}@example.com",
            country=country,
        )
        profiles.create_default_settings(user_id)
        account = AccountRepository(db).create_for_user(user_id)
        account.balance_cents = balance_cents
        account.status = "Active"
        db.commit()
        return account

    return _make


@pytest.fixture
def make_agent(db: Session) -> Callable[..., Agent]:
    counter = {"n": 0}

    def _make(name: str = "Casa Cash", country: str = "Morocco", rating: float = 4.5, **fields) -> Agent:
        counter["n"] += 1
        agent = Agent(
            name=name,
            code=f"AGT{counter['n']:03d}",
            country=country,
            city=fields.pop("city", "Casablanca"),
            address=fields.pop("address", "1 Boulevard Zerktouni"),
            phone=fields.pop("phone", "+212 600 000 001"),
            rating=rating,
            supported_currencies=["EUR"],
            **fields,
        )
        db.add(agent)
        db.commit()
        return agent

    return _make


@pytest.fixture
def profile_of(db: Session) -> Callable[[str], UserProfile]:
    return lambda user_id: ProfileRepository(db).get_by_user(user_id)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-User-ID": ADMIN_ID}
