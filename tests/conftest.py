"""Shared test fixtures for GoldKeeper."""

from datetime import datetime, timedelta

import pytest

NOW = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file with all tables created."""
    from config import reload_settings
    from db_engine import init_db, reset_engine
    from services.gold_price import reset_price_service

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("GOLD_PRICE_SOURCE", "static")
    monkeypatch.setenv("STATIC_GOLD_PRICE", "65.50")
    reload_settings()
    reset_engine()
    reset_price_service()
    init_db()
    yield
    reset_engine()
    reset_price_service()
    reload_settings()


@pytest.fixture
def user():
    from repositories import UserRepository
    return UserRepository.add(email="aisha@example.com", name="Aisha")


@pytest.fixture
def other_user():
    from repositories import UserRepository
    return UserRepository.add(email="omar@example.com", name="Omar")


@pytest.fixture
def add_tx():
    """Insert a transaction dated `days_ago` days before NOW, without a zakat recompute."""
    from repositories import TransactionRepository

    def _add(user_id, transaction_type, weight, days_ago=0, price="60.00"):
        return TransactionRepository.add(
            user_id=user_id,
            transaction_type=transaction_type,
            weight_grams=weight,
            price_per_gram=price,
            transaction_date=NOW - timedelta(days=days_ago),
        )

    return _add


class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start=NOW):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
