"""
Test configuration and fixtures.
Uses an in-memory SQLite database shared across threads. Outbound Telegram
calls are replaced by a mock notifier.
"""
import os

os.environ["LOG_FILE"] = ""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from purchase_tracker import models  # noqa: F401  registers tables on Base.metadata
from purchase_tracker import services
from purchase_tracker.config import settings
from purchase_tracker.database import Base, get_db
from purchase_tracker.main import app
from purchase_tracker.telegram import TelegramNotifier, get_notifier


@pytest.fixture(autouse=True)
def no_webhook_secret(monkeypatch):
    """Every test starts in unsigned mode unless it sets a secret itself."""
    monkeypatch.setattr(settings, "ship24_webhook_secret", None)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def mock_notifier():
    notifier = MagicMock(spec=TelegramNotifier)
    notifier.send_message = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def client(db, mock_notifier):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: mock_notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def purchase(db):
    return services.create_purchase(db, "Amazon", "112-7654321")


@pytest.fixture
def shipment(db, purchase):
    return services.create_shipment(db, purchase.id, "1Z999", "UPS")
