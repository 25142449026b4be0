"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Tests run against an in-memory database and never call the provider
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEMO_MODE"] = "true"
os.environ["DEMO_DELAY_SECONDS"] = "0"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["SAVE_ANALYSES"] = "true"
os.environ["SEED_DEMO_DATA"] = "false"

from finai.core.config import get_settings
from finai.core.database import Base, get_engine, get_session_local


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session on a fresh schema"""
    import finai.models  # noqa: F401

    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = get_session_local()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """Create test client with database dependency override"""
    from fastapi.testclient import TestClient

    from finai.core.database import get_db
    from finai.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    """The cached application settings (demo mode, no delay)"""
    return get_settings()


@pytest.fixture
def sample_transactions():
    """The dashboard's sample ledger as request payloads"""
    return [
        {"id": 1, "date": "2026-01-01", "description": "Netflix", "amount": -15.99, "category": "Suscripción"},
        {"id": 2, "date": "2026-01-01", "description": "Spotify Premium", "amount": -9.99, "category": "Suscripción"},
        {"id": 3, "date": "2025-12-30", "description": "Amazon Prime", "amount": -14.99, "category": "Suscripción"},
        {"id": 4, "date": "2025-12-29", "description": "Supermercado", "amount": -85.50, "category": "Comida"},
        {"id": 5, "date": "2025-12-28", "description": "Gasolina", "amount": -45.00, "category": "Transporte"},
        {"id": 6, "date": "2025-12-27", "description": "Disney+", "amount": -10.99, "category": "Suscripción"},
        {"id": 7, "date": "2025-12-26", "description": "Restaurante", "amount": -67.80, "category": "Comida"},
        {"id": 8, "date": "2025-12-25", "description": "Apple Music", "amount": -10.99, "category": "Suscripción"},
        {"id": 9, "date": "2025-12-24", "description": "Uber", "amount": -23.50, "category": "Transporte"},
        {"id": 10, "date": "2025-12-23", "description": "HBO Max", "amount": -9.99, "category": "Suscripción"},
    ]
