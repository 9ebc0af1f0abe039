import os
import tempfile

# Settings are read at import time.
os.environ.setdefault("JWT_SECRET", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_INIT_MODE", "create_all")
os.environ.setdefault("RUN_MAINTENANCE_WORKER", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "dashboard-api-tests.log"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dashboard_api.core.database import Base, get_db
from dashboard_api.core.security import get_password_hash, hash_api_key
from dashboard_api.main import app
from dashboard_api.models.admin import Admin
from dashboard_api.models.device import Device
from dashboard_api.models.user import User
from dashboard_api.services.rate_limiter import IPRateLimiter

LOGIN_RATE_LIMIT = 5


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous_limiter = app.state.rate_limiter
    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter = IPRateLimiter(LOGIN_RATE_LIMIT, ["/api/v1/auth/login"])
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.rate_limiter = previous_limiter


@pytest.fixture
def make_admin(db):
    def _make(email="admin@example.com", password="admin-password", token_version=1):
        admin = Admin(email=email, password_hash=get_password_hash(password), token_version=token_version)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


@pytest.fixture
def make_user(db):
    def _make(email="alice@example.com", password="alice-password", name="Alice", admin_id=None, token_version=1):
        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            admin_id=admin_id,
            token_version=token_version,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_device(db):
    def _make(device_id="sensor-001", api_key="k" * 64, name="Sensor"):
        device = Device(device_id=device_id, name=name, api_key_hash=hash_api_key(api_key))
        db.add(device)
        db.commit()
        db.refresh(device)
        return device

    return _make
