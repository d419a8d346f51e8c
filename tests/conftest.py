import pytest
import requests
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest import mock


def passthrough_decorator(*args, **kwargs):
    """Passthrough decorator that doesn't do rate limiting"""

    def decorator(func):
        return func

    return decorator


mock.patch("slowapi.Limiter.limit", passthrough_decorator).start()
mock.patch("slowapi.Limiter.shared_limit", passthrough_decorator).start()

# ruff: noqa: E402
from app.main import app
from app.database import Base, get_db
from app.core.bounce import PageContext
from app.core.config import settings
from app.core.maintenance import MaintenanceController
from app.core.maintenance_state import MaintenanceConfig, MaintenanceMode
from app.core.security import create_access_token
from app.core.settings_api import get_ocinstance
from app.dependencies import get_instance, get_maintenance_controller, get_opencast_api
from app.proxy.decorated import DecoratedOpencastApi
from app import models
from helpers import FakeConfigProvider, FakeOpencastAdapter, WWWROOT

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def opencast_adapter():
    return FakeOpencastAdapter()


@pytest.fixture
def opencast_session(opencast_adapter):
    session = requests.Session()
    session.mount("http://", opencast_adapter)
    session.mount("https://", opencast_adapter)
    return session


@pytest.fixture
def make_controller():
    """build a controller over an in-memory config for the given mode and request context"""

    def factory(mode=MaintenanceMode.DISABLE, context=None, **config):
        provider = FakeConfigProvider(MaintenanceConfig(mode=mode, **config))
        return MaintenanceController(provider, 1, PageContext(bounce=context))

    return factory


@pytest.fixture(scope="function")
def db_session():
    """create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """create a test client with overridden database dependency"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    async def passthrough_middleware(self, request, call_next):
        """passthrough middleware that doesnt do rate limiting"""
        response = await call_next(request)
        return response

    with (
        mock.patch("app.main.init_scheduler"),
        mock.patch("app.main.start_scheduler"),
        mock.patch("app.main.shutdown_scheduler"),
        mock.patch("app.middleware.maintenance.SessionLocal", TestingSessionLocal),
        mock.patch("slowapi.middleware.SlowAPIMiddleware.dispatch", passthrough_middleware),
    ):
        with TestClient(app, base_url=WWWROOT) as test_client:
            yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def opencast_backend(client, opencast_session, opencast_adapter):
    """route the gated opencast endpoints to the fake adapter"""

    def override_get_opencast_api(
        instance=Depends(get_instance),
        maintenance: MaintenanceController = Depends(get_maintenance_controller),
    ):
        api = DecoratedOpencastApi(instance, maintenance, session=opencast_session)
        try:
            yield api
        finally:
            api.close()

    app.dependency_overrides[get_opencast_api] = override_get_opencast_api
    yield opencast_adapter


@pytest.fixture
def default_instance():
    return get_ocinstance(None)


@pytest.fixture(scope="function")
def test_user(db_session):
    """create a test user"""
    user = models.User(
        email="test@example.com",
        username="testuser",
        is_active=True,
        is_superuser=False,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_superuser(db_session):
    """create a test superuser"""
    user = models.User(
        email="admin@example.com",
        username="adminuser",
        is_active=True,
        is_superuser=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def auth_headers(test_user):
    """get authentication headers for test user"""
    token, _, _ = create_access_token({"sub": test_user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_auth_headers(test_superuser):
    """get authentication headers for admin user"""
    token, _, _ = create_access_token({"sub": test_superuser.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_prefix():
    return settings.API_V1_STR
