"""
Pytest configuration and shared fixtures
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from faker import Faker
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

TEST_SECRET_KEY = "test-secret-key-for-petwell-unit-tests-0123456789"
os.environ.setdefault("SECRET_KEY", TEST_SECRET_KEY)

from petwell.api.app import create_app
from petwell.auth.authenticator import RequestAuthenticator
from petwell.auth.jwt_handler import JWTHandler
from petwell.auth.models import JobTitle, Principal, Role, pwd_context
from petwell.auth.repository import InMemoryPrincipalRepository
from petwell.auth.revocation import RevocationCache
from petwell.auth.service import AuthService
from petwell.core.cache import MemoryCacheBackend
from petwell.core.config import Settings

# Cheap hashes keep the suite fast
pwd_context.update(bcrypt__rounds=4)

# Initialize faker
fake = Faker()

DEFAULT_PASSWORD = "password1"
TOKEN_TTL_MINUTES = 120


class FakeClock:
    """Controllable wall clock"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Controllable monotonic clock in seconds"""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's optional backends"""
    return Settings(
        secret_key=TEST_SECRET_KEY,
        access_token_expire_minutes=TOKEN_TTL_MINUTES,
        revocation_backend="memory",
        principal_store="memory",
        rate_limit_enabled=False,
        log_level="WARNING",
        log_format="console",
    )


@pytest.fixture
def clock() -> FakeClock:
    # Real "now" so tokens handed to the HTTP layer are also valid there
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def jwt_handler(clock) -> JWTHandler:
    return JWTHandler(
        TEST_SECRET_KEY,
        access_token_expire_minutes=TOKEN_TTL_MINUTES,
        clock=clock
    )


@pytest.fixture
def repository() -> InMemoryPrincipalRepository:
    return InMemoryPrincipalRepository()


@pytest.fixture
def revocation_cache() -> RevocationCache:
    return RevocationCache(MemoryCacheBackend(evict_live=False), ttl_seconds=TOKEN_TTL_MINUTES * 60)


@pytest.fixture
def authenticator(jwt_handler, repository, revocation_cache) -> RequestAuthenticator:
    return RequestAuthenticator(jwt_handler, repository, revocation_cache)


@pytest.fixture
def auth_service(repository, jwt_handler, revocation_cache) -> AuthService:
    return AuthService(repository, jwt_handler, revocation_cache)


@pytest.fixture
def make_principal() -> Callable[..., Principal]:
    """Factory for principals with a hashed password"""

    def _make(role: Role = Role.CLIENT, password: str = DEFAULT_PASSWORD, **overrides) -> Principal:
        fields = {
            "email": fake.unique.email(),
            "first_name": fake.first_name(),
            "last_name": fake.last_name(),
            "role": role,
            "job_title": None if role == Role.CLIENT else JobTitle.VETERINARIAN,
        }
        fields.update(overrides)
        principal = Principal(**fields)
        principal.set_password(password)
        return principal

    return _make


@pytest.fixture
async def admin(repository, make_principal) -> Principal:
    return await repository.create(make_principal(Role.ADMIN, job_title=JobTitle.MANAGER))


@pytest.fixture
async def manager(repository, make_principal) -> Principal:
    return await repository.create(make_principal(Role.MANAGER, job_title=JobTitle.MANAGER))


@pytest.fixture
async def client_user(repository, make_principal) -> Principal:
    return await repository.create(make_principal(Role.CLIENT))


@pytest.fixture
def app(settings, repository):
    return create_app(settings, repository=repository)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def auth_header() -> Callable[[str], dict]:
    """Build an Authorization header for a token"""

    def _header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _header
