import uuid
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
import jwt as pyjwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.backends import default_backend
import base64

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.seed.seed_data import seed_db
from app.core.config import settings
from app.models.business import Business
from app.models.mall import Mall
from app.models.profile import Profile


# Use SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enforce foreign keys like PostgreSQL does."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# Monkey-patch postgresql.UUID to work with SQLite (store as CHAR(36)).
# Always override: the generic "UUID" type name gives the column NUMERIC
# affinity, which mangles all-digit hex ids.
import sqlalchemy.dialects.sqlite.base as sqlite_base


def visit_UUID(self, type_, **kw):
    return "CHAR(36)"


sqlite_base.SQLiteTypeCompiler.visit_UUID = visit_UUID

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def seeded_db(db_session):
    """Create a database session with seeded data."""
    seed_db(db_session)
    return db_session


@pytest.fixture(scope="function")
def seeded_client(seeded_db):
    """Create a test client with seeded database."""
    def override_get_db():
        try:
            yield seeded_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# Test JWT key pair (generated once)
_test_private_key = rsa.generate_private_key(
    public_exponent=65537,
    key_size=2048,
    backend=default_backend()
)
_test_public_key = _test_private_key.public_key()


def _create_test_jwks(public_key, kid="test-key-id"):
    """Create a test JWKS structure from a public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64url(n):
        byte_length = (n.bit_length() + 7) // 8
        n_bytes = n.to_bytes(byte_length, 'big')
        b64 = base64.urlsafe_b64encode(n_bytes).decode('utf-8')
        return b64.rstrip('=')

    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": kid,
                "use": "sig",
                "alg": "RS256",
                "n": int_to_base64url(public_numbers.n),
                "e": int_to_base64url(public_numbers.e),
            }
        ]
    }


def _create_test_token(
    private_key,
    sub="test-user-123",
    email="test@example.com",
    user_metadata=None,
    exp=None,
    aud=None,
    iss=None,
    kid="test-key-id"
):
    """Create a test JWT token with the given claims."""
    if exp is None:
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())

    if aud is None:
        aud = settings.supabase_jwt_audience

    if iss is None:
        iss = settings.supabase_issuer

    claims = {
        "sub": sub,
        "email": email,
        "aud": aud,
        "iss": iss,
        "exp": exp,
        "iat": int(datetime.now(timezone.utc).timestamp()),
        "user_metadata": user_metadata or {},
    }

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    headers = {"kid": kid, "alg": "RS256", "typ": "JWT"}

    return pyjwt.encode(claims, private_pem, algorithm="RS256", headers=headers)


# Default test Supabase UIDs (profiles.id == JWT sub)
TEST_CUSTOMER_UID = "550e8400-e29b-41d4-a716-446655440000"
TEST_CUSTOMER_UID_2 = "550e8400-e29b-41d4-a716-446655440001"
TEST_OWNER_UID = "550e8400-e29b-41d4-a716-446655440002"
TEST_OWNER_UID_2 = "550e8400-e29b-41d4-a716-446655440003"


@pytest.fixture
def mock_jwks():
    """Fixture that mocks JWKS so JWT verification uses the test key."""
    test_jwks = _create_test_jwks(_test_public_key)
    with patch("app.core.auth.fetch_jwks", return_value=test_jwks):
        yield test_jwks


@pytest.fixture
def create_test_token():
    """Fixture that provides a function to create test JWT tokens. sub must be a valid UUID."""
    def _create(sub=TEST_CUSTOMER_UID, email="test@example.com", **kwargs):
        return _create_test_token(_test_private_key, sub=sub, email=email, **kwargs)
    return _create


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def marketplace(db_session):
    """
    Two customers, two business owners (each with a business) and one mall.
    Returns a dict of the created rows keyed by role.
    """
    customer = Profile(
        id=uuid.UUID(TEST_CUSTOMER_UID),
        full_name="Thandi Nkosi",
        email="thandi@example.com",
        phone="+27 82 555 0101",
        user_type="customer",
    )
    customer2 = Profile(
        id=uuid.UUID(TEST_CUSTOMER_UID_2),
        full_name="Lerato Mokoena",
        email="lerato@example.com",
        user_type="customer",
    )
    owner = Profile(
        id=uuid.UUID(TEST_OWNER_UID),
        full_name="Ayesha Patel",
        email="ayesha@example.com",
        user_type="business",
    )
    owner2 = Profile(
        id=uuid.UUID(TEST_OWNER_UID_2),
        full_name="Nomsa Dlamini",
        email="nomsa@example.com",
        user_type="business",
    )
    db_session.add_all([customer, customer2, owner, owner2])
    db_session.commit()

    business = Business(owner_id=owner.id, business_name="Gloss Nail Studio", username="glossnails")
    business2 = Business(owner_id=owner2.id, business_name="Tips & Toes", username="tipsandtoes")
    mall = Mall(name="Sandton City", location="Sandton, Johannesburg")
    db_session.add_all([business, business2, mall])
    db_session.commit()
    for row in (customer, customer2, owner, owner2, business, business2, mall):
        db_session.refresh(row)

    return {
        "customer": customer,
        "customer2": customer2,
        "owner": owner,
        "owner2": owner2,
        "business": business,
        "business2": business2,
        "mall": mall,
    }
