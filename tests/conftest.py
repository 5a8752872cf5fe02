# Shared fixtures for both services.
#
# Each test gets a fresh app wired to an in-memory mongomock client, so the
# suite needs no running MongoDB server.

from datetime import datetime
from typing import Dict, Tuple

import mongomock
import pytest
from fastapi.testclient import TestClient

from sales_api.config import Settings as SalesSettings
from sales_api.main import create_app as create_sales_app
from tourism_api.auth import create_token, hash_password as hash_user_password
from tourism_api.config import Settings as TourismSettings
from tourism_api.main import create_app as create_tourism_app

TEST_SECRET = "test-signing-key-0123456789abcdef0123456789abcdef"
PASSWORD = "TestPass123!"


# =============================================================================
# SALES API
# =============================================================================

@pytest.fixture
def sales_settings() -> SalesSettings:
    return SalesSettings(
        jwt_secret=TEST_SECRET,
        database_name="sales_test",
        bcrypt_rounds=4,
        environment="test",
    )


@pytest.fixture
def sales_client(sales_settings):
    app = create_sales_app(sales_settings, client=mongomock.MongoClient())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sales_db(sales_client):
    return sales_client.app.state.db


def register_admin(client: TestClient, username: str, role: str = "admin") -> Tuple[str, str]:
    """Register an admin through the API and return (id, token)."""
    response = client.post("/api/admin/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": PASSWORD,
        "fullName": username.title(),
        "role": role,
    })
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["id"], data["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_p1(sales_client):
    return register_admin(sales_client, "ahmed_p1")


@pytest.fixture
def admin_p2(sales_client):
    return register_admin(sales_client, "fatima_p2")


# =============================================================================
# TOURISM API
# =============================================================================

@pytest.fixture
def tourism_settings() -> TourismSettings:
    return TourismSettings(
        jwt_secret=TEST_SECRET,
        database_name="tourism_test",
        bcrypt_rounds=4,
        environment="test",
    )


@pytest.fixture
def tourism_client(tourism_settings):
    app = create_tourism_app(tourism_settings, client=mongomock.MongoClient())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def tourism_db(tourism_client):
    return tourism_client.app.state.db


def make_user(db, settings, email: str, role: str = "user", **extra) -> Tuple[dict, str]:
    """Insert a user straight into the collection and return (doc, token)."""
    user = {
        "name": email.split("@")[0].title(),
        "email": email,
        "password": hash_user_password(PASSWORD, settings.bcrypt_rounds),
        "role": role,
        "walletBalance": 0,
        "isVerified": False,
        "isActive": True,
        "createdAt": datetime(2024, 1, 1),
    }
    user.update(extra)
    user["_id"] = db["users"].insert_one(user).inserted_id
    return user, create_token(user, settings)


@pytest.fixture
def tourism_admin(tourism_db, tourism_settings):
    return make_user(tourism_db, tourism_settings, "admin@somalitours.so", role="admin")


@pytest.fixture
def tourism_user(tourism_db, tourism_settings):
    return make_user(tourism_db, tourism_settings, "hodan@example.com")
