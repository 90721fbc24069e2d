"""
Shared fixtures: a fresh app per test bound to a throwaway SQLite database.
"""

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test-import.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"

import pytest
from fastapi.testclient import TestClient

from core.database import Database
from main import create_app
from models.users import User, UserRole

PASSWORD = "secret123"


@pytest.fixture
def database(tmp_path):
    return Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def app(database):
    return create_app(database)


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


def register(client, name, email=None, password=PASSWORD):
    """Register an account and return (token, user)."""
    email = email or f"{name.lower()}@example.com"
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()
    return data["token"], data["user"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def make_admin(app, client, user_id):
    """Promote a user directly in the database, on the app's event loop."""
    database = app.state.database

    async def promote():
        async with database.session() as session:
            user = await session.get(User, user_id)
            user.role = UserRole.ADMIN

    client.portal.call(promote)


def sample_recipe(**overrides):
    recipe = {
        "title": "Tomato Soup",
        "description": "A simple weeknight soup",
        "ingredients": ["4 tomatoes", "1 onion", "500ml stock"],
        "instructions": ["Chop everything", "Simmer for 20 minutes", "Blend"],
        "cookingTime": 30,
        "servings": 4,
        "difficulty": "easy",
        "category": "soup",
        "diet": ["vegetarian"],
    }
    recipe.update(overrides)
    return recipe


@pytest.fixture
def alice(client):
    token, user = register(client, "Alice")
    return {"token": token, "user": user, "headers": auth(token)}


@pytest.fixture
def bob(client):
    token, user = register(client, "Bob")
    return {"token": token, "user": user, "headers": auth(token)}


@pytest.fixture
def carol(client):
    token, user = register(client, "Carol")
    return {"token": token, "user": user, "headers": auth(token)}


@pytest.fixture
def admin(app, client):
    token, user = register(client, "Admin", "admin@example.com")
    make_admin(app, client, user["id"])
    return {"token": token, "user": user, "headers": auth(token)}


@pytest.fixture
def soup(client, alice):
    """A recipe owned by Alice."""
    response = client.post("/api/recipes", json=sample_recipe(), headers=alice["headers"])
    assert response.status_code == 201, response.text
    return response.json()
