import asyncio

import pytest
from mongomock_motor import AsyncMongoMockClient

from portfolio.auth import JWTIdentityProvider
from portfolio.config import Mode, Settings
from portfolio.database import MongoStore
from portfolio.local_store import LocalStore

TEST_SECRET = "test-secret"


def run(coro):
    return asyncio.run(coro)


def sample_project(**overrides):
    project = {
        "title": "X",
        "description": "Y",
        "techStack": ["A"],
        "imageURL": "http://i",
        "githubURL": "http://g",
        "liveDemoURL": "http://l",
    }
    project.update(overrides)
    return project


def sample_message(**overrides):
    message = {
        "name": "Ada",
        "email": "ada@example.com",
        "subject": "Hello",
        "message": "Nice portfolio!",
    }
    message.update(overrides)
    return message


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(str(tmp_path / "demo"))


@pytest.fixture
def mongo_store():
    client = AsyncMongoMockClient()
    return MongoStore(client["portfolio_test"])


@pytest.fixture(params=["local", "mongo"])
def store(request, tmp_path):
    if request.param == "local":
        return LocalStore(str(tmp_path / "demo"))
    return MongoStore(AsyncMongoMockClient()["portfolio_test"])


@pytest.fixture
def provider():
    return JWTIdentityProvider(TEST_SECRET)


@pytest.fixture
def admin_token(provider):
    return provider.create_token("admin@example.com", {"admin": True})


@pytest.fixture
def user_token(provider):
    return provider.create_token("visitor@example.com")


@pytest.fixture
def remote_settings(tmp_path):
    return Settings(mode=Mode.REMOTE, jwt_secret=TEST_SECRET, demo_data_dir=str(tmp_path / "demo"))


@pytest.fixture
def demo_settings(tmp_path):
    return Settings(mode=Mode.DEMO, jwt_secret=TEST_SECRET, demo_data_dir=str(tmp_path / "demo"))
