import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret",
        bcrypt_rounds=4,
        static_dir=str(tmp_path / "no-static"),
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Helper: register a user and return the response JSON."""

    def _register(email="ada@example.com", password="s3cretpw", name="Ada"):
        resp = client.post("/users", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _register


@pytest.fixture
def login(client, register):
    """Helper: register a user and return Authorization headers for them."""

    def _login(email="ada@example.com", password="s3cretpw", name="Ada"):
        register(email=email, password=password, name=name)
        resp = client.post("/token", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
