import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from authapi.auth.passwords import Hasher
from authapi.config import Settings

# Cheap argon2 parameters; the production defaults make every test take seconds.
FAST_HASH = {"hash_time_cost": 1, "hash_memory_cost": 8, "hash_parallelism": 1}


@pytest.fixture()
def users_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "users.yml"


@pytest.fixture()
def settings(users_path: Path) -> Settings:
    return Settings(
        secret_key="test-secret",
        user_store="yaml",
        users_path=users_path,
        session_ttl=60,
        **FAST_HASH,
    )


@pytest.fixture()
def hasher() -> Hasher:
    return Hasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture()
def client(settings: Settings):
    """
    App client with the startup hook run (store checked, service wired).
    """
    from authapi.app import create_app

    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def jane() -> dict:
    return {"name": "Jane Doe", "email": "jane@doe.com", "password": "Secret1_"}


@pytest.fixture()
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("AUTH_") or key == "SECRET_KEY":
            monkeypatch.delenv(key, raising=False)
