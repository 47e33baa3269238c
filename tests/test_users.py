import threading

import pytest
import yaml

from authapi.auth.users import MemoryUserStore, YamlUserStore, build_user_store
from authapi.config import Settings
from authapi.errors import ConfigurationError, DuplicateEmailError, PersistenceError


@pytest.fixture(params=["memory", "yaml"])
def store(request, users_path):
    if request.param == "memory":
        return MemoryUserStore()
    return YamlUserStore(users_path)


def test_create_and_find(store):
    rec = store.create_user("Jane Doe", "jane@doe.com", "$argon2id$fake")
    assert rec.role == "user"
    assert rec.id
    assert rec.created_at
    assert store.find_user_by_email("jane@doe.com") == rec
    assert store.find_user_by_email("john@doe.com") is None


def test_email_lookup_is_exact(store):
    store.create_user("Jane Doe", "jane@doe.com", "$argon2id$fake")
    assert store.find_user_by_email(" jane@doe.com") is None
    assert store.find_user_by_email("jane@doe.com ") is None
    assert store.find_user_by_email("") is None


def test_duplicate_email_is_rejected(store):
    store.create_user("Jane Doe", "jane@doe.com", "$argon2id$fake")
    with pytest.raises(DuplicateEmailError):
        store.create_user("Other Jane", "jane@doe.com", "$argon2id$other")
    assert store.find_user_by_email("jane@doe.com").name == "Jane Doe"


def test_record_without_hash_is_not_persisted(store):
    with pytest.raises(PersistenceError):
        store.create_user("Jane Doe", "jane@doe.com", "")
    assert store.find_user_by_email("jane@doe.com") is None


def test_public_view_has_no_hash(store):
    rec = store.create_user("Jane Doe", "jane@doe.com", "$argon2id$fake")
    assert "password_hash" not in rec.public()
    assert rec.public()["email"] == "jane@doe.com"


def test_concurrent_creates_with_same_email(store):
    barrier = threading.Barrier(8)
    outcomes = []

    def worker(i):
        barrier.wait()
        try:
            store.create_user(f"User {chr(65 + i)}", "race@doe.com", f"$argon2id$h{i}")
            outcomes.append("ok")
        except DuplicateEmailError:
            outcomes.append("dup")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("dup") == 7


def test_yaml_layout_keyed_by_email(users_path):
    store = YamlUserStore(users_path)
    rec = store.create_user("Jane Doe", "jane@doe.com", "$argon2id$fake")
    raw = yaml.safe_load(users_path.read_text(encoding="utf-8"))
    assert raw["version"] == 1
    assert raw["users"]["jane@doe.com"]["id"] == rec.id
    assert raw["users"]["jane@doe.com"]["password_hash"] == "$argon2id$fake"
    # A fresh store over the same file sees the user.
    assert YamlUserStore(users_path).find_user_by_email("jane@doe.com") == rec


def test_yaml_store_check_rejects_broken_file(users_path):
    users_path.parent.mkdir(parents=True)
    users_path.write_text("users: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        YamlUserStore(users_path).check()


def test_yaml_store_missing_file_is_empty(users_path):
    store = YamlUserStore(users_path)
    store.check()
    assert store.find_user_by_email("jane@doe.com") is None


def test_build_user_store_picks_kind(users_path):
    assert isinstance(build_user_store(Settings(user_store="memory")), MemoryUserStore)
    assert isinstance(build_user_store(Settings(user_store="yaml", users_path=users_path)), YamlUserStore)
    with pytest.raises(ConfigurationError):
        build_user_store(Settings(user_store="mongo"))
