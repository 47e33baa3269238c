import pytest

from authapi.auth.passwords import Hasher
from authapi.config import Settings


def test_hash_verifies_and_is_salted(hasher):
    h1 = hasher.hash_password("Secret1_")
    h2 = hasher.hash_password("Secret1_")
    assert h1 != h2
    assert "Secret1_" not in h1
    assert hasher.verify_password(h1, "Secret1_")
    assert hasher.verify_password(h2, "Secret1_")


def test_wrong_password_does_not_verify(hasher):
    h = hasher.hash_password("Secret1_")
    assert not hasher.verify_password(h, "Secret1")
    assert not hasher.verify_password(h, "")


def test_malformed_hash_does_not_verify(hasher):
    assert not hasher.verify_password("not-a-hash", "Secret1_")
    assert not hasher.verify_password("", "Secret1_")


def test_empty_password_cannot_be_hashed(hasher):
    with pytest.raises(ValueError):
        hasher.hash_password("")


def test_dummy_verify_never_succeeds(hasher):
    assert hasher.dummy_verify("authapi-dummy-password") is False
    assert hasher.dummy_verify("") is False


def test_cost_comes_from_settings():
    s = Settings(hash_time_cost=2, hash_memory_cost=16, hash_parallelism=1)
    h = Hasher.from_settings(s).hash_password("Secret1_")
    assert h.startswith("$argon2id$")
    assert "m=16,t=2,p=1" in h
