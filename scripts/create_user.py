#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from authapi.auth.passwords import Hasher
from authapi.auth.users import build_user_store
from authapi.auth.validators import validate_registration
from authapi.config import load_settings, validate_settings
from authapi.errors import DuplicateEmailError


def main() -> None:
    settings = validate_settings(load_settings())
    if settings.user_store != "yaml":
        raise SystemExit("create_user only makes sense with AUTH_USER_STORE=yaml")
    store = build_user_store(settings)
    store.check()

    name = input("Name: ").strip()
    email = input("Email: ").strip()
    role = (input("Role [user/admin]: ").strip().lower() or "user")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    results = validate_registration(name, email, pw1)
    failed = {field: r for field, r in results.items() if not r.valid}
    if failed:
        for field, r in failed.items():
            for msg in r.messages.values():
                print(f"{field}: {msg}")
        raise SystemExit(1)

    try:
        rec = store.create_user(name, email, Hasher.from_settings(settings).hash_password(pw1), role=role)
    except DuplicateEmailError:
        raise SystemExit(f"A user with email {email} already exists")
    print(f"OK -> {rec.id} in {store.path}")


if __name__ == "__main__":
    main()
