# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Format rules for account names, emails and passwords.

All validators are pure and return a ``ValidationResult``:
- ``valid``: overall outcome
- ``rules``: every predicate that was evaluated (rule name -> passed)
- ``messages``: human-readable detail for the rules that failed
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

_NAME_RE = re.compile(r"[a-zA-Z]+(?: [a-zA-Z]+)*")

# Local parts made only of digits (optionally separated) are rejected.
_NUMERIC_LOCAL_RE = re.compile(r"[0-9]+(?:[-_.][0-9]+)*")
# Alphanumeric runs joined by single '-', '_' or '.'; no leading/trailing/doubled separators.
_LOCAL_RE = re.compile(r"[a-zA-Z0-9]+(?:[-_.][a-zA-Z0-9]+)*")
# Dotted labels ending in an alphabetic top-level label of 2+ letters.
_DOMAIN_RE = re.compile(r"[a-zA-Z0-9]+(?:[._-][a-zA-Z0-9]+)*\.[a-zA-Z]{2,}")

PASSWORD_RULES = (
    "have6Characters",
    "capitalLetter",
    "lowercase",
    "number",
    "underscore",
    "withoutSpace",
)

_PASSWORD_MESSAGES = {
    "have6Characters": f"Password should have at least {PASSWORD_MIN_LENGTH} characters",
    "capitalLetter": "Password should contain a capital letter",
    "lowercase": "Password should contain a lowercase letter",
    "number": "Password should contain a number",
    "underscore": "Password should contain an underscore",
    "withoutSpace": "Password should not contain spaces",
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    rules: Dict[str, bool] = field(default_factory=dict)
    messages: Dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.valid

    @property
    def message(self) -> str:
        """First failure message, or empty string when valid."""
        return next(iter(self.messages.values()), "")

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "rules": dict(self.rules), "messages": dict(self.messages)}


def _fail(rule: str, message: str, rules: Dict[str, bool]) -> ValidationResult:
    rules = {**rules, rule: False}
    return ValidationResult(valid=False, rules=rules, messages={rule: message})


def validate_name(name: Any) -> ValidationResult:
    if not isinstance(name, str):
        return _fail("type", "Name should be a string", {})

    rules = {"type": True}
    if len(name.strip()) == 0 or len(name) > NAME_MAX_LENGTH:
        return _fail("length", f"Name length should be between 1 and {NAME_MAX_LENGTH} characters", rules)

    rules["length"] = True
    if not _NAME_RE.fullmatch(name):
        return _fail("format", "Name should contain only letters and spaces between words", rules)

    rules["format"] = True
    return ValidationResult(valid=True, rules=rules)


def validate_email(email: Any) -> ValidationResult:
    if not isinstance(email, str):
        return _fail("type", "Email should be a string", {})

    rules = {"type": True}
    if email.count("@") != 1:
        return _fail("format", "Email should contain exactly one '@'", rules)

    rules["format"] = True
    local, domain = email.split("@")
    if _NUMERIC_LOCAL_RE.fullmatch(local) or not _LOCAL_RE.fullmatch(local):
        return _fail("localPart", "Invalid email", rules)

    rules["localPart"] = True
    if not _DOMAIN_RE.fullmatch(domain):
        return _fail("domain", "Invalid email", rules)

    rules["domain"] = True
    return ValidationResult(valid=True, rules=rules)


class PasswordValidationResult(ValidationResult):
    def to_dict(self) -> Dict[str, Any]:
        # Flat shape: one flag per rule plus the overall outcome.
        out: Dict[str, Any] = {rule: self.rules.get(rule, False) for rule in PASSWORD_RULES}
        out["valid"] = self.valid
        out["messages"] = dict(self.messages)
        return out


def validate_password(password: Any) -> PasswordValidationResult:
    if not isinstance(password, str):
        rules = {rule: False for rule in PASSWORD_RULES}
        rules["withoutSpace"] = True
        return PasswordValidationResult(
            valid=False,
            rules=rules,
            messages={"type": "Password should be a string"},
        )

    rules = {
        "have6Characters": len(password) >= PASSWORD_MIN_LENGTH,
        "capitalLetter": re.search(r"[A-Z]", password) is not None,
        "lowercase": re.search(r"[a-z]", password) is not None,
        "number": re.search(r"[0-9]", password) is not None,
        # Only the underscore counts as the special character.
        "underscore": "_" in password,
        "withoutSpace": re.search(r"\s", password) is None,
    }
    messages = {rule: _PASSWORD_MESSAGES[rule] for rule, ok in rules.items() if not ok}
    return PasswordValidationResult(valid=all(rules.values()), rules=rules, messages=messages)


def validate_registration(name: Any, email: Any, password: Any) -> Dict[str, ValidationResult]:
    return {
        "name": validate_name(name),
        "email": validate_email(email),
        "password": validate_password(password),
    }
