# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication core.

This package provides:
- Name/email/password format rules (validators)
- Password hashing/verification (argon2)
- User stores: YAML document file or in-memory
- Server-side sessions behind signed cookies (itsdangerous)
- Register/login/logout flows (service)
"""
