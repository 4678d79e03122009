# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- in-memory SQLite (apps ship no migrations; the test runner syncs models)
- fast password hashing
- no throttling, engine knobs at their defaults
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

LEDGER_AMOUNT_TOLERANCE = "0.01"
BILL_DATE_DISPLAY_FORMAT = "%d-%m-%Y"
BANK_REVERSAL_MODE = "replay"
BILLING_TABLE_CLEANUP_HOOKS = []

SENTRY_DSN = ""
