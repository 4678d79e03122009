# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS
- DEBUG on, engine loggers at DEBUG unless LOG_LEVEL says otherwise
- browsable API next to JSON
- no throttling while clicking through the POS screens
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK, env

DEBUG = True

LOG_LEVEL = (env.str("LOG_LEVEL", default="DEBUG") or "DEBUG").strip().upper()
for _logger in LOGGING["loggers"].values():
    _logger["level"] = LOG_LEVEL

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_RENDERER_CLASSES": (
        "rest_framework.renderers.JSONRenderer",
        "rest_framework.renderers.BrowsableAPIRenderer",
    ),
    "DEFAULT_THROTTLE_CLASSES": (),
}
