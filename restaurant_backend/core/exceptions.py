# core/exceptions.py

"""
ENGINE ERRORS

Centralized base errors. Each ledger module derives its own domain errors
from these so the API layer can map them without knowing every subclass.
"""


class EngineError(Exception):
    """Base exception for all ledger engine failures."""


class EngineValidationError(EngineError, ValueError):
    """Raised when a command is rejected before any write."""


class EntityNotFoundError(EngineValidationError):
    """Raised when a referenced aggregate does not exist."""
