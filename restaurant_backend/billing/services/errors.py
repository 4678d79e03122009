# billing/services/errors.py

from core.exceptions import EngineValidationError, EntityNotFoundError


class BillingError(EngineValidationError):
    pass


class BillNotFoundError(BillingError, EntityNotFoundError):
    pass


class DraftLineNotFoundError(BillingError, EntityNotFoundError):
    pass


class InvalidBillTransitionError(BillingError):
    pass
