"""
Domain errors raised by the ledger engine and the services around it.

Every error carries a stable machine-readable `code` next to its message so
clients can tell insufficient stock apart from a missing customer or a
misconfigured server. `main.py` maps them to JSON responses.
"""


class LedgerError(Exception):
    status_code = 400
    code = "LEDGER_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationFailed(LedgerError):
    status_code = 400
    code = "VALIDATION_ERROR"


class InsufficientStock(LedgerError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"


class InsufficientFunds(LedgerError):
    status_code = 400
    code = "INSUFFICIENT_FUNDS"


class EntityNotFound(LedgerError):
    status_code = 404
    code = "NOT_FOUND"


class PermissionDenied(LedgerError):
    status_code = 403
    code = "FORBIDDEN"


class ConfigurationError(LedgerError):
    """Server-side misconfiguration, never the caller's fault."""
    status_code = 500
    code = "CONFIGURATION_ERROR"
