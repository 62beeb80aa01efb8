# FILE: app/services/credit_errors.py
from __future__ import annotations


class CreditBillingError(RuntimeError):
    pass


class DataUnavailable(CreditBillingError):
    """A record stream could not be read from the store."""

    def __init__(self, stream: str, reason: str = ""):
        self.stream = stream
        self.reason = reason
        super().__init__(f"{stream} unavailable" + (f": {reason}" if reason else ""))


class CreditValidationError(CreditBillingError):
    """Rejected before any write; never retried."""

    def __init__(self, msg: str, status_code: int = 400):
        self.msg = msg
        self.status_code = status_code
        super().__init__(msg)


class WriteFailed(CreditBillingError):
    """The store refused append_payment; nothing local was changed."""
