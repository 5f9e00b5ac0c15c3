"""Custom exceptions for Defter."""


class DefterError(Exception):
    """Base exception for all Defter errors."""

    pass


class ConfigurationError(DefterError):
    """Raised when configuration is invalid or missing."""

    pass


class SnapshotError(DefterError):
    """Raised when a ledger snapshot file cannot be read or parsed."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"Could not read ledger snapshot at {path}")


class InvalidPeriodError(DefterError):
    """Raised when a report month is not in YYYY-MM form."""

    pass


class PaymentError(DefterError):
    """Base class for payment lifecycle errors."""

    pass


class PaymentStateError(PaymentError):
    """Raised when a payment that is no longer pending is confirmed or rejected."""

    def __init__(self, status: str, message: str | None = None):
        self.status = status
        super().__init__(message or f"Payment is already {status}")


class InvalidPaymentError(PaymentError):
    """Raised when a payment has no real counterparty or no positive amount."""

    pass


class PaymentPermissionError(PaymentError):
    """Raised when someone outside the payment tries to record or decide it."""

    pass


class UnknownPersonError(DefterError):
    """Raised when a person id or name is not in the ledger."""

    pass
