"""
Domain-specific exceptions for transfers app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class TransfersServiceError(Exception):
    """Base exception for all transfers service errors."""
    pass


class TransactionNotFoundError(TransfersServiceError):
    """Raised when a transaction does not exist or belongs to someone else."""
    pass


class TransferValidationError(TransfersServiceError):
    """Raised when two transactions cannot form a transfer."""
    pass


class AlreadyLinkedError(TransfersServiceError):
    """Raised when a transaction was linked to another partner first."""
    pass


class NotLinkedError(TransfersServiceError):
    """Raised when unlinking a transaction that is not part of a transfer."""
    pass
