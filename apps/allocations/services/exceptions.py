"""
Domain-specific exceptions for allocations app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class AllocationsServiceError(Exception):
    """Base exception for all allocations service errors."""
    pass


class AllocationValidationError(AllocationsServiceError):
    """Raised when an allocation payload is malformed or does not add up."""
    pass


class EnvelopeNotFoundError(AllocationsServiceError):
    """Raised when an envelope does not exist or belongs to someone else."""
    pass


class IncomeSourceNotFoundError(AllocationsServiceError):
    """Raised when an income source does not exist or belongs to someone else."""
    pass


class TransactionNotFoundError(AllocationsServiceError):
    """Raised when a transaction does not exist or belongs to someone else."""
    pass


class PlanNotFoundError(AllocationsServiceError):
    """Raised when an allocation plan does not exist or belongs to someone else."""
    pass


class SurplusEnvelopeMissingError(AllocationsServiceError):
    """Raised when surplus is applied but the user has no surplus envelope."""
    pass


class InsufficientSurplusError(AllocationsServiceError):
    """Raised when the surplus envelope balance changed under a rebalance."""
    pass
