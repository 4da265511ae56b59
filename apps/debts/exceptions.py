"""
Domain exceptions for debts app.

Exception Hierarchy:
    DebtsServiceError (base)
    └── UnknownStrategyError
"""


class DebtsServiceError(Exception):
    """Base exception for all debts service errors."""

    pass


class UnknownStrategyError(DebtsServiceError):
    """
    Raised when a payoff strategy other than avalanche or snowball is requested.

    Example:
        raise UnknownStrategyError("Unknown strategy: 'random'")
    """

    pass
