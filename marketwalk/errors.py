"""
errors.py
---------
Exception hierarchy shared by the fetch, derive and chart layers.
"""


class MarketWalkError(Exception):
    """Base class for all package errors."""
    pass


class FetchFailure(MarketWalkError):
    """Raised when a provider cannot deliver a series for a symbol."""

    def __init__(self, symbol: str, reason: str):
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class DomainError(MarketWalkError, ValueError):
    """Raised when a numeric transform is undefined for an input value."""
    pass


class FieldNotFoundError(MarketWalkError, KeyError):
    """Raised when a requested field (column) is absent from a series."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class InsufficientDataError(MarketWalkError, ValueError):
    """Raised when an operation needs more observations than supplied."""
    pass
