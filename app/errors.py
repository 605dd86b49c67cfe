# app/errors.py
from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for errors raised by the transaction and payout core."""


class ValidationError(MarketplaceError):
    pass


class NotFoundError(MarketplaceError):
    pass


class ExternalProviderError(MarketplaceError):
    """
    Payment provider call failed, timed out, or answered with an unexpected shape.
    Never escapes the payout orchestration boundary.
    """


class PersistenceError(MarketplaceError):
    """
    Data store write/read failed. No status transition should be assumed to have
    taken effect; the caller is told to retry.
    """
