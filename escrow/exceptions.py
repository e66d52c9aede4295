"""Errors raised while moving an accepted offer into escrow."""


class TransitionError(Exception):
    """Base class for offer transition errors."""
    pass


class OfferNotFoundError(TransitionError):
    """Raised when the offer is gone by the time the transaction re-reads it."""
    pass


class InvalidOfferError(TransitionError):
    """Raised when the offer is missing fields required to build an escrow."""
    pass


class OfferChangedError(TransitionError):
    """Raised when the conditional offer update matched no row."""
    pass
