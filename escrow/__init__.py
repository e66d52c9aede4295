"""Escrow module for moving accepted offers into escrow.

This module provides:
- Detection of offer acceptance in change events
- Exactly-once escrow creation under repeated or concurrent delivery
- Trader and buyer notifications for the accepted offer
"""

from .exceptions import (
    TransitionError,
    OfferNotFoundError,
    InvalidOfferError,
    OfferChangedError,
)
from .guard import is_acceptance
from .handler import OfferAcceptedHandler
from .materialize import build_escrow, compose_notifications
from .models import (
    ChangeEvent,
    Escrow,
    EscrowStatus,
    Notification,
    NotificationType,
    Offer,
    OfferSnapshot,
    OfferStatus,
    TransitionOutcome,
    TransitionResult,
)
from .store import EscrowStore, StoreTransaction

__all__ = [
    'OfferAcceptedHandler',
    'EscrowStore',
    'StoreTransaction',
    'is_acceptance',
    'build_escrow',
    'compose_notifications',
    'ChangeEvent',
    'Escrow',
    'EscrowStatus',
    'Notification',
    'NotificationType',
    'Offer',
    'OfferSnapshot',
    'OfferStatus',
    'TransitionOutcome',
    'TransitionResult',
    'TransitionError',
    'OfferNotFoundError',
    'InvalidOfferError',
    'OfferChangedError',
]
