"""Builds the escrow and notification records for an accepted offer.

Neither function touches the store or the clock: the caller supplies the
escrow ID and the transaction's commit time.
"""
from datetime import datetime
from typing import Callable, List
from uuid import UUID, uuid4

from .models import Escrow, EscrowStatus, Notification, NotificationType, Offer

TRADER_MESSAGE = "You accepted offer {offer_id}. Escrow created."
BUYER_MESSAGE = "Your offer {offer_id} was accepted. Pay the trader via {payment_method}."


def build_escrow(offer: Offer, escrow_id: UUID, created_at: datetime) -> Escrow:
    """Build the escrow record holding the offer's terms.

    Args:
        offer: Offer re-read inside the transaction
        escrow_id: ID for the new escrow
        created_at: Commit time of the transaction

    Returns:
        Escrow in the in_escrow state
    """
    return Escrow(
        id=escrow_id,
        offer_id=offer.id,
        trader_id=offer.trader_id,
        buyer_id=offer.user_id,
        amount_usdt=offer.amount_usdt,
        asset=offer.asset,
        price_etb_per_usdt=offer.price_etb_per_usdt,
        payment_method=offer.payment_method,
        status=EscrowStatus.IN_ESCROW,
        created_at=created_at
    )


def compose_notifications(
    offer: Offer,
    created_at: datetime,
    new_id: Callable[[], UUID] = uuid4
) -> List[Notification]:
    """Build the trader-facing and buyer-facing acceptance notifications.

    Returns:
        [trader notification, buyer notification]
    """
    return [
        Notification(
            id=new_id(),
            user_id=offer.trader_id,
            type=NotificationType.OFFER_ACCEPTED,
            offer_id=offer.id,
            message=TRADER_MESSAGE.format(offer_id=offer.id),
            created_at=created_at
        ),
        Notification(
            id=new_id(),
            user_id=offer.user_id,
            type=NotificationType.OFFER_ACCEPTED,
            offer_id=offer.id,
            message=BUYER_MESSAGE.format(
                offer_id=offer.id,
                payment_method=offer.payment_method
            ),
            created_at=created_at
        ),
    ]
