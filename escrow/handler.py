"""Offer acceptance handler.

Invoked once per offer change event. An event that moves an offer to
``accepted`` creates, in one serializable transaction:

- the escrow holding the offer's terms
- the offer update to ``in_escrow`` with a link to the escrow
- one notification for the trader and one for the buyer

Events may arrive more than once, late, or concurrently for the same offer.
The transaction re-reads the offer and looks for an existing escrow before
writing anything, so a repeated event only confirms the offer's status.
"""
import logging
from typing import Any, Mapping, Optional, Union
from uuid import uuid4

from .exceptions import InvalidOfferError, OfferChangedError, OfferNotFoundError
from .guard import is_acceptance
from .materialize import build_escrow, compose_notifications
from .models import (
    ChangeEvent,
    Offer,
    OfferSnapshot,
    OfferStatus,
    TransitionOutcome,
    TransitionResult,
)
from .store import StoreTransaction

logger = logging.getLogger(__name__)

Snapshot = Union[OfferSnapshot, Mapping[str, Any], None]

class OfferAcceptedHandler:
    """Moves accepted offers into escrow exactly once."""

    def __init__(self, store) -> None:
        """Initialize the handler.

        Args:
            store: Object providing run_transaction(work), normally an EscrowStore
        """
        self.store = store

    async def handle_event(self, event: ChangeEvent) -> TransitionResult:
        """Handle a parsed change event."""
        return await self.handle(event.before, event.after, event.offer_id)

    async def handle(
        self,
        before: Snapshot,
        after: Snapshot,
        offer_id: str
    ) -> TransitionResult:
        """Handle one modification of an offer row.

        Args:
            before: Offer image before the change (None for an insert)
            after: Offer image after the change (None for a delete)
            offer_id: ID of the changed offer

        Returns:
            What the event resulted in

        Raises:
            OfferNotFoundError: If the offer disappeared before processing
            TransactionConflictError: If conflicts persisted across all attempts
        """
        before = OfferSnapshot.coerce(before)
        after = OfferSnapshot.coerce(after)

        if not is_acceptance(before, after):
            logger.debug(f"Ignoring offer {offer_id} change, not an acceptance")
            return TransitionResult(offer_id=offer_id, outcome=TransitionOutcome.SKIPPED)

        try:
            result = await self.store.run_transaction(
                lambda tx: self._apply(tx, offer_id)
            )
        except InvalidOfferError as e:
            logger.error(f"Rejected offer {offer_id}: {e}")
            return TransitionResult(
                offer_id=offer_id,
                outcome=TransitionOutcome.REJECTED,
                detail=str(e)
            )
        except OfferNotFoundError as e:
            logger.error(f"Offer {offer_id} could not be moved to escrow: {e}")
            raise

        logger.info(
            f"Offer {offer_id} acceptance handled: {result.outcome.value} "
            f"(escrow {result.escrow_id})"
        )
        return result

    async def _apply(self, tx: StoreTransaction, offer_id: str) -> TransitionResult:
        """Transaction body. Runs again from the top after a conflict."""
        record = await tx.get_offer(offer_id)
        if record is None:
            raise OfferNotFoundError(f"Offer {offer_id} not found")

        existing_escrow_id = await tx.find_escrow_id(offer_id)
        if existing_escrow_id is not None:
            if not await tx.normalize_offer_status(offer_id, existing_escrow_id):
                logger.warning(
                    f"Offer {offer_id} already has escrow {existing_escrow_id} "
                    f"and status {record['status']}, leaving it unchanged"
                )
            return TransitionResult(
                offer_id=offer_id,
                outcome=TransitionOutcome.ALREADY_APPLIED,
                escrow_id=existing_escrow_id
            )

        if record['status'] != OfferStatus.ACCEPTED.value:
            logger.warning(
                f"Offer {offer_id} is {record['status']} on re-read, "
                f"ignoring stale acceptance event"
            )
            return TransitionResult(
                offer_id=offer_id,
                outcome=TransitionOutcome.STALE,
                detail=f"status is {record['status']}"
            )

        offer = Offer.from_record(record)
        escrow = build_escrow(offer, uuid4(), tx.commit_time)
        notifications = compose_notifications(offer, tx.commit_time)

        await tx.insert_escrow(escrow)
        if not await tx.mark_offer_in_escrow(offer.id, escrow.id):
            raise OfferChangedError(f"Offer {offer_id} changed during escrow creation")
        for notification in notifications:
            await tx.insert_notification(notification)

        return TransitionResult(
            offer_id=offer_id,
            outcome=TransitionOutcome.CREATED,
            escrow_id=escrow.id,
            notification_ids=[n.id for n in notifications]
        )
