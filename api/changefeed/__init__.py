"""Changefeed webhook endpoints.

CockroachDB's webhook sink POSTs batches of row changes:

    {"payload": [{"after": {...}, "before": {...}, "key": ["offer-1"],
                  "topic": "offers", "updated": "..."}],
     "length": 1}

A batch is redelivered until it is acknowledged with a 2xx response, so any
failure is answered with 500 and the whole batch comes back later.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, ValidationError

from escrow import (
    ChangeEvent,
    OfferAcceptedHandler,
    OfferSnapshot,
    TransitionError,
    TransitionOutcome,
    TransitionResult,
)
from database import DatabaseError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/changefeed",
    tags=["Changefeed"]
)

class ChangefeedRow(BaseModel):
    """One row change in a webhook batch."""
    model_config = ConfigDict(extra='ignore')

    key: List[Any] = []
    after: Optional[Dict[str, Any]] = None
    before: Optional[Dict[str, Any]] = None
    topic: Optional[str] = None
    updated: Optional[str] = None

    def offer_id(self) -> Optional[str]:
        """Primary key of the changed row."""
        if self.key:
            return str(self.key[0])
        for image in (self.after, self.before):
            if image and image.get('id') is not None:
                return str(image['id'])
        return None

class ChangefeedBatch(BaseModel):
    """Request model for a webhook sink delivery."""
    payload: List[ChangefeedRow]
    length: Optional[int] = None

def get_handler(request: Request) -> OfferAcceptedHandler:
    """Handler wired in by create_app."""
    return request.app.state.handler

@router.post("/offers")
async def receive_offer_changes(batch: ChangefeedBatch, request: Request):
    """Apply a batch of offer row changes in delivery order."""
    handler = get_handler(request)

    events = []
    for row in batch.payload:
        offer_id = row.offer_id()
        if offer_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Changefeed row without offer key"
            )
        try:
            events.append(ChangeEvent(
                offer_id=offer_id,
                before=OfferSnapshot.coerce(row.before),
                after=OfferSnapshot.coerce(row.after)
            ))
        except ValidationError as e:
            # Acknowledged as skipped, redelivery would carry the same image
            logger.warning(f"Skipping malformed change of offer {offer_id}: {e}")
            events.append(TransitionResult(
                offer_id=offer_id,
                outcome=TransitionOutcome.SKIPPED,
                detail="malformed row image"
            ))

    results = []
    for event in events:
        if isinstance(event, TransitionResult):
            results.append(event.model_dump(mode='json'))
            continue
        try:
            result = await handler.handle_event(event)
        except (TransitionError, DatabaseError) as e:
            logger.error(f"Failed to process change of offer {event.offer_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )
        except Exception as e:
            logger.exception(f"Unexpected error processing offer {event.offer_id}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )
        results.append(result.model_dump(mode='json'))

    return {
        "processed": len(results),
        "results": results
    }
