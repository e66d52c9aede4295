"""Record types for offers, escrows and notifications.

Column names are snake_case. Events produced by other writers may use the
camelCase field names (``traderId``, ``amountUSDT``...), which are accepted
as aliases.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import InvalidOfferError


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_ESCROW = "in_escrow"
    RELEASED = "released"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class EscrowStatus(str, Enum):
    IN_ESCROW = "in_escrow"
    RELEASED = "released"
    REFUNDED = "refunded"


class NotificationType(str, Enum):
    OFFER_ACCEPTED = "offer_accepted"


class OfferSnapshot(BaseModel):
    """Before or after image of an offer row carried by a change event.

    Every field is optional: the guard only needs the status, and an image
    from an older writer may lack anything else.
    """
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: Optional[str] = Field(None, alias='offerId')
    status: Optional[str] = None

    @classmethod
    def coerce(
        cls, value: Union['OfferSnapshot', Mapping[str, Any], None]
    ) -> Optional['OfferSnapshot']:
        """Build a snapshot from a row mapping, passing snapshots and None through."""
        if value is None or isinstance(value, cls):
            return value
        return cls.model_validate(dict(value))


class Offer(BaseModel):
    """Offer row as re-read inside the escrow transaction."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: str = Field(alias='offerId', min_length=1)
    trader_id: str = Field(alias='traderId', min_length=1)
    user_id: str = Field(alias='userId', min_length=1)
    amount_usdt: Decimal = Field(alias='amountUSDT', gt=0)
    asset: str = Field(min_length=1)
    price_etb_per_usdt: Decimal = Field(alias='priceETBPerUSDT', gt=0)
    payment_method: str = Field(alias='paymentMethod', min_length=1)
    status: str
    escrow_id: Optional[UUID] = Field(None, alias='escrowId')
    updated_at: Optional[datetime] = Field(None, alias='updatedAt')

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Offer':
        """Validate a database row into an Offer.

        Raises:
            InvalidOfferError: If a required field is missing or malformed
        """
        try:
            return cls.model_validate(dict(record))
        except ValidationError as e:
            names = {
                field.alias: name
                for name, field in cls.model_fields.items()
                if field.alias
            }
            fields = ', '.join(
                '.'.join(str(names.get(part, part)) for part in error['loc'])
                for error in e.errors()
            )
            raise InvalidOfferError(
                f"Offer {record.get('id')} has missing or invalid fields: {fields}"
            ) from e


class Escrow(BaseModel):
    id: UUID
    offer_id: str
    trader_id: str
    buyer_id: str
    amount_usdt: Decimal
    asset: str
    price_etb_per_usdt: Decimal
    payment_method: str
    status: EscrowStatus = EscrowStatus.IN_ESCROW
    created_at: datetime


class Notification(BaseModel):
    id: UUID
    user_id: str
    type: NotificationType
    offer_id: str
    message: str
    created_at: datetime


class ChangeEvent(BaseModel):
    """A modification of one offer row: the row id and its two images."""
    offer_id: str
    before: Optional[OfferSnapshot] = None
    after: Optional[OfferSnapshot] = None


class TransitionOutcome(str, Enum):
    CREATED = "created"                  # escrow and notifications written
    ALREADY_APPLIED = "already_applied"  # escrow existed, offer status confirmed
    SKIPPED = "skipped"                  # event is not an acceptance
    STALE = "stale"                      # offer no longer accepted on re-read
    REJECTED = "rejected"                # offer fields unusable


class TransitionResult(BaseModel):
    offer_id: str
    outcome: TransitionOutcome
    escrow_id: Optional[UUID] = None
    notification_ids: List[UUID] = Field(default_factory=list)
    detail: Optional[str] = None
