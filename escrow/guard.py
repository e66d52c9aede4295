"""Decides whether an offer change event is an acceptance."""
from typing import Optional

from .models import OfferSnapshot, OfferStatus


def is_acceptance(
    before: Optional[OfferSnapshot],
    after: Optional[OfferSnapshot]
) -> bool:
    """Return True if the event moved the offer's status to accepted.

    A deleted row (no after image) or an after image without a status is
    never an acceptance. A missing before image (row insert) counts as a
    status change.
    """
    if after is None or after.status is None:
        return False

    before_status = before.status if before is not None else None
    if before_status == after.status:
        return False

    return after.status == OfferStatus.ACCEPTED.value
