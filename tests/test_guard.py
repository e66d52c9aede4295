"""Tests for acceptance detection."""

import pytest

from escrow import OfferSnapshot, is_acceptance

def snapshot(status):
    return OfferSnapshot(id="offer-1", status=status)

@pytest.mark.parametrize("before,after", [
    ("pending", "accepted"),
    ("cancelled", "accepted"),
    (None, "accepted"),
])
def test_status_change_to_accepted(before, after):
    """Test that a change into accepted is an acceptance."""
    assert is_acceptance(snapshot(before), snapshot(after))

def test_insert_as_accepted():
    """Test that an inserted row that is already accepted counts."""
    assert is_acceptance(None, snapshot("accepted"))

@pytest.mark.parametrize("before,after", [
    ("accepted", "accepted"),
    ("pending", "cancelled"),
    ("accepted", "in_escrow"),
    ("pending", "pending"),
])
def test_other_changes_are_ignored(before, after):
    """Test that unchanged or non-accepted statuses are not acceptances."""
    assert not is_acceptance(snapshot(before), snapshot(after))

def test_deleted_row_is_ignored():
    """Test that an event without an after image is not an acceptance."""
    assert not is_acceptance(snapshot("accepted"), None)
    assert not is_acceptance(None, None)

def test_after_without_status_is_ignored():
    """Test that an after image lacking a status is not an acceptance."""
    assert not is_acceptance(snapshot("pending"), snapshot(None))

def test_snapshot_from_camel_case_mapping():
    """Test building snapshots from change event images."""
    after = OfferSnapshot.coerce({"offerId": "offer-1", "status": "accepted", "amountUSDT": 5})
    before = OfferSnapshot.coerce({"id": "offer-1", "status": "pending"})

    # Verify aliases and extra fields
    assert after.id == "offer-1"
    assert before.id == "offer-1"
    assert is_acceptance(before, after)
    assert OfferSnapshot.coerce(None) is None
    assert OfferSnapshot.coerce(after) is after
