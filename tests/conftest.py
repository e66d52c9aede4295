"""Shared fixtures for the escrow tests.

InMemoryEscrowStore stands in for EscrowStore. Each attempt works on a copy
of the committed state and yields to the event loop on every query, so
concurrent handlers interleave the way separate database sessions would.
A write transaction that commits after another one committed is aborted
with SerializationError, like a CockroachDB SERIALIZABLE conflict.
"""
import asyncio
import copy
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import pytest
import pytest_asyncio
from asyncpg.exceptions import SerializationError, UniqueViolationError

from database.transaction import retry_on_conflict
from escrow import Escrow, Notification, OfferAcceptedHandler, OfferStatus

# Test data
OFFER_ID = "offer-1"
TRADER_ID = "T1"
BUYER_ID = "B1"

class InMemoryTransaction:
    """StoreTransaction double working on a private copy of the state."""

    def __init__(self, store: 'InMemoryEscrowStore', state: Dict[str, Any], commit_time: datetime):
        self.store = store
        self.state = state
        self.commit_time = commit_time
        self.dirty = False

    async def _query(self, name: str) -> None:
        await asyncio.sleep(0)
        self.store.calls[name] = self.store.calls.get(name, 0) + 1
        if self.store.fail_on.get(name) == self.store.calls[name]:
            raise RuntimeError(f"injected failure in {name}")

    async def get_offer(self, offer_id: str) -> Optional[Dict[str, Any]]:
        await self._query('get_offer')
        row = self.state['offers'].get(offer_id)
        return dict(row) if row else None

    async def find_escrow_id(self, offer_id: str) -> Optional[UUID]:
        await self._query('find_escrow_id')
        for escrow in self.state['escrows'].values():
            if escrow['offer_id'] == offer_id:
                return escrow['id']
        return None

    async def insert_escrow(self, escrow: Escrow) -> None:
        await self._query('insert_escrow')
        if any(e['offer_id'] == escrow.offer_id for e in self.state['escrows'].values()):
            raise UniqueViolationError("duplicate key value violates unique constraint")
        self.state['escrows'][escrow.id] = escrow.model_dump()
        self.dirty = True

    async def mark_offer_in_escrow(self, offer_id: str, escrow_id: UUID) -> bool:
        await self._query('mark_offer_in_escrow')
        row = self.state['offers'].get(offer_id)
        if row is None or row['status'] != OfferStatus.ACCEPTED.value:
            return False
        if self.store.offer_moves_on:
            # Another writer changed the status after the re-read
            return False
        row.update(
            status=OfferStatus.IN_ESCROW.value,
            escrow_id=escrow_id,
            updated_at=self.commit_time
        )
        self.dirty = True
        return True

    async def normalize_offer_status(self, offer_id: str, escrow_id: UUID) -> bool:
        await self._query('normalize_offer_status')
        row = self.state['offers'].get(offer_id)
        allowed = (OfferStatus.ACCEPTED.value, OfferStatus.IN_ESCROW.value)
        if row is None or row['status'] not in allowed:
            return False
        row.update(
            status=OfferStatus.IN_ESCROW.value,
            escrow_id=row['escrow_id'] or escrow_id,
            updated_at=self.commit_time
        )
        self.dirty = True
        return True

    async def insert_notification(self, notification: Notification) -> None:
        await self._query('insert_notification')
        self.state['notifications'].append(notification.model_dump())
        self.dirty = True

class InMemoryEscrowStore:
    """EscrowStore double with serializable commit semantics."""

    def __init__(self, max_attempts: int = 10):
        self.max_attempts = max_attempts
        self.state: Dict[str, Any] = {'offers': {}, 'escrows': {}, 'notifications': []}
        self.version = 0
        self.attempts = 0
        self.commits = 0
        self.inject_conflicts = 0
        self.fail_on: Dict[str, int] = {}
        self.offer_moves_on = False
        self.calls: Dict[str, int] = {}
        self.clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    @property
    def offers(self) -> Dict[str, Dict[str, Any]]:
        return self.state['offers']

    @property
    def escrows(self) -> List[Dict[str, Any]]:
        return list(self.state['escrows'].values())

    @property
    def notifications(self) -> List[Dict[str, Any]]:
        return self.state['notifications']

    def seed_offer(self, offer_id: str = OFFER_ID, **fields) -> Dict[str, Any]:
        """Insert an offer row directly into the committed state."""
        row = {
            'id': offer_id,
            'trader_id': TRADER_ID,
            'user_id': BUYER_ID,
            'amount_usdt': Decimal("100"),
            'asset': "USDT",
            'price_etb_per_usdt': Decimal("150"),
            'payment_method': "CBE",
            'status': OfferStatus.ACCEPTED.value,
            'escrow_id': None,
            'updated_at': datetime(2026, 1, 1, tzinfo=timezone.utc),
        }
        row.update(fields)
        self.state['offers'][offer_id] = row
        return row

    def seed_escrow(self, escrow: Escrow) -> None:
        """Insert an escrow row directly into the committed state."""
        self.state['escrows'][escrow.id] = escrow.model_dump()

    def _commit(self, tx: InMemoryTransaction, start_version: int) -> None:
        if self.inject_conflicts > 0:
            self.inject_conflicts -= 1
            raise SerializationError("restart transaction: injected conflict")
        if not tx.dirty:
            return
        if self.version != start_version:
            raise SerializationError("restart transaction: write conflict")
        self.state = tx.state
        self.version += 1
        self.commits += 1

    async def run_transaction(self, work):
        async def attempt():
            self.attempts += 1
            start_version = self.version
            # Every attempt gets a later transaction timestamp
            self.clock += timedelta(seconds=1)
            tx = InMemoryTransaction(self, copy.deepcopy(self.state), self.clock)
            result = await work(tx)
            await asyncio.sleep(0)
            self._commit(tx, start_version)
            return result

        return await retry_on_conflict(attempt, self.max_attempts, factor=0)

@pytest.fixture
def store():
    """Create an empty in-memory escrow store."""
    return InMemoryEscrowStore()

@pytest_asyncio.fixture
async def handler(store):
    """Create a handler bound to the in-memory store."""
    return OfferAcceptedHandler(store)
