"""Offer, escrow and notification persistence.

All reads and writes of one transition go through a StoreTransaction bound
to a single SERIALIZABLE transaction. EscrowStore opens that transaction and
re-runs it from the start when CockroachDB reports a write conflict.
"""
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from uuid import UUID

from asyncpg.pool import Pool

from database.transaction import DEFAULT_MAX_ATTEMPTS, retry_on_conflict
from .models import Escrow, Notification, OfferStatus

logger = logging.getLogger(__name__)

T = TypeVar('T')

def _affected_rows(status: str) -> int:
    """Parse the row count from a command status such as 'UPDATE 1'."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0

class StoreTransaction:
    """Queries run inside one open transaction."""

    def __init__(self, conn, commit_time: datetime) -> None:
        """Bind to a connection with an open transaction.

        Args:
            conn: Connection the transaction runs on
            commit_time: Transaction timestamp used for every written timestamp
        """
        self.conn = conn
        self.commit_time = commit_time

    async def get_offer(self, offer_id: str) -> Optional[Dict[str, Any]]:
        """Read the offer row and lock it for the rest of the transaction."""
        row = await self.conn.fetchrow(
            '''
            SELECT
                id, trader_id, user_id, amount_usdt, asset,
                price_etb_per_usdt, payment_method, status,
                escrow_id, updated_at
            FROM offers
            WHERE id = $1
            FOR UPDATE
            ''',
            offer_id
        )
        return dict(row) if row else None

    async def find_escrow_id(self, offer_id: str) -> Optional[UUID]:
        """Return the ID of the escrow already created for the offer, if any."""
        return await self.conn.fetchval(
            'SELECT id FROM escrows WHERE offer_id = $1 LIMIT 1',
            offer_id
        )

    async def insert_escrow(self, escrow: Escrow) -> None:
        await self.conn.execute(
            '''
            INSERT INTO escrows (
                id, offer_id, trader_id, buyer_id, amount_usdt, asset,
                price_etb_per_usdt, payment_method, status, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            ''',
            escrow.id,
            escrow.offer_id,
            escrow.trader_id,
            escrow.buyer_id,
            escrow.amount_usdt,
            escrow.asset,
            escrow.price_etb_per_usdt,
            escrow.payment_method,
            escrow.status.value,
            escrow.created_at
        )

    async def mark_offer_in_escrow(self, offer_id: str, escrow_id: UUID) -> bool:
        """Move an accepted offer to in_escrow and link its escrow.

        Returns:
            False if the offer was no longer accepted
        """
        status = await self.conn.execute(
            '''
            UPDATE offers
            SET
                status = $2,
                escrow_id = $3,
                updated_at = $4
            WHERE id = $1
            AND status = $5
            ''',
            offer_id,
            OfferStatus.IN_ESCROW.value,
            escrow_id,
            self.commit_time,
            OfferStatus.ACCEPTED.value
        )
        return _affected_rows(status) == 1

    async def normalize_offer_status(self, offer_id: str, escrow_id: UUID) -> bool:
        """Confirm in_escrow on an offer whose escrow already exists.

        Offers already past in_escrow are left alone. An existing escrow_id
        is never replaced; a missing one is filled in.

        Returns:
            False if the offer's status did not allow the update
        """
        status = await self.conn.execute(
            '''
            UPDATE offers
            SET
                status = $2,
                escrow_id = COALESCE(escrow_id, $3),
                updated_at = $4
            WHERE id = $1
            AND status IN ($5, $2)
            ''',
            offer_id,
            OfferStatus.IN_ESCROW.value,
            escrow_id,
            self.commit_time,
            OfferStatus.ACCEPTED.value
        )
        return _affected_rows(status) == 1

    async def insert_notification(self, notification: Notification) -> None:
        await self.conn.execute(
            '''
            INSERT INTO notifications (
                id, user_id, type, offer_id, message, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6)
            ''',
            notification.id,
            notification.user_id,
            notification.type.value,
            notification.offer_id,
            notification.message,
            notification.created_at
        )

class EscrowStore:
    """Runs transition work in serializable transactions against the pool."""

    def __init__(self, pool: Pool, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        """Initialize the store.

        Args:
            pool: Database connection pool
            max_attempts: Attempts per transaction before a conflict is fatal
        """
        self.pool = pool
        self.max_attempts = max_attempts

    async def run_transaction(
        self,
        work: Callable[[StoreTransaction], Awaitable[T]]
    ) -> T:
        """Run work inside one serializable transaction and commit it.

        The work function is called again on a fresh transaction after a
        write conflict, so it must derive everything from what it reads.

        Raises:
            TransactionConflictError: If every attempt lost a write conflict
        """
        async def attempt() -> T:
            async with self.pool.acquire() as conn:
                async with conn.transaction(isolation='serializable'):
                    # now() is fixed for the whole transaction
                    commit_time = await conn.fetchval('SELECT now()')
                    return await work(StoreTransaction(conn, commit_time))

        return await retry_on_conflict(attempt, self.max_attempts)
