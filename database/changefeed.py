"""CockroachDB changefeed setup for the offers table.

Every update of an offer row is pushed to the service's webhook endpoint with
its before and after images (the ``diff`` option). Delivery is at-least-once:
a batch is redelivered until the endpoint answers with a 2xx status.
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)

WEBHOOK_SCHEME = 'webhook-https://'

CHANGEFEED_OPTIONS = (
    'updated',
    'diff',
    'key_in_value',
    "initial_scan = 'no'",
)

def _quote_literal(value: str) -> str:
    """Quote a string as a SQL literal."""
    return "'" + value.replace("'", "''") + "'"

async def create_offer_changefeed(pool, sink_url: str) -> Optional[int]:
    """Create the offers changefeed unless a running one already targets the sink.

    Args:
        pool: Database connection pool
        sink_url: Webhook sink URI, e.g. webhook-https://host:8000/changefeed/offers

    Returns:
        The changefeed job ID

    Raises:
        ValueError: If sink_url is not a webhook sink URI
    """
    if not sink_url.startswith(WEBHOOK_SCHEME):
        raise ValueError(f"Changefeed sink must start with {WEBHOOK_SCHEME}: {sink_url}")

    async with pool.acquire() as conn:
        existing = await conn.fetchval(
            '''
            SELECT job_id
            FROM [SHOW CHANGEFEED JOBS]
            WHERE sink_uri = $1
            AND status = 'running'
            LIMIT 1
            ''',
            sink_url
        )
        if existing is not None:
            logger.info(f"Offer changefeed already running as job {existing}")
            return existing

        # CREATE CHANGEFEED does not accept placeholders for the sink
        job_id = await conn.fetchval(
            f"CREATE CHANGEFEED FOR TABLE offers "
            f"INTO {_quote_literal(sink_url)} "
            f"WITH {', '.join(CHANGEFEED_OPTIONS)}"
        )
        logger.info(f"Created offer changefeed job {job_id}")
        return job_id
