"""Command line interface for running the escrow service."""
import asyncio
import logging

import uvicorn

from config import load_settings_conf
from database import init_db, close as db_close
from database.changefeed import create_offer_changefeed
from escrow import EscrowStore, OfferAcceptedHandler
from . import create_app

logger = logging.getLogger(__name__)

class UvicornServer:
    """Wrapper for running uvicorn with proper lifecycle management."""

    def __init__(self, app, host: str = "0.0.0.0", port: int = 8000, log_level: str = "info"):
        self.config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level
        )
        self.server = uvicorn.Server(self.config)

    async def run(self):
        """Serve until uvicorn receives a shutdown signal."""
        await self.server.serve()

async def main(settings_path: str = "."):
    """Initialize the database, wire the handler and serve the changefeed endpoint."""
    settings = load_settings_conf(settings_path)

    logging.basicConfig(
        level=settings['log_level'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info("Initializing database...")
    pool = await init_db(settings['db_url'])

    try:
        if settings['changefeed_sink_url']:
            logger.info("Ensuring offer changefeed...")
            await create_offer_changefeed(pool, settings['changefeed_sink_url'])

        store = EscrowStore(pool, max_attempts=settings['max_transaction_attempts'])
        handler = OfferAcceptedHandler(store)

        server = UvicornServer(
            create_app(handler),
            host=settings['api_host'],
            port=settings['api_port'],
            log_level=settings['log_level'].lower()
        )
        logger.info(f"Serving on {settings['api_host']}:{settings['api_port']}")
        await server.run()

    finally:
        logger.info("Closing database connections...")
        await db_close(pool)
        logger.info("Cleanup complete.")

if __name__ == "__main__":
    asyncio.run(main())
