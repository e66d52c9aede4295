"""REST API module for the escrow service.

This module provides HTTP endpoints for:
- Receiving offer changes from the CockroachDB changefeed webhook sink
- Service status
"""

from fastapi import FastAPI

from escrow import OfferAcceptedHandler
from .changefeed import router as changefeed_router

def create_app(handler: OfferAcceptedHandler) -> FastAPI:
    """Create the API application.

    Args:
        handler: Handler every delivered offer change is passed to

    Returns:
        The FastAPI application
    """
    app = FastAPI(
        title="Offer Escrow Service",
        description="Moves accepted offers into escrow from changefeed deliveries",
        version="1.0.0"
    )
    app.state.handler = handler

    app.include_router(changefeed_router)

    @app.get("/")
    async def root():
        return {
            "name": "Offer Escrow Service",
            "version": "1.0.0",
            "status": "running"
        }

    return app

__all__ = ['create_app']
