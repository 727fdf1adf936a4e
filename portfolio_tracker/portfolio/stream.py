"""HTTP endpoints for the dashboard: a JSON snapshot and an SSE feed."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .engine import PortfolioEngine

logger = logging.getLogger(__name__)


def create_portfolio_router(engine: PortfolioEngine) -> APIRouter:
    """Create the dashboard router with a reference to the engine.

    This factory pattern lets us inject the engine without globals.
    """
    router = APIRouter(prefix="/api", tags=["portfolio"])

    @router.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @router.get("/portfolio")
    async def get_portfolio() -> dict:
        """Current valuation, history, and countdown in one payload."""
        return engine.state().to_dict()

    @router.get("/stream/portfolio")
    async def stream_portfolio(request: Request) -> StreamingResponse:
        """SSE endpoint for live dashboard updates.

        Emits the full dashboard state whenever it changes. The client
        connects with EventSource and receives events in the format:

            data: {"portfolio_value": 512.3, "positions": [...], ...}

        Includes a retry directive so the browser auto-reconnects on
        disconnection (EventSource built-in behavior).
        """
        return StreamingResponse(
            _generate_events(engine, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    engine: PortfolioEngine,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE-formatted dashboard events.

    Checks the engine's version every ``interval`` seconds and sends the
    state only when it moved. Stops when the client disconnects.
    """
    yield "retry: 1000\n\n"

    last_version = -1
    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client connected: %s", client_ip)

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break

            current_version = engine.version
            if current_version != last_version:
                last_version = current_version
                payload = json.dumps(engine.state().to_dict())
                yield f"data: {payload}\n\n"

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
