"""FastAPI application wiring the engine's timers into the server lifespan.

Run with:
    python -m portfolio_tracker
    uvicorn --factory portfolio_tracker.main:create_app
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .market import PriceSource, create_price_source
from .portfolio import PortfolioEngine, TrackerConfig, create_baseline, create_portfolio_router

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Point the root logger at stderr at LOG_LEVEL (default INFO)."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
        force=True,
    )


def create_app(
    config: TrackerConfig | None = None,
    source: PriceSource | None = None,
) -> FastAPI:
    """Build the app. Settings and price source come from the environment unless given."""
    config = config or TrackerConfig.from_env()
    source = source or create_price_source()
    baseline = create_baseline(config.baseline_mode, config.tracking_start, config.store_path)
    engine = PortfolioEngine(source=source, baseline=baseline, config=config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await engine.start()
        try:
            yield
        finally:
            await engine.stop()

    app = FastAPI(title="5x Or Bust Portfolio Tracker", lifespan=lifespan)
    app.state.engine = engine
    app.include_router(create_portfolio_router(engine))
    return app
