"""Factory for creating price sources."""

from __future__ import annotations

import logging
import os

from ..errors import ConfigError
from .interface import PriceSource

logger = logging.getLogger(__name__)


def create_price_source() -> PriceSource:
    """Create the appropriate price source based on environment variables.

    - PRICE_SOURCE unset or "coingecko" → CoinGeckoPriceSource (live data)
      COINGECKO_API_KEY and COINGECKO_BASE_URL are honoured when set.
    - PRICE_SOURCE "simulator" → SimulatedPriceSource (GBM simulation)
    """
    kind = os.environ.get("PRICE_SOURCE", "coingecko").strip().lower() or "coingecko"

    if kind == "coingecko":
        from .coingecko import DEFAULT_BASE_URL, CoinGeckoPriceSource

        api_key = os.environ.get("COINGECKO_API_KEY", "").strip()
        base_url = os.environ.get("COINGECKO_BASE_URL", "").strip() or DEFAULT_BASE_URL
        logger.info(
            "Price source: CoinGecko (%s, %s)",
            base_url,
            "demo key" if api_key else "public",
        )
        return CoinGeckoPriceSource(api_key=api_key, base_url=base_url)
    elif kind == "simulator":
        from .simulator import SimulatedPriceSource

        logger.info("Price source: GBM Simulator")
        return SimulatedPriceSource()

    raise ConfigError(f"Unknown PRICE_SOURCE {kind!r}; expected 'coingecko' or 'simulator'")
