"""Market data subsystem for the portfolio tracker.

Public API:
    Asset               - Immutable tracked-token descriptor
    PriceQuote          - Immutable spot price snapshot dataclass
    BaselinePrice       - Reference price for performance
    PriceCache          - In-memory latest-snapshot store
    PriceSource         - Abstract interface for price providers
    TRACKED_ASSETS      - The five tokens the portfolio holds
    create_price_source - Factory that selects CoinGecko or the simulator
"""

from .assets import FIXED_BASELINE, TRACKED_ASSETS
from .cache import PriceCache
from .factory import create_price_source
from .interface import PriceSource
from .models import Asset, BaselinePrice, PriceQuote

__all__ = [
    "Asset",
    "BaselinePrice",
    "PriceQuote",
    "PriceCache",
    "PriceSource",
    "FIXED_BASELINE",
    "TRACKED_ASSETS",
    "create_price_source",
]
