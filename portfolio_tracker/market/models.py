"""Data models for market data."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Asset:
    """A tracked token. ``id`` is the key the price API knows it by."""

    id: str
    symbol: str
    name: str
    color: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "color": self.color,
        }


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Immutable spot price for a single asset at a point in time."""

    asset_id: str
    price: float
    change_24h: float = 0.0  # Percent, as reported by the API
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat' over the last 24 hours."""
        if self.change_24h > 0:
            return "up"
        elif self.change_24h < 0:
            return "down"
        return "flat"


@dataclass(frozen=True, slots=True)
class BaselinePrice:
    """Reference price an asset's performance is measured against.

    ``change_24h`` is recorded at capture time for completeness; nothing
    downstream reads it.
    """

    price: float
    change_24h: float = 0.0

    def to_dict(self) -> dict:
        return {"price": self.price, "change_24h": self.change_24h}

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> BaselinePrice:
        return cls(price=quote.price, change_24h=quote.change_24h)
