"""In-memory store for the latest price snapshot."""

from __future__ import annotations

from threading import Lock

from .models import PriceQuote


class PriceCache:
    """Holds the most recent successful price snapshot.

    The snapshot is replaced wholesale on every successful fetch: an asset
    missing from the newest fetch has no current price, even if an older
    fetch priced it. A failed fetch never touches the cache.

    Writer: PortfolioEngine.
    Readers: valuation, HTTP endpoints.
    """

    def __init__(self) -> None:
        self._quotes: dict[str, PriceQuote] = {}
        self._lock = Lock()

    def replace(self, quotes: dict[str, PriceQuote]) -> None:
        """Swap in a new snapshot."""
        with self._lock:
            self._quotes = dict(quotes)

    def get(self, asset_id: str) -> PriceQuote | None:
        """Get the latest quote for a single asset, or None if unpriced."""
        with self._lock:
            return self._quotes.get(asset_id)

    def get_all(self) -> dict[str, PriceQuote]:
        """Snapshot of all current quotes. Returns a shallow copy."""
        with self._lock:
            return dict(self._quotes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._quotes)

    def __contains__(self, asset_id: str) -> bool:
        with self._lock:
            return asset_id in self._quotes
