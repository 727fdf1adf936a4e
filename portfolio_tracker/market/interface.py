"""Abstract interface for price sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import PriceQuote


class PriceSource(ABC):
    """Contract for spot price providers.

    A source answers one question: what are the prices right now? It holds no
    schedule of its own. The PortfolioEngine decides when to ask and what to do
    with the answer.

    Lifecycle:
        source = create_price_source()
        quotes = await source.fetch(["arbitrum", "optimism", ...])
        # ... every poll interval ...
        quotes = await source.fetch([...])
        # ... app shutting down ...
        await source.close()
    """

    @abstractmethod
    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        """Return the current quote for each requested asset.

        Assets the provider has no data for are omitted from the result; that
        is not an error. Raises FetchFailure when the provider cannot be
        reached or its response cannot be understood.
        """

    async def close(self) -> None:
        """Release any held connections. Safe to call multiple times."""
