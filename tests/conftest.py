"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from portfolio_tracker.errors import FetchFailure
from portfolio_tracker.market.interface import PriceSource
from portfolio_tracker.market.models import PriceQuote


class ScriptedPriceSource(PriceSource):
    """PriceSource that replays queued responses.

    Queue a dict of {asset_id: price} for a successful fetch, or an
    exception instance to have fetch() raise it.
    """

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[list[str]] = []
        self.closed = False

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        self.calls.append(list(asset_ids))
        if not self.responses:
            raise FetchFailure("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return {
            asset_id: PriceQuote(asset_id=asset_id, price=price, change_24h=1.5, timestamp=1.0)
            for asset_id, price in response.items()
        }

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_source():
    """Factory for ScriptedPriceSource instances."""
    return ScriptedPriceSource


@pytest.fixture
def parity_prices() -> dict[str, float]:
    """Every tracked asset priced exactly at its fixed baseline."""
    from portfolio_tracker.market.assets import FIXED_BASELINE

    return {asset_id: base.price for asset_id, base in FIXED_BASELINE.items()}
