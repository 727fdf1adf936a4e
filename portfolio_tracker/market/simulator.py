"""GBM-based crypto price simulator for running without network access."""

from __future__ import annotations

import logging
import math
import random
import time

import numpy as np

from .assets import (
    ASSET_PARAMS,
    CORRELATION_GROUPS,
    CROSS_GROUP_CORR,
    DEFAULT_PARAMS,
    FIXED_BASELINE,
)
from .interface import PriceSource
from .models import PriceQuote

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated token prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a year
        Z      = correlated standard normal random variable

    Crypto trades around the clock, so a year is 365 full days rather than
    the 252 trading sessions an equity model would use.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600  # 31,536,000
    DEFAULT_DT = 60.0 / SECONDS_PER_YEAR  # One poll interval, ~1.9e-6

    def __init__(
        self,
        asset_ids: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.01,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability

        self._asset_ids: list[str] = []
        self._prices: dict[str, float] = {}
        self._open_prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        # Cholesky decomposition of the correlation matrix (for correlated moves)
        self._cholesky: np.ndarray | None = None

        for asset_id in asset_ids:
            self._add_asset_internal(asset_id)
        self._rebuild_cholesky()

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance all assets by one time step. Returns {asset_id: new_price}."""
        n = len(self._asset_ids)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, asset_id in enumerate(self._asset_ids):
            params = self._params[asset_id]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[asset_id] *= math.exp(drift + diffusion)

            # Random event: listings, unlocks, exploit headlines
            if random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.03, 0.10)
                shock_sign = random.choice([-1, 1])
                self._prices[asset_id] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.1f%% %s",
                    asset_id,
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            # Sub-dollar tokens need more than cents of precision
            result[asset_id] = round(self._prices[asset_id], 6)

        return result

    def get_price(self, asset_id: str) -> float | None:
        """Current price for an asset, or None if not simulated."""
        return self._prices.get(asset_id)

    def change_since_open(self, asset_id: str) -> float:
        """Percent move since the simulator seeded this asset."""
        open_price = self._open_prices.get(asset_id)
        if not open_price:
            return 0.0
        return (self._prices[asset_id] - open_price) / open_price * 100

    # --- Internals ---

    def _add_asset_internal(self, asset_id: str) -> None:
        if asset_id in self._prices:
            return
        seed = FIXED_BASELINE.get(asset_id)
        price = seed.price if seed else random.uniform(0.1, 10.0)
        self._asset_ids.append(asset_id)
        self._prices[asset_id] = price
        self._open_prices[asset_id] = price
        self._params[asset_id] = ASSET_PARAMS.get(asset_id, dict(DEFAULT_PARAMS))

    def _rebuild_cholesky(self) -> None:
        n = len(self._asset_ids)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._asset_ids[i], self._asset_ids[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(a1: str, a2: str) -> float:
        """Correlation of two assets: their group's value if they share one, else the cross-group value."""
        for members, rho in CORRELATION_GROUPS.values():
            if a1 in members and a2 in members:
                return rho
        return CROSS_GROUP_CORR


class SimulatedPriceSource(PriceSource):
    """PriceSource backed by the GBM simulator.

    Each fetch advances the simulation by one step. The simulator is built
    lazily on the first fetch so the asset list comes from the caller.
    """

    def __init__(self, dt: float = GBMSimulator.DEFAULT_DT, event_probability: float = 0.01) -> None:
        self._dt = dt
        self._event_prob = event_probability
        self._sim: GBMSimulator | None = None

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        if self._sim is None:
            self._sim = GBMSimulator(
                asset_ids=asset_ids,
                dt=self._dt,
                event_probability=self._event_prob,
            )
            logger.info("Simulator seeded with %d assets", len(asset_ids))

        prices = self._sim.step()
        now = time.time()
        return {
            asset_id: PriceQuote(
                asset_id=asset_id,
                price=prices[asset_id],
                change_24h=self._sim.change_since_open(asset_id),
                timestamp=now,
            )
            for asset_id in asset_ids
            if asset_id in prices
        }
