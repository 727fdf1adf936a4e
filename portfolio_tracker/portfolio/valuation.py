"""Pure valuation math: spot prices + baseline → position and portfolio figures.

Nothing here holds state. Holdings (allocation / baseline price) are
recomputed on every call rather than stored, so a baseline swap is picked up
immediately. No rounding happens here; formatting belongs to the display.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ..market.models import Asset, BaselinePrice, PriceQuote
from .config import COIN_ALLOCATION, INITIAL_INVESTMENT, TARGET_MULTIPLIER


def _usable(current: float | None, baseline: BaselinePrice | None) -> bool:
    return current is not None and baseline is not None and baseline.price > 0


def holdings(baseline: BaselinePrice, allocation: float = COIN_ALLOCATION) -> float:
    """Units of the asset the allocation bought at the baseline price."""
    return allocation / baseline.price


def coin_value(
    current: float | None,
    baseline: BaselinePrice | None,
    allocation: float = COIN_ALLOCATION,
) -> float:
    """Current worth of one asset's position, or 0 if either price is missing."""
    if not _usable(current, baseline):
        return 0.0
    return current * holdings(baseline, allocation)


def coin_performance_pct(current: float | None, baseline: BaselinePrice | None) -> float:
    """Percent move from the baseline price, or 0 if either price is missing."""
    if not _usable(current, baseline):
        return 0.0
    return (current - baseline.price) / baseline.price * 100


def portfolio_value(
    asset_ids: Iterable[str],
    prices: Mapping[str, float],
    baseline: Mapping[str, BaselinePrice],
    allocation: float = COIN_ALLOCATION,
) -> float:
    """Sum of coin values across all tracked assets."""
    return sum(
        coin_value(prices.get(asset_id), baseline.get(asset_id), allocation)
        for asset_id in asset_ids
    )


def portfolio_performance_pct(value: float, initial_investment: float = INITIAL_INVESTMENT) -> float:
    return (value - initial_investment) / initial_investment * 100


def target_value(
    initial_investment: float = INITIAL_INVESTMENT,
    multiplier: float = TARGET_MULTIPLIER,
) -> float:
    return initial_investment * multiplier


def percent_to_target(value: float, target: float) -> float:
    """How far along the way to the target the portfolio is, in percent."""
    return value / target * 100


@dataclass(frozen=True, slots=True)
class AssetPosition:
    """One card's worth of figures for the display."""

    asset: Asset
    price: float | None
    change_24h: float | None
    direction: str  # 24h move: "up", "down" or "flat"
    baseline_price: float | None
    value: float
    performance_pct: float

    def to_dict(self) -> dict:
        return {
            **self.asset.to_dict(),
            "price": self.price,
            "change_24h": self.change_24h,
            "direction": self.direction,
            "baseline_price": self.baseline_price,
            "value": self.value,
            "performance_pct": self.performance_pct,
        }


@dataclass(frozen=True, slots=True)
class PortfolioValuation:
    """Aggregate figures plus per-asset positions, in display order."""

    portfolio_value: float
    portfolio_performance_pct: float
    initial_investment: float
    target_value: float
    percent_to_target: float
    positions: tuple[AssetPosition, ...]

    def to_dict(self) -> dict:
        return {
            "portfolio_value": self.portfolio_value,
            "portfolio_performance_pct": self.portfolio_performance_pct,
            "initial_investment": self.initial_investment,
            "target_value": self.target_value,
            "percent_to_target": self.percent_to_target,
            "positions": [p.to_dict() for p in self.positions],
        }


def value_portfolio(
    assets: Iterable[Asset],
    quotes: Mapping[str, PriceQuote],
    baseline: Mapping[str, BaselinePrice],
    initial_investment: float = INITIAL_INVESTMENT,
    allocation: float = COIN_ALLOCATION,
    multiplier: float = TARGET_MULTIPLIER,
) -> PortfolioValuation:
    """Value every tracked asset and the portfolio as a whole."""
    assets = tuple(assets)
    positions = []
    for asset in assets:
        quote = quotes.get(asset.id)
        base = baseline.get(asset.id)
        current = quote.price if quote else None
        positions.append(
            AssetPosition(
                asset=asset,
                price=current,
                change_24h=quote.change_24h if quote else None,
                direction=quote.direction if quote else "flat",
                baseline_price=base.price if base else None,
                value=coin_value(current, base, allocation),
                performance_pct=coin_performance_pct(current, base),
            )
        )

    total = portfolio_value(
        [asset.id for asset in assets],
        {asset_id: quote.price for asset_id, quote in quotes.items()},
        baseline,
        allocation,
    )
    target = target_value(initial_investment, multiplier)
    return PortfolioValuation(
        portfolio_value=total,
        portfolio_performance_pct=portfolio_performance_pct(total, initial_investment),
        initial_investment=initial_investment,
        target_value=target,
        percent_to_target=percent_to_target(total, target),
        positions=tuple(positions),
    )
