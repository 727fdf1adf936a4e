"""Tracked assets, fixed baseline prices, and simulator parameters."""

from .models import Asset, BaselinePrice

# The five tokens the portfolio holds, in display order
TRACKED_ASSETS: tuple[Asset, ...] = (
    Asset(id="arbitrum", symbol="ARB", name="Arbitrum", color="#28A0F0"),
    Asset(id="optimism", symbol="OP", name="Optimism", color="#FF0420"),
    Asset(id="celestia", symbol="TIA", name="Celestia", color="#7B61FF"),
    Asset(id="injective-protocol", symbol="INJ", name="Injective", color="#00F2FE"),
    Asset(id="render-token", symbol="RENDER", name="Render", color="#E84855"),
)

# Prices at 2025-12-11 23:37 US Eastern. Everyone measures against these.
FIXED_BASELINE: dict[str, BaselinePrice] = {
    "arbitrum": BaselinePrice(price=0.2113),
    "optimism": BaselinePrice(price=0.3111),
    "celestia": BaselinePrice(price=0.5897),
    "injective-protocol": BaselinePrice(price=5.56),
    "render-token": BaselinePrice(price=1.61),
}

# Per-asset GBM parameters for the offline simulator
# sigma: annualized volatility, mu: annualized drift
ASSET_PARAMS: dict[str, dict[str, float]] = {
    "arbitrum": {"sigma": 0.95, "mu": 0.10},
    "optimism": {"sigma": 1.00, "mu": 0.10},
    "celestia": {"sigma": 1.20, "mu": 0.05},  # Young token, wild swings
    "injective-protocol": {"sigma": 0.90, "mu": 0.15},
    "render-token": {"sigma": 1.05, "mu": 0.15},
}

# Default parameters for assets not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 1.0, "mu": 0.05}

# Correlation groups for the simulator's Cholesky decomposition: members and
# the correlation between any two of them
CORRELATION_GROUPS: dict[str, tuple[frozenset[str], float]] = {
    "layer2": (frozenset({"arbitrum", "optimism"}), 0.8),  # Rollups trade almost in lockstep
    "infra": (frozenset({"celestia", "injective-protocol", "render-token"}), 0.6),
}

# Any pair not sharing a group. Altcoins all follow BTC to some degree
CROSS_GROUP_CORR = 0.5
