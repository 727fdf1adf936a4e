"""Portfolio valuation subsystem.

Public API:
    PortfolioEngine         - Owns state and timers; fetch → value → notify
    DashboardState          - Everything the display renders, at one instant
    TrackerConfig           - Deployment settings (from_env() reads os.environ)
    create_baseline         - Fixed or captured baseline for a deployment
    value_portfolio         - Pure valuation of a snapshot against a baseline
    HistoryBuffer           - Bounded FIFO of per-fetch prices
    create_portfolio_router - FastAPI router: JSON snapshot and SSE feed
"""

from .baseline import CapturedBaseline, FixedBaseline, JsonFileStore, create_baseline
from .config import TrackerConfig
from .engine import DashboardState, PortfolioEngine
from .history import HistoryBuffer, HistoryEntry
from .stream import create_portfolio_router
from .valuation import PortfolioValuation, value_portfolio

__all__ = [
    "PortfolioEngine",
    "DashboardState",
    "TrackerConfig",
    "CapturedBaseline",
    "FixedBaseline",
    "JsonFileStore",
    "create_baseline",
    "HistoryBuffer",
    "HistoryEntry",
    "PortfolioValuation",
    "value_portfolio",
    "create_portfolio_router",
]
