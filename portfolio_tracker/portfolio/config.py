"""Portfolio constants and environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..errors import ConfigError

INITIAL_INVESTMENT = 500.0
COIN_ALLOCATION = 100.0  # Nominally invested in each asset at baseline
TARGET_MULTIPLIER = 5.0
TRACKING_DAYS = 180
HISTORY_SIZE = 51  # 50 retained entries plus the newest one

FETCH_INTERVAL = 60.0  # Seconds between price polls
CLOCK_INTERVAL = 1.0  # Seconds between countdown ticks

# When the fixed baseline prices were taken
DEFAULT_TRACKING_START = "2025-12-11T23:37:00-05:00"
DEFAULT_STORE_PATH = "~/.portfolio_tracker/store.json"

BASELINE_MODES = ("fixed", "captured")


@dataclass(frozen=True)
class TrackerConfig:
    """Settings for one deployment of the tracker.

    ``baseline_mode`` picks both the baseline lifecycle and the countdown
    style: "fixed" measures against hardcoded prices and counts down to the
    second, "captured" measures against the session's first fetch and counts
    whole days.
    """

    baseline_mode: str = "fixed"
    tracking_start: float = datetime.fromisoformat(DEFAULT_TRACKING_START).timestamp()
    store_path: Path = Path(DEFAULT_STORE_PATH).expanduser()
    fetch_interval: float = FETCH_INTERVAL
    clock_interval: float = CLOCK_INTERVAL
    initial_investment: float = INITIAL_INVESTMENT
    allocation: float = COIN_ALLOCATION
    target_multiplier: float = TARGET_MULTIPLIER
    tracking_days: int = TRACKING_DAYS
    history_size: int = HISTORY_SIZE

    def __post_init__(self) -> None:
        if self.baseline_mode not in BASELINE_MODES:
            raise ConfigError(
                f"Unknown BASELINE_MODE {self.baseline_mode!r}; expected one of {BASELINE_MODES}"
            )
        if self.fetch_interval <= 0 or self.clock_interval <= 0:
            raise ConfigError("Poll and clock intervals must be positive")
        if self.history_size < 1:
            raise ConfigError("History size must be at least 1")

    @classmethod
    def from_env(cls) -> TrackerConfig:
        """Build a config from BASELINE_MODE, TRACKING_START, BASELINE_STORE_PATH and FETCH_INTERVAL."""
        mode = os.environ.get("BASELINE_MODE", "fixed").strip().lower() or "fixed"

        raw_start = os.environ.get("TRACKING_START", "").strip() or DEFAULT_TRACKING_START
        try:
            start = datetime.fromisoformat(raw_start)
        except ValueError as e:
            raise ConfigError(f"TRACKING_START is not an ISO timestamp: {raw_start!r}") from e
        if start.tzinfo is None:
            raise ConfigError(f"TRACKING_START needs a UTC offset: {raw_start!r}")

        store_path = os.environ.get("BASELINE_STORE_PATH", "").strip() or DEFAULT_STORE_PATH

        raw_interval = os.environ.get("FETCH_INTERVAL", "").strip()
        try:
            interval = float(raw_interval) if raw_interval else FETCH_INTERVAL
        except ValueError as e:
            raise ConfigError(f"FETCH_INTERVAL is not a number: {raw_interval!r}") from e

        return cls(
            baseline_mode=mode,
            tracking_start=start.timestamp(),
            store_path=Path(store_path).expanduser(),
            fetch_interval=interval,
        )
