"""The refresh cycle: poll prices, value the portfolio, tell the display."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..errors import FetchFailure
from ..market.assets import TRACKED_ASSETS
from ..market.cache import PriceCache
from ..market.interface import PriceSource
from ..market.models import Asset
from .baseline import Baseline
from .config import TrackerConfig
from .countdown import DaysRemaining, TimeRemaining, days_remaining, time_remaining
from .history import HistoryBuffer, HistoryEntry
from .valuation import PortfolioValuation, value_portfolio

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Failed to fetch prices"

Listener = Callable[["DashboardState"], None]


@dataclass(frozen=True)
class DashboardState:
    """Everything the presentation layer renders, frozen at one instant."""

    valuation: PortfolioValuation
    history: list[HistoryEntry]
    loading: bool
    error: str | None
    last_update: float | None
    baseline_mode: str
    tracking_start: float | None
    time_remaining: TimeRemaining | None
    days_remaining: DaysRemaining | None
    version: int

    def to_dict(self) -> dict:
        return {
            **self.valuation.to_dict(),
            "history": [entry.to_dict() for entry in self.history],
            "loading": self.loading,
            "error": self.error,
            "last_update": self.last_update,
            "baseline_mode": self.baseline_mode,
            "tracking_start": self.tracking_start,
            "time_remaining": self.time_remaining.to_dict() if self.time_remaining else None,
            "days_remaining": self.days_remaining.to_dict() if self.days_remaining else None,
            "version": self.version,
        }


class PortfolioEngine:
    """Owns all mutable tracker state and the timers that drive it.

    Every poll interval a refresh task is spawned: fetch → update snapshot,
    baseline and history → notify listeners. Refreshes are fire-and-forget
    and never wait for each other, so a slow response that lands after a
    newer one overwrites it. That race is accepted.

    A failed fetch flips the error flag and leaves the snapshot, baseline and
    history exactly as they were.

    Lifecycle:
        engine = PortfolioEngine(source, baseline, config)
        await engine.start()     # first fetch fires immediately
        state = engine.state()
        await engine.stop()      # timers cancelled, no mutation afterwards
    """

    def __init__(
        self,
        source: PriceSource,
        baseline: Baseline,
        config: TrackerConfig | None = None,
        assets: Sequence[Asset] = TRACKED_ASSETS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._baseline = baseline
        self._config = config or TrackerConfig()
        self._assets = tuple(assets)
        self._clock = clock

        self._cache = PriceCache()
        self._history = HistoryBuffer(maxlen=self._config.history_size)
        self._error: str | None = None
        self._loading = True
        self._last_update: float | None = None
        self._version = 0
        self._listeners: list[Listener] = []

        self._poll_task: asyncio.Task | None = None
        self._clock_task: asyncio.Task | None = None
        self._refreshes: set[asyncio.Task] = set()
        self._stopped = False

    # --- Lifecycle ---

    async def start(self) -> None:
        if self._poll_task is not None:
            return
        self._stopped = False

        # First fetch goes out right away; the loop handles the rest
        self._spawn_refresh()
        self._poll_task = asyncio.create_task(self._poll_loop(), name="price-poller")
        if self.uses_countdown:
            self._clock_task = asyncio.create_task(self._clock_loop(), name="countdown-clock")
        logger.info(
            "Portfolio engine started: %d assets, %.1fs interval, %s baseline",
            len(self._assets),
            self._config.fetch_interval,
            self._config.baseline_mode,
        )

    async def stop(self) -> None:
        """Cancel the timers and any in-flight fetch. Safe to call multiple times."""
        self._stopped = True
        tasks = [t for t in (self._poll_task, self._clock_task, *self._refreshes) if t and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_task = None
        self._clock_task = None
        self._refreshes.clear()
        await self._source.close()
        logger.info("Portfolio engine stopped")

    # --- Refresh cycle ---

    async def refresh(self) -> bool:
        """Fetch once and fold the result into state. Returns True on success."""
        try:
            quotes = await self._source.fetch(self.asset_ids)
        except FetchFailure as e:
            if self._stopped:
                return False
            logger.error("Price fetch failed: %s", e)
            self._error = FETCH_ERROR_MESSAGE
            self._loading = False
            self._changed()
            return False

        if self._stopped:
            return False

        now = self._clock()
        self._cache.replace(quotes)
        self._last_update = now
        self._baseline.capture(quotes, now)
        self._history.record(now, self._assets, quotes)
        self._error = None
        self._loading = False
        logger.debug("Refreshed prices for %d/%d assets", len(quotes), len(self._assets))
        self._changed()
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new state after every change. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Read side ---

    def valuation(self) -> PortfolioValuation:
        return value_portfolio(
            self._assets,
            self._cache.get_all(),
            self._baseline.prices,
            initial_investment=self._config.initial_investment,
            allocation=self._config.allocation,
            multiplier=self._config.target_multiplier,
        )

    def state(self) -> DashboardState:
        now = self._clock()
        start = self._baseline.start_time
        countdown = None
        day_count = None
        if start is not None:
            if self.uses_countdown:
                countdown = time_remaining(start, now, self._config.tracking_days)
            else:
                day_count = days_remaining(start, now, self._config.tracking_days)

        return DashboardState(
            valuation=self.valuation(),
            history=self._history.entries(),
            loading=self._loading,
            error=self._error,
            last_update=self._last_update,
            baseline_mode=self._config.baseline_mode,
            tracking_start=start,
            time_remaining=countdown,
            days_remaining=day_count,
            version=self._version,
        )

    @property
    def asset_ids(self) -> list[str]:
        return [asset.id for asset in self._assets]

    @property
    def uses_countdown(self) -> bool:
        """Fixed deployments count down to the second; captured ones count days."""
        return self._config.baseline_mode == "fixed"

    @property
    def cache(self) -> PriceCache:
        return self._cache

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def baseline(self) -> Baseline:
        return self._baseline

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_update(self) -> float | None:
        return self._last_update

    @property
    def version(self) -> int:
        """Bumped on every state change and clock tick. Useful for SSE change detection."""
        return self._version

    # --- Internal ---

    def _spawn_refresh(self) -> None:
        task = asyncio.create_task(self.refresh(), name="price-refresh")
        self._refreshes.add(task)
        task.add_done_callback(self._refresh_done)

    def _refresh_done(self, task: asyncio.Task) -> None:
        self._refreshes.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Price refresh crashed", exc_info=exc)

    async def _poll_loop(self) -> None:
        """Spawn a refresh on interval. First refresh already went out in start()."""
        while True:
            await asyncio.sleep(self._config.fetch_interval)
            self._spawn_refresh()

    async def _clock_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.clock_interval)
            self._changed()

    def _changed(self) -> None:
        self._version += 1
        if not self._listeners:
            return
        state = self.state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Dashboard listener failed")
