"""Tests for PortfolioEngine."""

import asyncio

import pytest

from portfolio_tracker.errors import FetchFailure
from portfolio_tracker.market.assets import FIXED_BASELINE
from portfolio_tracker.market.interface import PriceSource
from portfolio_tracker.market.models import PriceQuote
from portfolio_tracker.portfolio.baseline import CapturedBaseline, FixedBaseline, JsonFileStore
from portfolio_tracker.portfolio.config import TrackerConfig
from portfolio_tracker.portfolio.engine import FETCH_ERROR_MESSAGE, PortfolioEngine

START = 1_765_514_220.0
DAY = 86400


class FakeClock:
    def __init__(self, now: float = START + 10 * DAY) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class GatedPriceSource(PriceSource):
    """Each fetch blocks until the test resolves its future."""

    def __init__(self) -> None:
        self.pending: list[asyncio.Future] = []

    async def fetch(self, asset_ids: list[str]) -> dict[str, PriceQuote]:
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


def _quotes(**prices: float) -> dict[str, PriceQuote]:
    return {
        asset_id: PriceQuote(asset_id=asset_id, price=price, timestamp=1.0)
        for asset_id, price in prices.items()
    }


def _fixed_engine(source, clock=None, **config) -> PortfolioEngine:
    return PortfolioEngine(
        source=source,
        baseline=FixedBaseline(FIXED_BASELINE, START),
        config=TrackerConfig(**config),
        clock=clock or FakeClock(),
    )


@pytest.mark.asyncio
class TestRefresh:
    """One fetch → value → notify cycle."""

    async def test_initial_state(self, scripted_source):
        engine = _fixed_engine(scripted_source())
        assert engine.loading
        assert engine.error is None
        assert engine.last_update is None
        assert len(engine.history) == 0
        assert engine.valuation().portfolio_value == 0.0

    async def test_success_updates_everything(self, scripted_source, parity_prices):
        clock = FakeClock()
        source = scripted_source(parity_prices)
        engine = _fixed_engine(source, clock=clock)

        assert await engine.refresh() is True

        assert source.calls == [list(FIXED_BASELINE)]
        assert engine.cache.get("arbitrum").price == 0.2113
        assert engine.last_update == clock.now
        assert not engine.loading
        assert engine.error is None
        assert len(engine.history) == 1
        assert engine.history.entries()[0].timestamp == clock.now
        assert engine.valuation().portfolio_value == pytest.approx(500.0)

    async def test_failure_preserves_state(self, scripted_source, parity_prices):
        """A failed fetch only flips the error flag."""
        source = scripted_source(parity_prices, FetchFailure("HTTP 429"))
        clock = FakeClock()
        engine = _fixed_engine(source, clock=clock)
        await engine.refresh()

        snapshot = engine.cache.get_all()
        history = engine.history.entries()
        baseline = engine.baseline.prices
        last_update = engine.last_update
        clock.now += 60

        assert await engine.refresh() is False

        assert engine.error == FETCH_ERROR_MESSAGE
        assert engine.cache.get_all() == snapshot
        assert engine.history.entries() == history
        assert engine.baseline.prices == baseline
        assert engine.last_update == last_update

    async def test_failure_on_first_fetch(self, scripted_source):
        engine = _fixed_engine(scripted_source(FetchFailure("offline")))

        await engine.refresh()

        assert not engine.loading
        assert engine.error == FETCH_ERROR_MESSAGE
        assert len(engine.cache) == 0
        assert len(engine.history) == 0

    async def test_success_clears_error(self, scripted_source, parity_prices):
        engine = _fixed_engine(scripted_source(FetchFailure("offline"), parity_prices))
        await engine.refresh()
        await engine.refresh()
        assert engine.error is None

    async def test_partial_fetch_replaces_snapshot(self, scripted_source):
        engine = _fixed_engine(scripted_source({"arbitrum": 0.3, "optimism": 0.4}, {"arbitrum": 0.35}))
        await engine.refresh()
        await engine.refresh()
        assert engine.cache.get_all().keys() == {"arbitrum"}
        assert engine.cache.get("arbitrum").price == 0.35
        assert engine.history.entries()[-1].prices == {"ARB": 0.35}

    async def test_history_capped(self, scripted_source):
        clock = FakeClock()
        engine = _fixed_engine(scripted_source(*[{"arbitrum": 0.2}] * 52), clock=clock)
        first_time = clock.now
        for _ in range(52):
            await engine.refresh()
            clock.now += 60

        assert len(engine.history) == 51
        assert engine.history.entries()[0].timestamp == first_time + 60

    async def test_captured_baseline_taken_once(self, scripted_source, tmp_path):
        source = scripted_source({"arbitrum": 0.2, "optimism": 0.3}, {"arbitrum": 0.4, "optimism": 0.3})
        engine = PortfolioEngine(
            source=source,
            baseline=CapturedBaseline(JsonFileStore(tmp_path / "store.json")),
            config=TrackerConfig(baseline_mode="captured"),
            clock=FakeClock(),
        )

        await engine.refresh()
        assert engine.valuation().portfolio_value == pytest.approx(200.0)

        await engine.refresh()
        assert engine.baseline.prices["arbitrum"].price == 0.2
        arb = engine.valuation().positions[0]
        assert arb.value == pytest.approx(200.0)
        assert arb.performance_pct == pytest.approx(100.0)

    async def test_late_response_wins(self):
        """Overlapping fetches: whichever answer lands last is kept."""
        source = GatedPriceSource()
        engine = _fixed_engine(source)

        older = asyncio.create_task(engine.refresh())
        newer = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)
        assert len(source.pending) == 2

        source.pending[1].set_result(_quotes(arbitrum=0.30))
        await newer
        source.pending[0].set_result(_quotes(arbitrum=0.25))
        await older

        assert engine.cache.get("arbitrum").price == 0.25
        assert [e.prices["ARB"] for e in engine.history] == [0.30, 0.25]

    async def test_response_after_stop_is_dropped(self):
        source = GatedPriceSource()
        engine = _fixed_engine(source)

        pending = asyncio.create_task(engine.refresh())
        await asyncio.sleep(0)
        await engine.stop()

        # stop() cancelled nothing here because the refresh was not spawned by the engine
        source.pending[0].set_result(_quotes(arbitrum=0.25))
        assert await pending is False
        assert len(engine.cache) == 0
        assert len(engine.history) == 0
        assert engine.loading

    async def test_listener_notified(self, scripted_source, parity_prices):
        engine = _fixed_engine(scripted_source(parity_prices))
        seen = []
        engine.subscribe(seen.append)

        await engine.refresh()

        assert len(seen) == 1
        assert seen[0].valuation.portfolio_value == pytest.approx(500.0)
        assert seen[0].version == engine.version

    async def test_unsubscribe(self, scripted_source, parity_prices):
        engine = _fixed_engine(scripted_source(parity_prices))
        seen = []
        unsubscribe = engine.subscribe(seen.append)
        unsubscribe()
        unsubscribe()  # Should not raise

        await engine.refresh()

        assert seen == []

    async def test_failing_listener_does_not_break_refresh(self, scripted_source, parity_prices):
        engine = _fixed_engine(scripted_source(parity_prices))
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        engine.subscribe(broken)
        engine.subscribe(seen.append)

        assert await engine.refresh() is True
        assert len(seen) == 1


@pytest.mark.asyncio
class TestState:
    """The snapshot handed to the display."""

    async def test_fixed_mode_counts_down(self, scripted_source):
        engine = _fixed_engine(scripted_source(), clock=FakeClock(START + 10 * DAY))
        state = engine.state()
        assert state.time_remaining.days == 170
        assert state.days_remaining is None
        assert state.tracking_start == START

    async def test_captured_mode_before_capture(self, scripted_source, tmp_path):
        engine = PortfolioEngine(
            source=scripted_source(),
            baseline=CapturedBaseline(JsonFileStore(tmp_path / "store.json")),
            config=TrackerConfig(baseline_mode="captured"),
            clock=FakeClock(),
        )
        state = engine.state()
        assert state.time_remaining is None
        assert state.days_remaining is None
        assert state.tracking_start is None

    async def test_captured_mode_counts_days(self, scripted_source, tmp_path):
        clock = FakeClock(START)
        engine = PortfolioEngine(
            source=scripted_source({"arbitrum": 0.2}),
            baseline=CapturedBaseline(JsonFileStore(tmp_path / "store.json")),
            config=TrackerConfig(baseline_mode="captured"),
            clock=clock,
        )
        await engine.refresh()
        clock.now = START + 200 * DAY

        state = engine.state()

        assert state.time_remaining is None
        assert state.days_remaining.elapsed == 200
        assert state.days_remaining.remaining == -20

    async def test_to_dict(self, scripted_source, parity_prices):
        engine = _fixed_engine(scripted_source(parity_prices))
        await engine.refresh()

        data = engine.state().to_dict()

        assert data["portfolio_value"] == pytest.approx(500.0)
        assert data["percent_to_target"] == pytest.approx(20.0)
        assert data["loading"] is False
        assert data["error"] is None
        assert data["baseline_mode"] == "fixed"
        assert data["time_remaining"]["days"] == 170
        assert data["days_remaining"] is None
        assert len(data["positions"]) == 5
        assert data["history"][0]["ARB"] == 0.2113


@pytest.mark.asyncio
class TestLifecycle:
    """Timers, start, and stop."""

    async def test_start_fetches_immediately(self, scripted_source, parity_prices):
        source = scripted_source(parity_prices)
        engine = _fixed_engine(source, fetch_interval=60.0)

        await engine.start()
        await asyncio.sleep(0.01)

        assert len(source.calls) == 1
        assert engine.cache.get("arbitrum").price == 0.2113
        await engine.stop()

    async def test_polls_on_interval(self, scripted_source, parity_prices):
        source = scripted_source(*[parity_prices] * 100)
        engine = _fixed_engine(source, fetch_interval=0.01)

        await engine.start()
        await asyncio.sleep(0.1)
        await engine.stop()

        assert len(source.calls) >= 3

    async def test_poll_survives_failures(self, scripted_source, parity_prices):
        source = scripted_source(FetchFailure("down"), RuntimeError("bug"), *[parity_prices] * 100)
        engine = _fixed_engine(source, fetch_interval=0.01)

        await engine.start()
        await asyncio.sleep(0.1)
        await engine.stop()

        assert len(source.calls) >= 3
        assert engine.error is None
        assert engine.cache.get("arbitrum").price == 0.2113

    async def test_clock_ticks_in_fixed_mode(self, scripted_source):
        engine = _fixed_engine(scripted_source(), fetch_interval=60.0, clock_interval=0.01)

        await engine.start()
        assert engine._clock_task is not None
        before = engine.version
        await asyncio.sleep(0.1)
        assert engine.version >= before + 3
        await engine.stop()

    async def test_no_clock_in_captured_mode(self, scripted_source, tmp_path):
        engine = PortfolioEngine(
            source=scripted_source(),
            baseline=CapturedBaseline(JsonFileStore(tmp_path / "store.json")),
            config=TrackerConfig(baseline_mode="captured"),
            clock=FakeClock(),
        )

        await engine.start()
        assert engine._clock_task is None
        await engine.stop()

    async def test_stop_cancels_everything(self):
        source = GatedPriceSource()
        engine = _fixed_engine(source, fetch_interval=60.0)

        await engine.start()
        await asyncio.sleep(0)
        assert len(engine._refreshes) == 1
        in_flight = next(iter(engine._refreshes))

        await engine.stop()

        assert in_flight.cancelled()
        assert engine._poll_task is None
        assert engine._clock_task is None
        assert engine._refreshes == set()
        assert len(engine.cache) == 0

    async def test_stop_closes_source(self, scripted_source):
        source = scripted_source()
        engine = _fixed_engine(source)
        await engine.start()
        await engine.stop()
        assert source.closed

    async def test_stop_is_idempotent(self, scripted_source):
        engine = _fixed_engine(scripted_source())
        await engine.stop()
        await engine.stop()  # Should not raise

    async def test_start_twice_is_noop(self, scripted_source, parity_prices):
        source = scripted_source(parity_prices, parity_prices)
        engine = _fixed_engine(source, fetch_interval=60.0)
        await engine.start()
        task = engine._poll_task
        await engine.start()
        assert engine._poll_task is task
        await engine.stop()
