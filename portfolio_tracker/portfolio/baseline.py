"""Baseline prices: hardcoded, or captured once and persisted locally."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..market.assets import FIXED_BASELINE
from ..market.models import BaselinePrice, PriceQuote

logger = logging.getLogger(__name__)

BASELINE_KEY = "portfolio_baseline"


class JsonFileStore:
    """Tiny key/value store persisted as a single JSON object on disk.

    Reads go to disk every time so a second process sees the first one's
    writes. Writes land in a temp file first and are swapped in with
    os.replace, so a crash mid-write never leaves half a file behind.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    def _load(self) -> dict:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:  # UnicodeDecodeError included
            logger.warning("Ignoring unreadable store file %s", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring store file %s: top level is not an object", self._path)
            return {}
        return data


@dataclass(frozen=True)
class BaselineRecord:
    """What gets persisted: when the session began and the prices it began at."""

    start_time: float  # Unix seconds
    prices: dict[str, BaselinePrice]

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "prices": {asset_id: p.to_dict() for asset_id, p in self.prices.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BaselineRecord:
        """Parse a stored record. Raises KeyError/TypeError/ValueError if malformed or empty."""
        prices = {
            str(asset_id): BaselinePrice(
                price=float(entry["price"]),
                change_24h=float(entry.get("change_24h") or 0.0),
            )
            for asset_id, entry in data["prices"].items()
        }
        if not prices:
            raise ValueError("baseline record has no prices")
        return cls(start_time=float(data["start_time"]), prices=prices)


class Baseline(ABC):
    """Source of the reference prices performance is measured against."""

    @property
    @abstractmethod
    def prices(self) -> dict[str, BaselinePrice]:
        """Baseline per asset id. Empty until a baseline exists."""

    @property
    @abstractmethod
    def start_time(self) -> float | None:
        """Start of the tracking window, or None until a baseline exists."""

    @abstractmethod
    def capture(self, quotes: Mapping[str, PriceQuote], timestamp: float) -> bool:
        """Offer a successful fetch as the baseline. Returns True if it was taken."""


class FixedBaseline(Baseline):
    """Hardcoded baseline shared by every viewer."""

    def __init__(self, prices: Mapping[str, BaselinePrice], start_time: float) -> None:
        self._prices = dict(prices)
        self._start_time = start_time

    @property
    def prices(self) -> dict[str, BaselinePrice]:
        return dict(self._prices)

    @property
    def start_time(self) -> float | None:
        return self._start_time

    def capture(self, quotes: Mapping[str, PriceQuote], timestamp: float) -> bool:
        return False


class CapturedBaseline(Baseline):
    """Baseline taken from the first successful fetch of a session.

    The record is written to ``store`` under BASELINE_KEY so a restart reuses
    it instead of resetting performance to zero. Capture happens at most once:
    after that, later fetches never alter the baseline.
    """

    def __init__(self, store: JsonFileStore, key: str = BASELINE_KEY) -> None:
        self._store = store
        self._key = key
        self._discarded = False  # Stored record was unreadable and may be overwritten
        self._record: BaselineRecord | None = self._load()

    @property
    def prices(self) -> dict[str, BaselinePrice]:
        return dict(self._record.prices) if self._record else {}

    @property
    def start_time(self) -> float | None:
        return self._record.start_time if self._record else None

    @property
    def captured(self) -> bool:
        return self._record is not None

    def capture(self, quotes: Mapping[str, PriceQuote], timestamp: float) -> bool:
        if self._record is not None or not quotes:
            return False

        self._record = BaselineRecord(
            start_time=timestamp,
            prices={asset_id: BaselinePrice.from_quote(q) for asset_id, q in quotes.items()},
        )
        logger.info("Captured baseline for %d assets", len(self._record.prices))

        try:
            if self._discarded or self._store.get(self._key) is None:
                self._store.set(self._key, self._record.to_dict())
        except OSError as e:
            # The in-memory baseline still holds for this session
            logger.error("Could not persist baseline to %s: %s", self._store.path, e)
        return True

    def _load(self) -> BaselineRecord | None:
        try:
            data = self._store.get(self._key)
        except OSError as e:
            logger.warning("Could not read baseline from %s: %s", self._store.path, e)
            return None
        if data is None:
            return None
        try:
            record = BaselineRecord.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed baseline record: %s", e)
            self._discarded = True
            return None
        logger.info("Reusing stored baseline from %s", self._store.path)
        return record


def create_baseline(mode: str, start_time: float, store_path: Path | str) -> Baseline:
    """Build the baseline for a deployment.

    - "fixed"    → FixedBaseline over the hardcoded prices, window opens at start_time
    - "captured" → CapturedBaseline persisted in a JSON file at store_path
    """
    if mode == "captured":
        logger.info("Baseline: first fetch of the session, stored at %s", store_path)
        return CapturedBaseline(JsonFileStore(store_path))

    logger.info("Baseline: fixed prices")
    return FixedBaseline(FIXED_BASELINE, start_time)
