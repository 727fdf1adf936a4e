"""Bounded price history for the time-series chart."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from ..market.models import Asset, PriceQuote
from .config import HISTORY_SIZE


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Prices from one successful fetch, keyed by asset symbol.

    Assets the fetch did not price are simply absent from ``prices``.
    """

    timestamp: float  # Unix seconds
    prices: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Flat row for the chart: {"timestamp": ..., "ARB": ..., "OP": ...}."""
        return {"timestamp": self.timestamp, **self.prices}


class HistoryBuffer:
    """FIFO sequence of HistoryEntry capped at ``maxlen`` entries.

    Appending to a full buffer evicts the oldest entry. Insertion order is
    display order; entries are never deduplicated or interpolated.
    """

    def __init__(self, maxlen: int = HISTORY_SIZE) -> None:
        self._entries: deque[HistoryEntry] = deque(maxlen=maxlen)

    def record(
        self,
        timestamp: float,
        assets: Iterable[Asset],
        quotes: Mapping[str, PriceQuote],
    ) -> HistoryEntry:
        """Append one entry built from a fetch's quotes. Returns the entry."""
        entry = HistoryEntry(
            timestamp=timestamp,
            prices={
                asset.symbol: quotes[asset.id].price
                for asset in assets
                if asset.id in quotes
            },
        )
        self.append(entry)
        return entry

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def entries(self) -> list[HistoryEntry]:
        """Oldest first. Returns a copy."""
        return list(self._entries)

    @property
    def maxlen(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))
