"""Time left in the tracking window.

Two flavours, chosen per deployment:

- ``time_remaining``: second-resolution countdown to a fixed end date,
  clamped at zero once the window closes. Pairs with the fixed baseline.
- ``days_remaining``: whole days only, counted from the session start. It is
  deliberately not clamped and reads negative once the window has lapsed.
  Pairs with the captured baseline.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import TRACKING_DAYS

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class TimeRemaining:
    days: int
    hours: int
    minutes: int
    seconds: int
    total: float  # Seconds left, 0 once expired

    @property
    def expired(self) -> bool:
        return self.total <= 0

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
            "total": self.total,
        }


@dataclass(frozen=True, slots=True)
class DaysRemaining:
    elapsed: int
    remaining: int  # Negative past the end of the window

    def to_dict(self) -> dict:
        return {"elapsed": self.elapsed, "remaining": self.remaining}


def end_time(start: float, tracking_days: int = TRACKING_DAYS) -> float:
    return start + tracking_days * SECONDS_PER_DAY


def time_remaining(start: float, now: float, tracking_days: int = TRACKING_DAYS) -> TimeRemaining:
    """Countdown from ``now`` to the end of the window, floored at zero."""
    remaining = end_time(start, tracking_days) - now
    if remaining <= 0:
        return TimeRemaining(days=0, hours=0, minutes=0, seconds=0, total=0)

    days, rest = divmod(int(remaining), SECONDS_PER_DAY)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return TimeRemaining(days=days, hours=hours, minutes=minutes, seconds=seconds, total=remaining)


def days_elapsed(start: float, now: float) -> int:
    # Floor division keeps this correct for a start in the future too
    return int((now - start) // SECONDS_PER_DAY)


def days_remaining(start: float, now: float, tracking_days: int = TRACKING_DAYS) -> DaysRemaining:
    elapsed = days_elapsed(start, now)
    return DaysRemaining(elapsed=elapsed, remaining=tracking_days - elapsed)
