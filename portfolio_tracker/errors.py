"""Exceptions raised by the portfolio tracker."""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class FetchFailure(TrackerError):
    """The price API could not be reached or returned something unusable.

    Never fatal: the engine flags the error, keeps its previous state, and
    tries again on the next scheduled poll.
    """


class ConfigError(TrackerError):
    """An environment setting is missing or malformed."""
