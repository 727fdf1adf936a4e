"""Live valuation of a five-token crypto portfolio against a 5x target."""

__version__ = "0.1.0"
