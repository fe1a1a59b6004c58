"""Multi-asset portfolio forecasting with pluggable rebalancing."""

__version__ = "0.1.0"
