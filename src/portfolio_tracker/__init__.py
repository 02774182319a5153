"""Portfolio Tracker: ledger consolidation and staleness-driven valuation."""

__version__ = "0.1.0"
