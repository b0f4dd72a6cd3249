"""
SpreadScout - Multi-subscriber crypto arbitrage alerts

Scans per-venue tickers for each subscriber's asset universe on a fixed
cadence and notifies subscribers of cross-venue price spreads that pass
their own profit, volume, asset and venue filters.
"""

__version__ = "1.0.0"
__author__ = "SpreadScout Team"
