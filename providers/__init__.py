"""Ticker data providers"""
from .base import (
    BasePriceProvider,
    MarketSnapshot,
    ProviderError,
    parse_ticker,
    parse_tickers,
    parse_top_assets,
)
from .coingecko import CoinGeckoProvider
from .simulator import SimulatedPriceProvider
from .market_data import MarketDataSource

__all__ = [
    "BasePriceProvider",
    "MarketSnapshot",
    "ProviderError",
    "parse_ticker",
    "parse_tickers",
    "parse_top_assets",
    "CoinGeckoProvider",
    "SimulatedPriceProvider",
    "MarketDataSource",
]
