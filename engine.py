"""Arbitrage opportunity detection"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Sequence

from spreadscout.subscribers.models import SubscriberProfile

logger = logging.getLogger(__name__)


class TrustScore(str, Enum):
    """Venue trust classification as reported by the provider"""
    TRUSTED = "green"
    NEUTRAL = "yellow"
    UNTRUSTED = "red"


TRUST_INDICATORS = {
    TrustScore.TRUSTED.value: "🟢",
    TrustScore.NEUTRAL.value: "🟡",
    TrustScore.UNTRUSTED.value: "🔴",
}


def trust_indicator(trust_score: Optional[str]) -> str:
    """Map a trust classification to its indicator ("" when unrecognised)"""
    return TRUST_INDICATORS.get(trust_score or "", "")


@dataclass
class TickerQuote:
    """One venue's quote for an asset pair"""
    base: str
    target: str  # Quote currency, e.g. "USDT"
    price: float  # Last price in the quote currency
    volume: float  # 24h volume
    venue: str
    trust_score: Optional[str] = None
    trade_url: Optional[str] = None
    price_usd: Optional[float] = None
    volume_usd: Optional[float] = None

    @property
    def pair(self) -> str:
        return f"{self.base}/{self.target}"


@dataclass
class ArbitrageOpportunity:
    """Best cross-venue spread found for one asset and one subscriber"""
    pair: str
    buy_price: float
    buy_venue: str
    sell_price: float
    sell_venue: str
    volume: str  # Formatted 24h volume of the buy venue
    profit_percent: float
    trust_indicator: str
    buy_url: Optional[str] = None
    sell_url: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    def to_dict(self) -> dict:
        return {
            "pair": self.pair,
            "buy_price": self.buy_price,
            "buy_venue": self.buy_venue,
            "buy_url": self.buy_url,
            "sell_price": self.sell_price,
            "sell_venue": self.sell_venue,
            "sell_url": self.sell_url,
            "volume": self.volume,
            "profit_percent": self.profit_percent,
            "trust_indicator": self.trust_indicator,
            "timestamp": self.timestamp.isoformat(),
        }


def calculate_profit_percent(min_price: float, max_price: float) -> float:
    """
    Spread between two prices as a percentage of the lower one,
    rounded half away from zero to 2 decimals.
    """
    raw = Decimal(repr((max_price - min_price) / min_price * 100))
    return float(raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_volume(volume: float) -> str:
    """Format a volume with a currency symbol and thousands separators"""
    return f"${volume:,.2f}"


class OpportunityDetector:
    """
    Finds the widest cross-venue spread for one asset under a subscriber's filters.

    A ticker is eligible when it is quoted in the subscriber's target currency,
    meets the minimum volume, carries a trust classification and its base
    asset is not blacklisted. The lowest and highest priced eligible tickers
    form the opportunity; ties keep the first ticker seen.

    profit% = ((max_price - min_price) / min_price) * 100
    """

    def is_eligible(self, ticker: TickerQuote, profile: SubscriberProfile) -> bool:
        """Check a single ticker against the subscriber's filters"""
        return (
            ticker.target == profile.target
            and ticker.volume >= profile.min_volume
            and bool(ticker.trust_score)
            and ticker.base.lower() not in profile.asset_blacklist
            and ticker.price > 0
        )

    def detect(
        self,
        tickers: Sequence[TickerQuote],
        profile: SubscriberProfile,
    ) -> Optional[ArbitrageOpportunity]:
        """Return the best opportunity in `tickers`, or None"""
        if not tickers:
            return None

        min_ticker: Optional[TickerQuote] = None
        max_ticker: Optional[TickerQuote] = None

        for ticker in tickers:
            if not self.is_eligible(ticker, profile):
                continue
            if min_ticker is None or ticker.price < min_ticker.price:
                min_ticker = ticker
            if max_ticker is None or ticker.price > max_ticker.price:
                max_ticker = ticker

        # A single quote (or a flat book) has no spread
        if min_ticker is None or max_ticker is None or min_ticker is max_ticker:
            return None

        profit_percent = calculate_profit_percent(min_ticker.price, max_ticker.price)

        threshold = Decimal(repr(profile.min_profit)) * 100
        if Decimal(repr(profit_percent)) < threshold:
            return None

        volume = min_ticker.volume_usd if min_ticker.volume_usd is not None else min_ticker.volume

        return ArbitrageOpportunity(
            pair=min_ticker.pair,
            buy_price=min_ticker.price,
            buy_venue=min_ticker.venue,
            buy_url=min_ticker.trade_url,
            sell_price=max_ticker.price,
            sell_venue=max_ticker.venue,
            sell_url=max_ticker.trade_url,
            volume=format_volume(volume),
            profit_percent=profit_percent,
            trust_indicator=trust_indicator(min_ticker.trust_score),
        )


_default_detector = OpportunityDetector()


def detect_arbitrage(
    tickers: Sequence[TickerQuote],
    profile: SubscriberProfile,
) -> Optional[ArbitrageOpportunity]:
    """Module-level shortcut for OpportunityDetector.detect"""
    return _default_detector.detect(tickers, profile)
