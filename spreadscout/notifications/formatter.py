"""
Opportunity message rendering (Telegram HTML).
"""

from html import escape
from typing import Optional

from engine import ArbitrageOpportunity


def _venue_link(venue: str, url: Optional[str]) -> str:
    if not url:
        return escape(venue)
    return f'<a href="{escape(url, quote=True)}">{escape(venue)}</a>'


def format_opportunity(opportunity: ArbitrageOpportunity, asset_name: str) -> str:
    """Render an opportunity as a Telegram HTML message"""
    return (
        f"💰 <b>Arbitrage Opportunity Found:</b>\n"
        f"🪙 <b>Coin:</b> <b>{escape(asset_name)}</b>\n"
        f"🖇️ <b>Coin Pair:</b> {escape(opportunity.pair)}\n"
        f"📉 <b>Buy Price:</b> <i>${opportunity.buy_price}</i> on "
        f"{_venue_link(opportunity.buy_venue, opportunity.buy_url)}\n"
        f"📈 <b>Sell Price:</b> <i>${opportunity.sell_price}</i> on "
        f"{_venue_link(opportunity.sell_venue, opportunity.sell_url)}\n"
        f"💵 <b>24h Volume:</b> {escape(opportunity.volume)}\n"
        f"📊 <b>Potential Profit:</b> <u>{opportunity.profit_percent:.2f}%</u>\n"
        f"🔒 <b>Trust Score:</b> {opportunity.trust_indicator}"
    )
