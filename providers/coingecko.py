"""CoinGecko REST client"""
import asyncio
import logging
from typing import List, Optional
from urllib.parse import quote

import aiohttp

from .base import BasePriceProvider, MarketSnapshot, ProviderError, parse_tickers, parse_top_assets
from spreadscout.assets.models import CachedAsset
from config import COINGECKO_API_URL, COINGECKO_API_KEY, FETCH_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class CoinGeckoProvider(BasePriceProvider):
    """
    CoinGecko ticker and market-cap client.

    Endpoints:
    - GET /coins/{id}/tickers - per-venue quotes for one coin
    - GET /coins/markets - coins ranked by market cap
    """

    def __init__(
        self,
        api_url: str = COINGECKO_API_URL,
        api_key: str = COINGECKO_API_KEY,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(name="CoinGecko")
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def headers(self) -> dict:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers,
            )
            self._owns_session = True
        return self._session

    async def _get_json(self, path: str, params: Optional[dict] = None):
        url = f"{self.api_url}{path}"
        session = self._get_session()
        try:
            async with session.get(url, params=params, headers=self.headers) as resp:
                if resp.status == 429:
                    raise ProviderError(f"[{self.name}] Rate limited on {path}")
                if resp.status != 200:
                    raise ProviderError(f"[{self.name}] HTTP {resp.status} on {path}")
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderError(f"[{self.name}] Request to {path} failed: {e!r}") from e

    async def fetch_tickers(self, asset_id: str) -> MarketSnapshot:
        payload = await self._get_json(f"/coins/{quote(asset_id, safe='')}/tickers")
        if not isinstance(payload, dict):
            raise ProviderError(f"[{self.name}] Unexpected ticker payload for {asset_id}")

        tickers = parse_tickers(payload)
        logger.debug(f"[{self.name}] {asset_id}: {len(tickers)} tickers")
        return MarketSnapshot(
            asset_id=asset_id,
            name=payload.get("name") or asset_id,
            tickers=tickers,
        )

    async def fetch_top_assets(self, limit: int) -> List[CachedAsset]:
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": str(limit),
            "page": "1",
        }
        payload = await self._get_json("/coins/markets", params=params)
        if not isinstance(payload, list):
            raise ProviderError(f"[{self.name}] Unexpected markets payload")
        return parse_top_assets(payload)[:limit]

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
