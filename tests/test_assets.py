"""
Tests for the shared top-assets cache.
"""

import pytest

from providers.base import ProviderError
from spreadscout.assets import AssetCacheService, AssetCacheStore, CachedAsset
from conftest import FakePriceProvider


def assets(*ids):
    return [CachedAsset(asset_id=asset_id, name=asset_id.title()) for asset_id in ids]


class TestAssetCacheStore:
    """Tests for AssetCacheStore"""

    def test_starts_empty(self, asset_cache):
        assert asset_cache.is_empty()
        assert asset_cache.list_all() == []
        assert asset_cache.last_refreshed is None

    def test_replace_all_swaps_snapshot(self, asset_cache):
        assert asset_cache.replace_all(assets("btc", "eth")) == 2
        before = asset_cache.list_all()

        asset_cache.replace_all(assets("sol"))

        assert asset_cache.asset_ids() == ["sol"]
        assert [a.asset_id for a in before] == ["btc", "eth"]
        assert asset_cache.last_refreshed is not None

    def test_replace_from_generator(self, asset_cache):
        asset_cache.replace_all(a for a in assets("btc", "eth"))
        assert len(asset_cache) == 2

    def test_get(self, asset_cache):
        asset_cache.replace_all(assets("btc"))
        assert asset_cache.get("btc").name == "Btc"
        assert asset_cache.get("eth") is None

    def test_list_is_a_copy(self, asset_cache):
        asset_cache.replace_all(assets("btc"))
        asset_cache.list_all().clear()
        assert len(asset_cache) == 1


class TestAssetCacheService:
    """Tests for AssetCacheService"""

    @pytest.fixture
    def provider(self):
        provider = FakePriceProvider()
        provider.top_assets = assets("btc", "eth", "sol")
        return provider

    async def test_refresh_replaces_cache(self, asset_cache, provider):
        service = AssetCacheService(asset_cache, provider, limit=2)

        assert await service.refresh()
        assert asset_cache.asset_ids() == ["btc", "eth"]
        assert service.refreshes == 1

    async def test_failure_keeps_old_snapshot(self, asset_cache, provider):
        asset_cache.replace_all(assets("doge"))
        provider.failing["top"] = ProviderError("down")
        service = AssetCacheService(asset_cache, provider)

        assert not await service.refresh()
        assert asset_cache.asset_ids() == ["doge"]
        assert service.refresh_failures == 1

    async def test_empty_result_keeps_old_snapshot(self, asset_cache, provider):
        asset_cache.replace_all(assets("doge"))
        provider.top_assets = []
        service = AssetCacheService(asset_cache, provider)

        assert not await service.refresh()
        assert asset_cache.asset_ids() == ["doge"]

    async def test_ensure_populated_only_when_empty(self, asset_cache, provider):
        service = AssetCacheService(asset_cache, provider)

        assert await service.ensure_populated()
        assert service.refreshes == 1

        assert await service.ensure_populated()
        assert service.refreshes == 1
