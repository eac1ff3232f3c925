"""
Tests d'integration du contexte d'enrichissement.

Assemble les vrais composants (catalogue, cache, orchestrateur, retry, vue)
autour d'adaptateurs mockes et verifie les scenarios de bout en bout :
rafraichissement, cache negatif, echecs en attente de retry, lecture
d'une entree avec rafraichissement en arriere-plan, arret propre.
"""

import json
from pathlib import Path

import pytest

from bangumi_list.core.ports.fetchers import FetchError
from bangumi_list.core.value_objects.cache import CacheKind
from bangumi_list.infrastructure.persistence.cache_store import CacheStore
from bangumi_list.services.catalog import CatalogService
from bangumi_list.services.context import EnrichmentContext
from bangumi_list.services.enrichment_view import EnrichmentView
from bangumi_list.services.orchestrator import RefreshOrchestrator
from bangumi_list.services.retry_engine import RetryEngine
from bangumi_list.services.scheduler import CacheRefreshScheduler
from tests.fixtures.builders import HOUR, NOW, SHANGHAI, TTLS
from tests.fixtures.provider_responses import BANGUMI_DATA

DATA_URL = "https://unpkg.com/bangumi-data@0.3/dist/data.json"


@pytest.fixture
def catalog(tmp_path: Path, monkeypatch) -> CatalogService:
    data_path = tmp_path / "data.json"
    data_path.write_text(json.dumps(BANGUMI_DATA, ensure_ascii=False), encoding="utf-8")
    service = CatalogService(data_path, DATA_URL, SHANGHAI)
    monkeypatch.setattr(service, "now", lambda: NOW)
    return service


@pytest.fixture
def context(catalog, cache_store, adapters, clock) -> EnrichmentContext:
    retry_engine = RetryEngine(adapters, cache_store, interval=60, item_delay=0, clock=clock)
    orchestrator = RefreshOrchestrator(
        catalog, cache_store, adapters, retry_engine, chunk_size=2, chunk_delay=0
    )
    scheduler = CacheRefreshScheduler(orchestrator, catalog, timezone="Asia/Shanghai")
    return EnrichmentContext(
        catalog=catalog,
        cache_store=cache_store,
        adapters=adapters,
        retry_engine=retry_engine,
        orchestrator=orchestrator,
        view=EnrichmentView(cache_store),
        scheduler=scheduler,
    )


def _summer_id(catalog: CatalogService) -> str:
    return next(item.id for item in catalog.items if item.title == "夏季新番")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_init_loads_catalog_from_existing_file(self, context) -> None:
        await context.init(start_scheduler=False)

        assert context.initialized
        assert len(context.catalog.items) == 4
        await context.shutdown()
        assert not context.initialized

    @pytest.mark.asyncio
    async def test_shutdown_closes_adapters_and_persists(
        self, context, adapters, cache_store: CacheStore
    ) -> None:
        await context.init(start_scheduler=False)
        await context.refresh_working_set()

        await context.shutdown()

        for adapter in adapters.values():
            adapter.close.assert_awaited_once()
        assert cache_store.path_for(CacheKind.IMAGE).exists()
        assert cache_store.path_for(CacheKind.FEED).exists()

    @pytest.mark.asyncio
    async def test_restart_reloads_persisted_cache(
        self, context, tmp_path: Path, clock
    ) -> None:
        await context.init(start_scheduler=False)
        await context.refresh_working_set()
        await context.shutdown()

        reloaded = CacheStore(tmp_path / "cache", TTLS, clock=clock)
        reloaded.load()

        assert reloaded.get(CacheKind.VIDEO, "28339735").value == "BV1xx411c7mD"
        assert reloaded.get(CacheKind.FEED, "3310").is_empty


class TestRefreshScenarios:
    """Scenarios de bout en bout avec adaptateurs mockes."""

    @pytest.mark.asyncio
    async def test_refresh_then_enrich(self, context, adapters) -> None:
        await context.init(start_scheduler=False)

        stats = await context.refresh_working_set()

        # 夏季新番 (3 cles) + 春季新番 (image seule)
        assert stats.total == 2
        assert adapters[CacheKind.IMAGE].fetch.await_count == 2
        item = context.enrich_item(context.catalog.get_item(_summer_id(context.catalog)))
        assert item.image == "https://lain.bgm.tv/pic/cover/l/a.jpg"
        assert "BV1xx411c7mD" in item.preview_embed_link
        assert item.feed_content is None

        report = context.get_recent_seasons_cache_status()
        assert report["currentSeason"] == "2024q3"
        assert report["totalItems"] == 2
        assert report["imageCached"] == 2
        assert report["feedCached"] == 1
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_negative_cache_until_expiry(self, context, adapters, clock) -> None:
        """Un flux vide n'est pas reinterroge avant la fin de son TTL."""
        await context.init(start_scheduler=False)
        feed = adapters[CacheKind.FEED]

        await context.refresh_working_set()
        await context.refresh_working_set()
        assert feed.fetch.await_count == 1

        clock.advance(6 * HOUR)
        await context.refresh_working_set()
        assert feed.fetch.await_count == 2
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_failure_waits_for_retry(self, context, adapters) -> None:
        adapters[CacheKind.VIDEO].fetch.side_effect = FetchError("bilibili", "28339735", "timeout")
        await context.init(start_scheduler=False)

        stats = await context.refresh_working_set()

        assert stats.failed == 1
        status = context.get_failed_items_status()
        assert status["count"] == 1
        assert status["items"][0]["kind"] == "video"
        assert context.retry_engine.is_scheduled

        await context.shutdown()
        assert not context.retry_engine.is_scheduled

    @pytest.mark.asyncio
    async def test_get_item_refreshes_in_background(self, context, adapters) -> None:
        await context.init(start_scheduler=False)
        item_id = _summer_id(context.catalog)

        first = context.get_item(item_id)
        assert first.image is None

        await context.orchestrator.wait_background()
        second = context.get_item(item_id)
        assert second.image == "https://lain.bgm.tv/pic/cover/l/a.jpg"

        await context.shutdown()
        assert adapters[CacheKind.IMAGE].fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_get_unknown_item(self, context) -> None:
        await context.init(start_scheduler=False)
        assert context.get_item("missing") is None
        await context.shutdown()
