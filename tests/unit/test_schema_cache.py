"""
Tests unitarios para SchemaCache.
"""
import json

import pytest

from lifelog_sync.infrastructure.state.schema_cache import SchemaCache
from lifelog_sync.shared.exceptions.sync import SchemaFetchError
from tests.helpers import NOTION_PROPERTIES, FakeSchemaProvider


TTL_MS = 3_600_000
NOW_MS = 1_700_000_000_000


def _write_cache(tmp_path, timestamp, schema=None) -> None:
    payload = {"schema": schema if schema is not None else NOTION_PROPERTIES, "timestamp": timestamp}
    (tmp_path / "schema.json").write_text(json.dumps(payload))


def _cache(tmp_path, provider, now_ms=NOW_MS) -> SchemaCache:
    return SchemaCache(tmp_path / "schema.json", provider, ttl_ms=TTL_MS, clock_ms=lambda: now_ms)


class TestSchemaCacheGet:
    """Tests para SchemaCache.get()."""

    @pytest.mark.asyncio
    async def test_fresh_cache_avoids_network(self, tmp_path) -> None:
        _write_cache(tmp_path, NOW_MS - 1000)
        provider = FakeSchemaProvider()

        schema = await _cache(tmp_path, provider).get()

        assert provider.fetch_count == 0
        assert "Category" in schema

    @pytest.mark.asyncio
    async def test_expired_cache_fetches_and_rewrites(self, tmp_path) -> None:
        _write_cache(tmp_path, NOW_MS - TTL_MS, schema={"Old": {"type": "title"}})
        provider = FakeSchemaProvider()

        schema = await _cache(tmp_path, provider).get()

        assert provider.fetch_count == 1
        assert "Old" not in schema
        persisted = json.loads((tmp_path / "schema.json").read_text())
        assert persisted["timestamp"] == NOW_MS
        assert persisted["schema"] == NOTION_PROPERTIES

    @pytest.mark.asyncio
    async def test_missing_cache_fetches(self, tmp_path) -> None:
        provider = FakeSchemaProvider()

        await _cache(tmp_path, provider).get()

        assert provider.fetch_count == 1
        assert (tmp_path / "schema.json").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        "{corrupto",
        "[]",
        '{"schema": {}}',
        '{"schema": [], "timestamp": 1}',
        '{"schema": {}, "timestamp": "ayer"}',
        '{"schema": {}, "timestamp": true}',
    ])
    async def test_corrupt_cache_is_treated_as_stale(self, tmp_path, content) -> None:
        (tmp_path / "schema.json").write_text(content)
        provider = FakeSchemaProvider()

        schema = await _cache(tmp_path, provider).get()

        assert provider.fetch_count == 1
        assert len(schema) == len(NOTION_PROPERTIES)

    @pytest.mark.asyncio
    async def test_force_refresh_ignores_fresh_cache(self, tmp_path) -> None:
        _write_cache(tmp_path, NOW_MS)
        provider = FakeSchemaProvider()

        await _cache(tmp_path, provider).get(force_refresh=True)

        assert provider.fetch_count == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates_without_stale(self, tmp_path) -> None:
        provider = FakeSchemaProvider(error=SchemaFetchError("Notion API error: 500"))

        with pytest.raises(SchemaFetchError):
            await _cache(tmp_path, provider).get()

    @pytest.mark.asyncio
    async def test_allow_stale_reuses_last_known_schema(self, tmp_path) -> None:
        clock = {"now": NOW_MS}
        provider = FakeSchemaProvider()
        cache = SchemaCache(tmp_path / "schema.json", provider, ttl_ms=TTL_MS, clock_ms=lambda: clock["now"])

        first = await cache.get()
        clock["now"] += TTL_MS
        provider.error = SchemaFetchError("Notion API error: 503")

        assert await cache.get(allow_stale=True) is first
        assert cache.last_known is first

    @pytest.mark.asyncio
    async def test_allow_stale_without_previous_schema_raises(self, tmp_path) -> None:
        provider = FakeSchemaProvider(error=SchemaFetchError("Notion API error: 503"))

        with pytest.raises(SchemaFetchError):
            await _cache(tmp_path, provider).get(allow_stale=True)
