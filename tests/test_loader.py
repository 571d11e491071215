"""
Unit tests for the prioritized parallel loader and named bundles.

Backoff is zeroed so retry tests run instantly, except in the tests
that check the backoff schedule itself.
"""
import asyncio
import logging
import re
import time

import pytest

from trebound.cache import Priority, RequestCoalescer, TTLCache, get_ttl_for_priority
from trebound.content.client import ContentQueryError, StaticContentClient
from trebound.loader import (
    BatchLoader,
    BatchResult,
    FetchDescriptor,
    FetchTimeoutError,
    available_bundles,
    build_bundle,
    homepage_bundle,
    route_preload_bundle,
)


def make_loader(cache=None, **kwargs):
    kwargs.setdefault("backoff_base", 0)
    return BatchLoader(TTLCache() if cache is None else cache, RequestCoalescer(), **kwargs)


def retry_delays(caplog, key):
    """Backoff delays (seconds) logged before each retry of key."""
    pattern = re.compile(rf"^Retrying {re.escape(key)} in ([\d.]+)s ")
    delays = []
    for record in caplog.records:
        match = pattern.match(record.getMessage())
        if match:
            delays.append(float(match.group(1)))
    return delays


def returning(value):
    async def execute():
        return value
    return execute


class Counter:
    """Async callable that fails a set number of times, then succeeds."""

    def __init__(self, failures=0, value="ok", error=None):
        self.calls = 0
        self.failures = failures
        self.value = value
        self.error = error or ContentQueryError("temporarily unavailable", code="503")

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


# =============================================================================
# Descriptor validation
# =============================================================================

class TestFetchDescriptor:
    def test_defaults(self):
        descriptor = FetchDescriptor("k", returning(1))
        assert descriptor.priority is Priority.NORMAL
        assert descriptor.cacheable
        assert descriptor.ttl is None
        assert not descriptor.is_critical

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            FetchDescriptor("  ", returning(1))

    def test_non_callable_execute_rejected(self):
        with pytest.raises(TypeError):
            FetchDescriptor("k", "not callable")

    def test_string_priority_rejected(self):
        with pytest.raises(TypeError):
            FetchDescriptor("k", returning(1), priority="critical")

    def test_non_positive_ttl_and_timeout_rejected(self):
        with pytest.raises(ValueError):
            FetchDescriptor("k", returning(1), ttl=0)
        with pytest.raises(ValueError):
            FetchDescriptor("k", returning(1), timeout=-1)

    def test_batch_result_to_dict(self):
        result = BatchResult(key="k", data=[1], error=ContentQueryError("boom", code="500"))
        assert result.to_dict() == {
            "key": "k",
            "data": [1],
            "error": "boom (code 500)",
            "fromCache": False,
        }
        assert not result.ok


# =============================================================================
# Batch execution
# =============================================================================

class TestLoadBatch:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_fail_batch(self):
        loader = make_loader(retries=0)
        descriptors = [
            FetchDescriptor("a", returning(1)),
            FetchDescriptor("b", returning(2)),
            FetchDescriptor("c", Counter(failures=99)),
            FetchDescriptor("d", returning(4)),
            FetchDescriptor("e", returning(5)),
        ]

        results = await loader.load_batch(descriptors)

        assert list(results) == ["a", "b", "c", "d", "e"]
        assert sum(1 for r in results.values() if r.ok) == 4
        assert isinstance(results["c"].error, ContentQueryError)
        assert results["c"].data is None
        assert results["d"].data == 4

    @pytest.mark.asyncio
    async def test_results_follow_submission_order_not_priority(self):
        loader = make_loader()
        descriptors = [
            FetchDescriptor("low", returning("l"), Priority.LOW),
            FetchDescriptor("critical", returning("c"), Priority.CRITICAL),
            FetchDescriptor("high", returning("h"), Priority.HIGH),
        ]
        results = await loader.load_batch(descriptors)
        assert list(results) == ["low", "critical", "high"]

    @pytest.mark.asyncio
    async def test_critical_settle_before_others_start(self):
        loader = make_loader()
        events = []

        async def critical():
            events.append("critical:start")
            await asyncio.sleep(0.02)
            events.append("critical:end")
            return "c"

        async def other(name):
            events.append(f"{name}:start")
            return name

        descriptors = [
            FetchDescriptor("normal", lambda: other("normal"), Priority.NORMAL),
            FetchDescriptor("critical", critical, Priority.CRITICAL),
            FetchDescriptor("low", lambda: other("low"), Priority.LOW),
        ]
        await loader.load_batch(descriptors)

        end = events.index("critical:end")
        assert events.index("normal:start") > end
        assert events.index("low:start") > end

    @pytest.mark.asyncio
    async def test_critical_failure_does_not_block_others(self):
        loader = make_loader(retries=0)
        descriptors = [
            FetchDescriptor("critical", Counter(failures=99), Priority.CRITICAL),
            FetchDescriptor("normal", returning("n")),
        ]
        results = await loader.load_batch(descriptors)
        assert not results["critical"].ok
        assert results["normal"].data == "n"

    @pytest.mark.asyncio
    async def test_two_retries_means_three_invocations(self):
        loader = make_loader()
        execute = Counter(failures=99)

        results = await loader.load_batch([FetchDescriptor("k", execute)], retries=2)

        assert execute.calls == 3
        assert isinstance(results["k"].error, ContentQueryError)

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self):
        loader = make_loader(retries=2)
        execute = Counter(failures=2, value=["row"])

        results = await loader.load_batch([FetchDescriptor("k", execute)])

        assert execute.calls == 3
        assert results["k"].ok
        assert results["k"].data == ["row"]

    @pytest.mark.asyncio
    async def test_backoff_doubles_from_base(self, caplog):
        caplog.set_level(logging.DEBUG, logger="loader.batch")
        loader = make_loader(backoff_base=0.1, backoff_max=2.0)
        stamps = []

        async def failing():
            stamps.append(time.monotonic())
            raise ContentQueryError("temporarily unavailable")

        await loader.load_batch([FetchDescriptor("k", failing)], retries=2)

        assert retry_delays(caplog, "k") == [0.1, 0.2]
        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert gaps[0] >= 0.09
        assert gaps[1] >= 0.19

    @pytest.mark.asyncio
    async def test_backoff_capped_at_max(self, caplog):
        caplog.set_level(logging.DEBUG, logger="loader.batch")
        loader = make_loader(backoff_base=0.1, backoff_max=0.15)

        await loader.load_batch([FetchDescriptor("k", Counter(failures=99))], retries=3)

        assert retry_delays(caplog, "k") == [0.1, 0.15, 0.15]

    @pytest.mark.asyncio
    async def test_zero_retries_invokes_once(self):
        loader = make_loader()
        execute = Counter(failures=99)
        await loader.load_batch([FetchDescriptor("k", execute)], retries=0)
        assert execute.calls == 1

    @pytest.mark.asyncio
    async def test_out_of_range_retries_rejected(self):
        loader = make_loader()
        with pytest.raises(ValueError):
            await loader.load_batch([FetchDescriptor("k", returning(1))], retries=4)
        with pytest.raises(ValueError):
            make_loader(retries=-1)

    @pytest.mark.asyncio
    async def test_duplicate_keys_rejected(self):
        loader = make_loader()
        with pytest.raises(ValueError):
            await loader.load_batch([
                FetchDescriptor("k", returning(1)),
                FetchDescriptor("k", returning(2)),
            ])

    @pytest.mark.asyncio
    async def test_non_descriptor_rejected(self):
        loader = make_loader()
        with pytest.raises(TypeError):
            await loader.load_batch([{"key": "k"}])

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        assert await make_loader().load_batch([]) == {}

    @pytest.mark.asyncio
    async def test_synchronous_raise_is_reported_not_thrown(self):
        loader = make_loader(retries=1)
        calls = 0

        def explode():
            nonlocal calls
            calls += 1
            raise RuntimeError("sync failure")

        results = await loader.load_batch([FetchDescriptor("k", explode)])

        assert calls == 2
        assert isinstance(results["k"].error, RuntimeError)

    @pytest.mark.asyncio
    async def test_plain_return_value_accepted(self):
        loader = make_loader()
        results = await loader.load_batch([FetchDescriptor("k", lambda: 42)])
        assert results["k"].data == 42

    @pytest.mark.asyncio
    async def test_timeout_reported_as_fetch_timeout(self):
        loader = make_loader(retries=0)

        async def slow():
            await asyncio.sleep(1)
            return "late"

        results = await loader.load_batch([FetchDescriptor("slow", slow, timeout=0.01)])

        error = results["slow"].error
        assert isinstance(error, FetchTimeoutError)
        assert error.key == "slow"
        assert error.timeout == 0.01

    @pytest.mark.asyncio
    async def test_timed_out_fetch_is_not_cached(self):
        cache = TTLCache()
        loader = make_loader(cache=cache, retries=0, timeout=0.01)

        async def slow():
            await asyncio.sleep(0.05)
            return "late"

        await loader.load_batch([FetchDescriptor("slow", slow)])
        await asyncio.sleep(0.1)
        assert cache.get("slow") is None

    @pytest.mark.asyncio
    async def test_fallback_data_for_failed_keys(self):
        loader = make_loader(retries=0)
        results = await loader.load_batch(
            [
                FetchDescriptor("counts:stays", Counter(failures=99)),
                FetchDescriptor("counts:activities", returning(7)),
            ],
            fallback_data={"counts:stays": 0, "counts:activities": 0},
        )
        assert results["counts:stays"].data == 0
        assert results["counts:stays"].error is not None
        assert results["counts:activities"].data == 7


# =============================================================================
# Cache and coalescing integration
# =============================================================================

class TestLoaderCaching:
    @pytest.mark.asyncio
    async def test_second_load_served_from_cache(self):
        loader = make_loader()
        execute = Counter(value=["row"])
        descriptor = FetchDescriptor("k", execute)

        first = await loader.load_batch([descriptor])
        second = await loader.load_batch([descriptor])

        assert execute.calls == 1
        assert not first["k"].from_cache
        assert second["k"].from_cache
        assert second["k"].data == ["row"]

    @pytest.mark.asyncio
    async def test_non_cacheable_always_fetches(self):
        cache = TTLCache()
        loader = make_loader(cache=cache)
        execute = Counter()
        descriptor = FetchDescriptor("k", execute, cacheable=False)

        await loader.load_batch([descriptor])
        await loader.load_batch([descriptor])

        assert execute.calls == 2
        assert "k" not in cache

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        loader = make_loader(retries=0)
        execute = Counter(failures=1, value="ok")
        descriptor = FetchDescriptor("k", execute)

        first = await loader.load_batch([descriptor])
        second = await loader.load_batch([descriptor])

        assert not first["k"].ok
        assert second["k"].data == "ok"
        assert not second["k"].from_cache

    @pytest.mark.asyncio
    async def test_write_through_uses_priority_tier_ttl(self, clock):
        cache = TTLCache(clock=clock)
        loader = make_loader(cache=cache)
        await loader.load_batch([FetchDescriptor("k", returning(1), Priority.CRITICAL)])

        critical_ttl = get_ttl_for_priority(Priority.CRITICAL)
        clock.advance(critical_ttl - 1)
        assert "k" in cache
        clock.advance(1)
        assert "k" not in cache

    @pytest.mark.asyncio
    async def test_descriptor_ttl_overrides_tier(self, clock):
        cache = TTLCache(clock=clock)
        loader = make_loader(cache=cache)
        await loader.load_batch([FetchDescriptor("k", returning(1), Priority.CRITICAL, ttl=1800)])

        clock.advance(1799)
        assert "k" in cache

    @pytest.mark.asyncio
    async def test_concurrent_batches_share_one_fetch(self):
        loader = make_loader()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.02)
            return ["row"]

        descriptor = FetchDescriptor("search:activities", fetch)
        first, second = await asyncio.gather(
            loader.load_batch([descriptor]),
            loader.load_batch([descriptor]),
        )

        assert calls == 1
        assert first["search:activities"].data == second["search:activities"].data == ["row"]


# =============================================================================
# Bundles
# =============================================================================

class TestBundles:
    def test_homepage_bundle_tiers(self, static_client):
        bundle = homepage_bundle(static_client)
        by_key = {d.key: d for d in bundle.descriptors}

        assert by_key["homepage:activities"].priority is Priority.CRITICAL
        assert by_key["homepage:destinations"].priority is Priority.CRITICAL
        assert by_key["homepage:stays"].priority is Priority.HIGH
        assert by_key["homepage:stay_count"].priority is Priority.LOW
        assert set(bundle.fallback_data) == set(bundle.keys)

    @pytest.mark.asyncio
    async def test_homepage_bundle_loads(self, static_client, activity_records):
        loader = make_loader()
        bundle = homepage_bundle(static_client)

        results = await loader.load_batch(
            bundle.descriptors,
            timeout=bundle.timeout,
            retries=bundle.retries,
            fallback_data=bundle.fallback_data,
        )

        assert all(r.ok for r in results.values())
        assert len(results["homepage:activities"].data) == len(activity_records)
        assert results["homepage:activity_count"].data == len(activity_records)
        assert [r["name"] for r in results["homepage:regions"].data] == ["East India", "West India"]

    @pytest.mark.asyncio
    async def test_missing_table_degrades_to_fallback(self, content_tables):
        del content_tables["regions"]
        client = StaticContentClient(content_tables)
        loader = make_loader(retries=0)
        bundle = homepage_bundle(client)

        results = await loader.load_batch(
            bundle.descriptors, fallback_data=bundle.fallback_data, retries=0
        )

        assert not results["homepage:regions"].ok
        assert results["homepage:regions"].data == []
        assert results["homepage:activities"].ok

    def test_build_bundle_by_name(self, static_client):
        for name in available_bundles():
            assert build_bundle(name, static_client).name == name

    def test_unknown_bundle_raises_key_error(self, static_client):
        with pytest.raises(KeyError):
            build_bundle("nope", static_client)
        with pytest.raises(KeyError):
            build_bundle("preload-nowhere", static_client)

    def test_route_preload_bundle(self, static_client):
        bundle = route_preload_bundle(static_client, "/activities")
        assert bundle.keys == ("preload:activities",)
        assert route_preload_bundle(static_client, "/unknown") is None
