"""Tests for the bounded plan cache."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from shadowdispatch import DO_NOTHING_PLAN
from shadowdispatch.plan_cache import PlanCache
from shadowdispatch.plans import NoOpPlan
from shadowdispatch.plans import Plan


class CountingResolver:
    """Resolver double that hands out a fresh plan per call and counts calls."""

    calls: list[str]
    delay_seconds: float
    _lock: threading.Lock

    def __init__(self, delay_seconds: float = 0.0) -> None:
        """Initialize the double.

        :param delay_seconds: Time spent inside each resolution.
        """
        self.calls = []
        self.delay_seconds = delay_seconds
        self._lock = threading.Lock()

    def __call__(self, signature: str, is_static: bool, declaring_type: type | None) -> Plan | None:
        """Record the call and return a new plan.

        :param signature: Call-site signature.
        :param is_static: Static call flag.
        :param declaring_type: Declaring class.
        :returns: A distinct plan object.
        """
        _ = is_static
        _ = declaring_type
        with self._lock:
            self.calls.append(signature)
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        return NoOpPlan()


def _signature(index: int) -> str:
    return f"pkg.module:Thing.method_{index}()"


def test_concurrent_first_use_resolves_once() -> None:
    resolver: CountingResolver = CountingResolver(delay_seconds=0.05)
    cache: PlanCache = PlanCache(resolver)
    barrier: threading.Barrier = threading.Barrier(16)

    def request() -> Plan | None:
        barrier.wait()
        return cache.get_or_resolve(_signature(0), False, None)

    with ThreadPoolExecutor(max_workers=16) as executor:
        futures = [executor.submit(request) for _ in range(16)]
        plans: list[Plan | None] = [future.result() for future in futures]

    assert resolver.calls == [_signature(0)]
    assert cache.resolutions == 1
    first: Plan | None = plans[0]
    assert first is not None
    assert all(plan is first for plan in plans)


def test_repeated_lookups_return_cached_plan() -> None:
    resolver: CountingResolver = CountingResolver()
    cache: PlanCache = PlanCache(resolver)

    first = cache.get_or_resolve(_signature(1), False, None)
    second = cache.get_or_resolve(_signature(1), False, None)

    assert first is second
    assert len(resolver.calls) == 1


def test_fall_through_result_is_cached() -> None:
    calls: list[str] = []

    def resolve(signature: str, is_static: bool, declaring_type: type | None) -> Plan | None:
        calls.append(signature)
        return None

    cache: PlanCache = PlanCache(resolve)

    assert cache.get_or_resolve(_signature(2), False, None) is None
    assert cache.get_or_resolve(_signature(2), False, None) is None
    assert calls == [_signature(2)]
    assert _signature(2) in cache


def test_eviction_drops_only_the_oldest_insertion() -> None:
    cache: PlanCache = PlanCache(CountingResolver())

    for index in range(501):
        cache.get_or_resolve(_signature(index), False, None)

    assert len(cache) == 500
    assert _signature(0) not in cache
    for index in range(1, 501):
        assert _signature(index) in cache


def test_eviction_ignores_access_order() -> None:
    resolver: CountingResolver = CountingResolver()
    cache: PlanCache = PlanCache(resolver, capacity=3)

    cache.get_or_resolve(_signature(0), False, None)
    cache.get_or_resolve(_signature(1), False, None)
    cache.get_or_resolve(_signature(2), False, None)
    cache.get_or_resolve(_signature(0), False, None)
    cache.get_or_resolve(_signature(3), False, None)

    assert _signature(0) not in cache
    assert _signature(1) in cache
    assert len(resolver.calls) == 4


def test_evicted_signature_is_resolved_again() -> None:
    resolver: CountingResolver = CountingResolver()
    cache: PlanCache = PlanCache(resolver, capacity=1)

    cache.get_or_resolve(_signature(0), False, None)
    cache.get_or_resolve(_signature(1), False, None)
    cache.get_or_resolve(_signature(0), False, None)

    assert resolver.calls == [_signature(0), _signature(1), _signature(0)]


def test_clear_forgets_every_plan() -> None:
    cache: PlanCache = PlanCache(lambda signature, is_static, declaring_type: DO_NOTHING_PLAN)
    cache.get_or_resolve(_signature(0), False, None)

    cache.clear()

    assert len(cache) == 0


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError, match="capacity"):
        PlanCache(CountingResolver(), capacity=0)


def test_nested_lookup_on_same_thread_does_not_deadlock() -> None:
    cache: PlanCache
    inner_plans: list[Plan | None] = []

    def resolve(signature: str, is_static: bool, declaring_type: type | None) -> Plan | None:
        if signature == "pkg:A.outer()":
            inner_plans.append(cache.get_or_resolve("pkg:A.inner()", False, None))
        return DO_NOTHING_PLAN

    cache = PlanCache(resolve)
    results: list[Plan | None] = []
    worker: threading.Thread = threading.Thread(
        target=lambda: results.append(cache.get_or_resolve("pkg:A.outer()", False, None)),
        daemon=True,
    )

    worker.start()
    worker.join(timeout=5.0)

    assert worker.is_alive() is False
    assert results == [DO_NOTHING_PLAN]
    assert inner_plans == [DO_NOTHING_PLAN]
    assert "pkg:A.inner()" in cache
    assert cache.resolutions == 2
