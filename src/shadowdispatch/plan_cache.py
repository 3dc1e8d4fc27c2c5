"""Bounded, insertion-ordered plan cache."""

import threading
from collections import OrderedDict
from collections.abc import Callable

from shadowdispatch.plans import Plan
from shadowdispatch.settings import DEFAULT_PLAN_CACHE_SIZE

PlanSource = Callable[[str, bool, type | None], Plan | None]


class PlanCache:
    """Cache plans by signature, resolving each signature at most once.

    A single lock covers the lookup, the resolution and the insert, so a second
    thread asking for a signature that is still being resolved waits for the
    first result instead of computing its own. Once full, the oldest inserted
    entry is evicted; lookups do not refresh an entry's position.
    """

    _resolve: PlanSource
    _capacity: int
    _entries: "OrderedDict[str, Plan | None]"
    _lock: threading.RLock
    resolutions: int

    def __init__(self, resolve: PlanSource, capacity: int = DEFAULT_PLAN_CACHE_SIZE) -> None:
        """Initialize an empty cache.

        :param resolve: Callable computing the plan for a missing signature.
        :param capacity: Maximum number of cached signatures.
        :raises ValueError: If ``capacity`` is not positive.
        """
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._resolve = resolve
        self._capacity = capacity
        self._entries = OrderedDict()
        self._lock = threading.RLock()
        self.resolutions = 0

    @property
    def capacity(self) -> int:
        """Return the maximum number of cached signatures."""
        return self._capacity

    def get_or_resolve(self, signature: str, is_static: bool, declaring_type: type | None = None) -> Plan | None:
        """Return the cached plan for ``signature``, resolving it on first use.

        :param signature: Call-site signature.
        :param is_static: Whether the call has no receiver.
        :param declaring_type: Class owning the call site.
        :returns: Plan, or ``None`` to run the real code.
        """
        with self._lock:
            if signature in self._entries:
                return self._entries[signature]
            plan: Plan | None = self._resolve(signature, is_static, declaring_type)
            self.resolutions += 1
            self._entries[signature] = plan
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)
            return plan

    def clear(self) -> None:
        """Drop every cached plan."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, signature: object) -> bool:
        with self._lock:
            return signature in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
