"""
In-process coordination for cctoolkit.

This module provides the single-flight cache used to share the results of
expensive tool invocations (family classification, flag probing) between
threads that compile concurrently.

Features:
- At most one computation in flight per key
- Concurrent requesters for the same key block and observe the same outcome
- Tri-state inspection of any key (resolved true/false, pending, absent)
- Failed computations are not cached; every waiter sees the same error

Usage:
    from cctoolkit.core.locking import SingleFlightCache

    cache = SingleFlightCache()
    supported = cache.get_or_compute(key, lambda: run_expensive_probe())
"""

import logging
import threading
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Flight(Generic[T]):
    """One pending or finished computation."""

    def __init__(self):
        self.done = threading.Event()
        self.value: Optional[T] = None
        self.error: Optional[BaseException] = None

    def wait(self) -> T:
        self.done.wait()
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class SingleFlightCache(Generic[T]):
    """
    Keyed memo where the first requester computes and the others wait.

    This implements a wait-and-notify pattern where:
    1. The first thread to ask for a key registers a pending flight and computes
    2. Other threads asking for the same key wait on that flight
    3. All threads receive the single outcome once it is published

    Instances are meant to be created once per process (or once per test) and
    passed explicitly to the components that share them.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._flights: Dict[Hashable, _Flight[T]] = {}

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        """
        Return the cached value for ``key``, computing it at most once.

        Args:
            key: Hashable cache key
            compute: Zero-argument callable producing the value

        Returns:
            The value computed by whichever caller owned the flight

        Raises:
            Exception: Whatever ``compute`` raised, for the owner and for every
                caller that was waiting on the same flight
        """
        with self._lock:
            flight = self._flights.get(key)
            owner = flight is None
            if owner:
                flight = _Flight()
                self._flights[key] = flight

        if not owner:
            logger.debug(f"Waiting on shared result for {key!r}")
            return flight.wait()

        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                # Only successful outcomes are cached.
                self._flights.pop(key, None)
            flight.error = e
            flight.done.set()
            raise

        flight.value = value
        flight.done.set()
        return value

    def peek(self, key: Hashable) -> Optional[_Flight[T]]:
        """Return the flight registered for ``key`` without waiting on it."""
        with self._lock:
            return self._flights.get(key)

    def is_pending(self, key: Hashable) -> bool:
        """True while a computation for ``key`` is in flight."""
        flight = self.peek(key)
        return flight is not None and not flight.done.is_set()

    def get(self, key: Hashable) -> Optional[T]:
        """Return the resolved value for ``key``, or None if absent or pending."""
        flight = self.peek(key)
        if flight is None or not flight.done.is_set() or flight.error is not None:
            return None
        return flight.value

    def clear(self) -> None:
        """Forget every resolved entry. Pending flights finish normally."""
        with self._lock:
            self._flights = {
                key: flight
                for key, flight in self._flights.items()
                if not flight.done.is_set()
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._flights)

    def __contains__(self, key: Hashable) -> bool:
        return self.peek(key) is not None


__all__ = [
    "SingleFlightCache",
]
