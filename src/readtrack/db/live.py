"""Live queries.

A subscription is an iterator of snapshots. The first snapshot is the result
of the query at subscribe time; every committed write to one of the watched
collections of the same user pushes a fresh one. Closing the subscription
ends the iteration.
"""

import queue
import threading
from collections import defaultdict
from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar, Union

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Key = tuple[str, str]  # (user_id, collection)

_CLOSED = object()


class Subscription(Generic[T]):
    """A stream of query snapshots."""

    def __init__(self, hub: "LiveQueryHub", keys: list[Key], query: Callable[[], T]):
        self._hub = hub
        self._keys = keys
        self._query = query
        self._queue: queue.Queue = queue.Queue()
        self._closed = False
        self.latest: Optional[T] = None

    def refresh(self) -> None:
        """Re-run the query and enqueue the result."""
        if self._closed:
            return
        snapshot = self._query()
        self.latest = snapshot
        self._queue.put(snapshot)

    def next_snapshot(self, timeout: Optional[float] = None) -> T:
        """Block until the next snapshot arrives.

        Raises:
            StopIteration: If the subscription was closed
            queue.Empty: If nothing arrived within timeout
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Keep the marker so later calls stop too
            self._queue.put(_CLOSED)
            raise StopIteration
        return item

    def drain(self) -> Optional[T]:
        """Return the newest pending snapshot without blocking, if any."""
        newest = None
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return newest
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                return newest
            newest = item

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        return self.next_snapshot()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Unsubscribe. Iteration stops after already queued snapshots."""
        if self._closed:
            return
        self._closed = True
        self._hub.remove(self._keys, self)
        self._queue.put(_CLOSED)

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class LiveQueryHub:
    """Tracks subscriptions per (user, collection) and fans out changes."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: dict[Key, list[Subscription]] = defaultdict(list)

    def subscribe(
        self,
        user_id: str,
        collections: Union[str, Iterable[str]],
        query: Callable[[], T],
    ) -> Subscription[T]:
        """Register a query and deliver its current result immediately.

        Args:
            user_id: Owner of the watched collections
            collections: One collection name or several
            query: Called for every snapshot
        """
        if isinstance(collections, str):
            collections = [collections]
        keys = [(user_id, name) for name in collections]
        subscription = Subscription(self, keys, query)
        with self._lock:
            for key in keys:
                self._subscriptions[key].append(subscription)
        subscription.refresh()
        return subscription

    def remove(self, keys: list[Key], subscription: Subscription) -> None:
        with self._lock:
            for key in keys:
                subs = self._subscriptions.get(key, [])
                if subscription in subs:
                    subs.remove(subscription)
                if not subs:
                    self._subscriptions.pop(key, None)

    def publish(self, user_id: str, collection: str) -> None:
        """Notify every subscriber of a collection that it changed."""
        with self._lock:
            subs = list(self._subscriptions.get((user_id, collection), []))
        for subscription in subs:
            try:
                subscription.refresh()
            except Exception:
                logger.exception("live_query_refresh_failed", collection=collection)

    def count(self, user_id: str, collection: str) -> int:
        """Number of open subscriptions on a collection."""
        with self._lock:
            return len(self._subscriptions.get((user_id, collection), []))

    def close_all(self) -> None:
        with self._lock:
            subs = {id(s): s for group in self._subscriptions.values() for s in group}
        for subscription in subs.values():
            subscription.close()
