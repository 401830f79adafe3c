"""In-process change feed.

Services publish the full current contents of a collection after every
committed write; subscribers (the read model) replace their copy wholesale.
There is no incremental merge: the latest snapshot is always authoritative.
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Sequence

logger = logging.getLogger(__name__)

COLLECTIONS = ("shelves", "cabinets", "folders", "records", "users")

Callback = Callable[[Sequence], None]


class ChangeFeed:
    """Subscribe-with-callback hub, one channel per collection."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callback]] = defaultdict(list)
        self._lock = threading.Lock()
        self._publishing = threading.RLock()

    @staticmethod
    def _check(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")

    def subscribe(self, collection: str, callback: Callback) -> Callable[[], None]:
        """Register *callback* and return a handle that unsubscribes it.

        Calling the handle more than once is harmless.
        """
        self._check(collection)
        with self._lock:
            self._subscribers[collection].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers[collection]
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, collection: str) -> int:
        self._check(collection)
        with self._lock:
            return len(self._subscribers[collection])

    def publish_latest(self, collection: str, load: Callable[[], Sequence]) -> int:
        """Load a snapshot and publish it while holding the publishing lock.

        Loads and publishes run one at a time, so snapshots reach
        subscribers in the order they were loaded. Call *load* after the
        write has committed. Returns the snapshot size.
        """
        with self._publishing:
            snapshot = load()
            self.publish(collection, snapshot)
        return len(snapshot)

    def publish(self, collection: str, snapshot: Sequence) -> None:
        """Deliver *snapshot* to every subscriber of *collection*.

        A failing subscriber is logged and skipped; the others still receive
        the snapshot.
        """
        self._check(collection)
        with self._lock:
            callbacks = list(self._subscribers[collection])
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception(
                    "Snapshot subscriber failed",
                    extra={"collection": collection, "size": len(snapshot)},
                )
