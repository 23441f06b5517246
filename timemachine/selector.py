"""
Bounded top-N-by-recency selection.

A Selector is a fixed-capacity min-heap of DatedItems ordered by date. The
oldest held item sits at the root, so deciding whether a new item belongs
in the top N is a single comparison against the root, and admitting it
costs O(log N).
"""

import logging
import threading
from typing import Iterator, Optional

from .errors import InvalidConfiguration
from .types import DatedItem

logger = logging.getLogger(__name__)


def _parent(index: int) -> int:
    return (index - 1) // 2


def _left(index: int) -> int:
    return 2 * index + 1


def _right(index: int) -> int:
    return 2 * index + 2


class Selector:
    """
    Keeps the `capacity` most recent items from an arbitrary-order stream.

    Insertion policy when full: a candidate replaces the oldest held item
    only if it is strictly newer. Ties with the oldest are rejected, so
    items already held win over later arrivals with the same date.

    Each selector has its own lock; inserts into different selectors never
    contend with each other.
    """

    def __init__(self, capacity: int):
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise InvalidConfiguration(
                f"Selector capacity must be an integer, got {capacity!r}"
            )
        if capacity <= 0:
            raise InvalidConfiguration(
                f"Selector capacity must be positive, got {capacity}"
            )
        self._capacity = capacity
        self._heap: list[DatedItem] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[DatedItem]:
        """Snapshot in heap order. Use drain_sorted_descending() for display."""
        with self._lock:
            return iter(list(self._heap))

    def __repr__(self) -> str:
        return f"Selector(capacity={self._capacity}, size={len(self._heap)})"

    @property
    def is_full(self) -> bool:
        return len(self._heap) >= self._capacity

    def peek(self) -> Optional[DatedItem]:
        """The oldest held item, or None if empty."""
        with self._lock:
            return self._heap[0] if self._heap else None

    def insert(self, item: DatedItem) -> bool:
        """
        Offer an item to the selector.

        Returns:
            True if the item is now held, False if it was rejected because
            the selector is full and the item is not newer than the oldest.
        """
        with self._lock:
            heap = self._heap
            if len(heap) < self._capacity:
                heap.append(item)
                self._sift_up(len(heap) - 1)
                return True
            if item.date > heap[0].date:
                # Replacing the root in place is the same as evict + add
                evicted = heap[0]
                heap[0] = item
                self._sift_down(0)
                logger.debug("Evicted %s for %s", evicted.identifier, item.identifier)
                return True
            return False

    def evict_min(self) -> Optional[DatedItem]:
        """Remove and return the oldest held item, or None if empty."""
        with self._lock:
            heap = self._heap
            if not heap:
                return None
            oldest = heap[0]
            last = heap.pop()
            if heap:
                heap[0] = last
                self._sift_down(0)
            return oldest

    def drain_sorted_descending(self) -> list[DatedItem]:
        """Held items from most recent to oldest.

        Non-destructive: sorts a copy and leaves the heap as it was.
        """
        with self._lock:
            return sorted(self._heap, key=lambda item: item.date, reverse=True)

    def describe(self) -> str:
        """Identifiers in heap order, for debugging."""
        with self._lock:
            return " ".join(item.identifier for item in self._heap)

    # Heap maintenance. Callers hold the lock.

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = _parent(index)
            if heap[parent].date <= heap[index].date:
                break
            self._swap(parent, index)
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        size = len(heap)
        while _left(index) < size:
            smaller = _left(index)
            right = _right(index)
            if right < size and heap[right].date < heap[smaller].date:
                smaller = right
            if heap[smaller].date >= heap[index].date:
                break
            self._swap(index, smaller)
            index = smaller
