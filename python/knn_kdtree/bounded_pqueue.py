from __future__ import annotations

import bisect
import itertools
import operator
from typing import Any, Generic, TypeVar

from knn_kdtree.errors import EmptyQueueError

T = TypeVar("T")


class BoundedPQueue(Generic[T]):
    """Priority queue that keeps only the ``capacity`` lowest-priority items.

    Entries are kept sorted by (priority, insertion order), so the best entry
    sits at the front and the worst one at the back. When the queue is full a
    new item is accepted only if it is strictly better than the current worst,
    which is then evicted.
    """

    def __init__(self, capacity: int):
        capacity = operator.index(capacity)
        if capacity < 0:
            raise ValueError(f"capacity must not be negative, got {capacity}")
        self._capacity = capacity
        self._entries: list[tuple[float, int, Any]] = []
        self._counter = itertools.count()

    def enqueue(self, item: T, priority: float) -> None:
        if self._capacity == 0:
            return

        if len(self._entries) == self._capacity:
            if not priority < self._entries[-1][0]:
                return
            # Evict the worst. Among equal priorities it is the newest one.
            self._entries.pop()

        # Unique sequence numbers keep the items themselves out of comparisons.
        bisect.insort(self._entries, (priority, next(self._counter), item))

    def dequeue_min(self) -> T:
        if not self._entries:
            raise EmptyQueueError("dequeue_min() called on an empty queue")
        return self._entries.pop(0)[2]

    def peek_min_priority(self) -> float:
        if not self._entries:
            raise EmptyQueueError("peek_min_priority() called on an empty queue")
        return self._entries[0][0]

    def worst(self) -> float:
        if not self._entries:
            raise EmptyQueueError("worst() called on an empty queue")
        return self._entries[-1][0]

    def size(self) -> int:
        return len(self._entries)

    def max_size(self) -> int:
        return self._capacity

    def empty(self) -> bool:
        return not self._entries

    def full(self) -> bool:
        return len(self._entries) == self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"BoundedPQueue(capacity={self._capacity}, size={len(self._entries)})"
