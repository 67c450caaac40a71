from typing import Any, List, Optional

from TSPConfig import Config
from TSPErrors import EmptyQueueError


class HeapEntry:
    __slots__ = ('item', 'priority')

    def __init__(self, item, priority: float):
        self.item = item
        self.priority = priority


# Space Complexity: O(n)
#   - One slot per stored entry, plus at most as many spare slots after a growth step
class BoundedPriorityQueue:
    """
    Binary min-heap keyed by a float priority.

    The hot path only uses insert/extractMin/size. contains, priorityOf and
    decreaseKey scan the heap linearly and compare items with ==.
    """

    def __init__(self, capacity: int = Config.QUEUE_INITIAL_CAPACITY):
        self._capacity = max(1, capacity)
        self._count = 0
        self._heap: List[Optional[HeapEntry]] = [None] * self._capacity

    def __len__(self):
        return self._count

    # Time Complexity: O(1)
    def size(self) -> int:
        return self._count

    # Time Complexity: O(log n), O(n) when the heap has to grow
    def insert(self, item, priority: float):
        if self._count == self._capacity:
            self._growHeap()
        self._count += 1
        self._siftUp(self._count - 1, HeapEntry(item, priority))

    # Time Complexity: O(log n)
    def extractMin(self):
        if self._count == 0:
            raise EmptyQueueError('extractMin() on an empty queue')

        result = self._heap[0].item
        self._count -= 1
        last = self._heap[self._count]
        self._heap[self._count] = None
        if self._count > 0:
            self._siftDown(0, last)
        return result

    def peek(self):
        if self._count == 0:
            return None
        return self._heap[0].item

    def contains(self, item) -> bool:
        return self._findItem(item) > -1

    def priorityOf(self, item) -> Optional[float]:
        index = self._findItem(item)
        if index < 0:
            return None
        return self._heap[index].priority

    # Time Complexity: O(n) for the scan, O(log n) for the resift
    def decreaseKey(self, item, priority: float):
        index = self._findItem(item)
        if index < 0:
            return
        entry = self._heap[index]
        if priority < entry.priority:
            entry.priority = priority
            self._siftUp(index, entry)

    def _findItem(self, item: Any) -> int:
        for index in range(self._count):
            if self._heap[index].item == item:
                return index
        return -1

    def _growHeap(self):
        # One more complete level: 15 -> 31 -> 63 ...
        self._capacity = self._capacity * 2 + 1
        newHeap: List[Optional[HeapEntry]] = [None] * self._capacity
        newHeap[:self._count] = self._heap[:self._count]
        self._heap = newHeap

    def _siftUp(self, index: int, entry: HeapEntry):
        parent = (index - 1) // 2
        while index > 0 and self._heap[parent].priority > entry.priority:
            self._heap[index] = self._heap[parent]
            index = parent
            parent = (index - 1) // 2
        self._heap[index] = entry

    def _siftDown(self, index: int, entry: HeapEntry):
        child = index * 2 + 1
        while child < self._count:
            # The right child wins only when strictly smaller.
            if child + 1 < self._count and self._heap[child + 1].priority < self._heap[child].priority:
                child += 1
            if self._heap[child].priority >= entry.priority:
                break
            self._heap[index] = self._heap[child]
            index = child
            child = index * 2 + 1
        self._heap[index] = entry
