"""
Round Robin ready queue.

Every READY process sits here exactly once, in the order it became
ready. The dispatcher always takes the front; a process whose quantum ran
out goes to the back. That ordering alone is what makes the scheduler
round robin:

    ready: [A, B, C]  → dispatch A, preempt → [B, C, A]
                      → dispatch B, exits   → [C, A]
                      → dispatch C, preempt → [A, C]

Data structure: deque
- enqueue: append to right → O(1)
- dequeue: pop from left   → O(1)
- requeue: append to right → O(1)

No cap on the number of processes, no reordering, no priorities.
"""

from collections import deque
from typing import Iterator

from models.enums import ProcessState
from models.pcb import ProcessControlBlock


class ReadyQueue:

    def __init__(self):
        self._queue: deque[ProcessControlBlock] = deque()
        self._queued_ids: set[int] = set()

    def enqueue(self, pcb: ProcessControlBlock) -> None:
        """Append a READY PCB to the back of the line."""
        if pcb.state is not ProcessState.READY:
            raise ValueError(
                f"Only READY PCBs can be queued, PCB {pcb.pid} is {pcb.state.value}"
            )
        if id(pcb) in self._queued_ids:
            raise ValueError(f"PCB {pcb.pid} is already in the ready queue")
        self._queue.append(pcb)
        self._queued_ids.add(id(pcb))

    def requeue(self, pcb: ProcessControlBlock) -> None:
        """
        Send a preempted PCB to the back of the line.

        Same operation as enqueue; the separate name marks the call site
        where a quantum expired rather than where a process was admitted.
        """
        self.enqueue(pcb)

    def dequeue(self) -> ProcessControlBlock:
        """Remove and return the front PCB. Raises IndexError when empty."""
        if not self._queue:
            raise IndexError("dequeue from an empty ready queue")
        pcb = self._queue.popleft()
        self._queued_ids.discard(id(pcb))
        return pcb

    def is_empty(self) -> bool:
        return not self._queue

    def size(self) -> int:
        return len(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[ProcessControlBlock]:
        return iter(list(self._queue))
