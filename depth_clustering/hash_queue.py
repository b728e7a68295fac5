"""FIFO queue of pixel coordinates that remembers every coordinate ever pushed."""

from __future__ import annotations

from collections import deque

from depth_clustering.pixel_coord import PixelCoord


class HashQueue:
    """A first-in first-out queue with fast lookup of pushed coordinates.

    Membership covers every coordinate that was ever pushed, including
    those already popped.
    """

    def __init__(self) -> None:
        self._queue: deque[PixelCoord] = deque()
        self._seen: set[tuple[int, int]] = set()

    def push(self, coord: PixelCoord) -> None:
        """Append a coordinate to the back of the queue."""
        self._seen.add((coord.row, coord.col))
        self._queue.append(coord)

    def pop(self) -> PixelCoord:
        """Remove and return the front coordinate; raise IndexError when empty."""
        if not self._queue:
            raise IndexError("pop from an empty HashQueue")
        return self._queue.popleft()

    def front(self) -> PixelCoord:
        """The front coordinate; raise IndexError when empty."""
        if not self._queue:
            raise IndexError("front of an empty HashQueue")
        return self._queue[0]

    def __contains__(self, coord: object) -> bool:
        if not isinstance(coord, PixelCoord):
            return False
        return (coord.row, coord.col) in self._seen

    def __len__(self) -> int:
        return len(self._queue)