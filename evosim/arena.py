"""
Generational arena storage.

Entities live in a dense slot list. Removed slots go onto a free-list and
are reused, with a per-slot generation counter bumped on every removal so
that a handle to a removed entity never resolves to its replacement.

Handles are (pool, index, generation) tuples; pool names keep handles from
different arenas (creatures, food, carrion, features) distinct.
"""

from typing import Generic, Iterator, List, NamedTuple, Optional, Tuple, TypeVar

T = TypeVar('T')


class Handle(NamedTuple):
    """Stable reference to an arena slot."""
    pool: str
    index: int
    generation: int

    def __str__(self) -> str:
        return f"{self.pool}-{self.index}.{self.generation}"


class Arena(Generic[T]):
    """
    Dense slot storage with free-list reuse and generational handles.

    Iteration yields live values in slot order, which is stable between
    insertions and removals.
    """

    def __init__(self, pool: str):
        self.pool = pool
        self._slots: List[Optional[T]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._count = 0

    def insert(self, value: T) -> Handle:
        if self._free:
            index = self._free.pop()
            self._slots[index] = value
        else:
            index = len(self._slots)
            self._slots.append(value)
            self._generations.append(0)
        self._count += 1
        return Handle(self.pool, index, self._generations[index])

    def get(self, handle: Optional[Handle]) -> Optional[T]:
        """Resolve handle, returning None for stale, foreign, or removed handles."""
        if not self.contains(handle):
            return None
        return self._slots[handle.index]

    def contains(self, handle: Optional[Handle]) -> bool:
        if handle is None or handle.pool != self.pool:
            return False
        if handle.index < 0 or handle.index >= len(self._slots):
            return False
        return (self._generations[handle.index] == handle.generation
                and self._slots[handle.index] is not None)

    def remove(self, handle: Optional[Handle]) -> Optional[T]:
        """
        Remove value at handle.

        Returns:
            The removed value, or None if the handle did not resolve
        """
        if not self.contains(handle):
            return None
        value = self._slots[handle.index]
        self._slots[handle.index] = None
        self._generations[handle.index] += 1
        self._free.append(handle.index)
        self._count -= 1
        return value

    def clear(self):
        for index, value in enumerate(self._slots):
            if value is not None:
                self._slots[index] = None
                self._generations[index] += 1
                self._free.append(index)
        self._count = 0

    def items(self) -> Iterator[Tuple[Handle, T]]:
        for index, value in enumerate(self._slots):
            if value is not None:
                yield Handle(self.pool, index, self._generations[index]), value

    def values(self) -> List[T]:
        return [v for v in self._slots if v is not None]

    def __iter__(self) -> Iterator[T]:
        return (v for v in self._slots if v is not None)

    def __len__(self) -> int:
        return self._count

    def __contains__(self, handle) -> bool:
        return self.contains(handle)
