"""
Generic undo/redo snapshot stack.

Stores deep copies of whole values; knows nothing about geometry.
"""
import copy
from typing import Generic, List, TypeVar

T = TypeVar("T")

DEFAULT_HISTORY_LIMIT = 50


class SnapshotHistory(Generic[T]):
    """Linear history of snapshots with a movable cursor.

    Pushing after an undo discards the redo branch. The oldest snapshot is
    dropped once ``limit`` entries are held.
    """

    def __init__(self, initial: T, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries: List[T] = [copy.deepcopy(initial)]
        self._index = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def push(self, value: T) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(copy.deepcopy(value))
        if len(self._entries) > self.limit:
            self._entries.pop(0)
        self._index = len(self._entries) - 1

    def undo(self) -> T:
        if not self.can_undo:
            raise IndexError("Nothing to undo")
        self._index -= 1
        return copy.deepcopy(self._entries[self._index])

    def redo(self) -> T:
        if not self.can_redo:
            raise IndexError("Nothing to redo")
        self._index += 1
        return copy.deepcopy(self._entries[self._index])

    def reset(self, initial: T) -> None:
        self._entries = [copy.deepcopy(initial)]
        self._index = 0
