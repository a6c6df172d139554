from contextlib import contextmanager
from threading import Lock
from typing import Dict, Hashable, Iterator, List


class KeyedLock:
    """Process-local mutex per key. Entries are dropped once no thread holds or waits on them."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: Dict[Hashable, List] = {}  # key -> [Lock, waiters]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
