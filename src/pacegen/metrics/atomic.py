from __future__ import annotations

import threading


class AtomicInt:
    """An integer cell whose every operation is atomic.

    Each cell carries its own lock, so unrelated counters never contend with
    each other.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> int:
        with self._lock:
            return self._value

    def add(self, delta: int = 1) -> int:
        with self._lock:
            self._value += delta
            return self._value

    def compare_and_set(self, expected: int, new: int) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True

    def __repr__(self) -> str:
        return f"AtomicInt({self.load()})"
