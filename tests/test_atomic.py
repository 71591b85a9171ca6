from __future__ import annotations

from pacegen.metrics import AtomicInt


def test_compare_and_set_only_applies_on_match() -> None:
    cell = AtomicInt(5)
    assert not cell.compare_and_set(4, 10)
    assert cell.load() == 5
    assert cell.compare_and_set(5, 10)
    assert cell.load() == 10


def test_add_returns_new_value() -> None:
    cell = AtomicInt()
    assert cell.add() == 1
    assert cell.add(4) == 5
