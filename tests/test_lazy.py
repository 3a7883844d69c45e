"""Tests for the field-group state machine."""

from __future__ import annotations

import threading

import pytest

from itms_catalog.errors import CatalogError, FetchInProgressError
from itms_catalog.lazy import GroupState, LazyEntity, lazy_field


class Thing(LazyEntity):
    size: int = lazy_field("shape")
    color: str = lazy_field("shape")
    owner: str = lazy_field("ownership")

    def __init__(self, loader=None, **prefill) -> None:
        super().__init__(**prefill)
        self.loads = 0
        self._loader = loader or (lambda: {"size": 3, "color": "red"})
        self._register_group("shape", self._load_shape)
        self._register_group("ownership", lambda: {"owner": "me"})

    def _load_shape(self):
        self.loads += 1
        return self._loader()


def test_group_loads_once_for_all_fields() -> None:
    thing = Thing()

    assert thing.color == "red"
    assert thing.size == 3
    assert thing.loads == 1
    assert thing.group_state("shape") is GroupState.POPULATED
    assert thing.group_state("ownership") is GroupState.UNFETCHED


def test_unfetched_field_of_populated_group_is_none() -> None:
    thing = Thing(loader=lambda: {"size": 1})

    assert thing.size == 1
    assert thing.color is None
    assert thing.loads == 1


def test_prefill_skips_fetch_and_none_prefill_is_ignored() -> None:
    thing = Thing(size=9, color=None)

    assert thing.size == 9
    assert thing.loads == 0
    assert thing.color == "red"
    assert thing.loads == 1


def test_fetched_values_replace_prefill() -> None:
    thing = Thing(size=9)

    thing.color

    assert thing.size == 3


def test_failure_is_sticky() -> None:
    calls = []

    def broken():
        calls.append(1)
        raise CatalogError("boom")

    thing = Thing(loader=broken)

    for _ in range(3):
        with pytest.raises(CatalogError, match="boom"):
            thing.size

    assert len(calls) == 1
    assert thing.group_state("shape") is GroupState.FAILED
    assert thing.owner == "me"


def test_reentrant_access_raises_fetch_in_progress() -> None:
    holder = {}

    def reentrant():
        return {"size": holder["thing"].color}

    thing = Thing(loader=reentrant)
    holder["thing"] = thing

    with pytest.raises(FetchInProgressError):
        thing.size

    assert thing.group_state("shape") is GroupState.FAILED


def test_concurrent_access_waits_for_in_flight_fetch() -> None:
    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(timeout=5)
        return {"size": 5, "color": "blue"}

    thing = Thing(loader=slow)
    results = []

    first = threading.Thread(target=lambda: results.append(thing.size))
    first.start()
    started.wait(timeout=5)
    second = threading.Thread(target=lambda: results.append(thing.color))
    second.start()
    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert sorted(map(str, results)) == ["5", "blue"]
    assert thing.loads == 1


def test_unexpected_error_also_fails_the_group() -> None:
    calls = []

    def buggy():
        calls.append(1)
        raise RuntimeError("bug")

    thing = Thing(loader=buggy)

    for _ in range(2):
        with pytest.raises(RuntimeError, match="bug"):
            thing.size

    assert len(calls) == 1
    assert thing.group_state("shape") is GroupState.FAILED
