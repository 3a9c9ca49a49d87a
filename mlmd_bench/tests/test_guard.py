from typing import Iterable, List

import pytest

from mlmd_bench.errors import AlreadyExistsError, NotFoundError, StoreError
from mlmd_bench.store import InMemoryMetadataStore, populate_store
from mlmd_bench.types import Event, EventType
from mlmd_bench.workloads import DuplicateOutputGuard, GuardVerdict


class RaisingStore:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    def get_events_by_artifact_ids(self, artifact_ids: Iterable[int]) -> List[Event]:
        self.calls += 1
        raise self.exc


def test_fresh_artifact_is_registered_once() -> None:
    store = InMemoryMetadataStore()
    (a1,), (e1,) = populate_store(store, 1, 1)
    guard = DuplicateOutputGuard(store)

    assert guard.check_and_register(a1) is GuardVerdict.FRESH
    assert guard.check_and_register(a1) is GuardVerdict.ALREADY_USED
    assert guard.registry == {a1}
    # the second check is answered from the registry
    assert guard.store_queries == 1


def test_persisted_output_event_is_reported_as_used() -> None:
    store = InMemoryMetadataStore()
    (a1, a2), (e1,) = populate_store(store, 2, 1)
    store.put_events([
        Event(EventType.OUTPUT, a1, e1, ("foo",)),
        Event(EventType.INPUT, a2, e1, ("foo",)),
    ])
    guard = DuplicateOutputGuard(store)

    assert guard.check_and_register(a1) is GuardVerdict.ALREADY_USED
    assert guard.check_and_register(a2) is GuardVerdict.FRESH
    assert guard.registry == {a2}
    assert guard.unusable_ids == frozenset({a1, a2})

    assert guard.check_and_register(a1) is GuardVerdict.ALREADY_USED
    assert guard.store_queries == 2


def test_already_exists_from_store_is_a_rejection_signal() -> None:
    guard = DuplicateOutputGuard(RaisingStore(AlreadyExistsError("dup")))
    assert guard.check_and_register(9) is GuardVerdict.ALREADY_USED
    assert guard.registry == set()


def test_not_found_from_store_means_no_events() -> None:
    guard = DuplicateOutputGuard(RaisingStore(NotFoundError("none")))
    assert guard.check_and_register(9) is GuardVerdict.FRESH


def test_other_store_failures_propagate() -> None:
    guard = DuplicateOutputGuard(RaisingStore(StoreError("connection reset")))
    with pytest.raises(StoreError, match="connection reset"):
        guard.check_and_register(9)
    assert guard.registry == set()


def test_clear_forgets_everything() -> None:
    store = InMemoryMetadataStore()
    (a1,), _ = populate_store(store, 1, 1)
    guard = DuplicateOutputGuard(store)
    guard.check_and_register(a1)
    guard.clear()

    assert guard.unusable_ids == frozenset()
    assert guard.check_and_register(a1) is GuardVerdict.FRESH
