"""Property tests: store invariants hold after any operation sequence."""

from __future__ import annotations

from hypothesis import given, settings

from chatbranch import BranchStore, BranchStoreConfig, CharRatioTokenCounter
from chatbranch.operations.branch import ancestry
from tests.conftest import TickClock
from tests.strategies import apply_operation, operation_sequences


def _assert_invariants(store: BranchStore) -> None:
    state = store.snapshot()
    branches = state.branches

    # Exactly one root, the protected root branch
    roots = [name for name, b in branches.items() if b.parent is None]
    assert roots == ["main"]
    assert branches["main"].metadata.protected

    # Every branch reaches the root
    for name in branches:
        assert ancestry(branches, name)[-1] == "main"

    # Current branch exists
    assert state.current_branch in branches

    # Capacity
    assert len(branches) <= store.config.max_branches

    # Stats consistent with messages
    counter = CharRatioTokenCounter()
    for branch in branches.values():
        assert branch.stats.message_count == len(branch.messages)
        assert branch.stats.token_count == sum(
            counter.count_text(m.content) for m in branch.messages
        )

    # Tree covers every branch exactly once
    names = [n.name for n in store.visualize_branches().walk()]
    assert sorted(names) == sorted(branches)


class TestInvariants:
    @given(ops=operation_sequences)
    @settings(max_examples=75, deadline=None)
    def test_operation_sequences_keep_invariants(self, ops):
        store = BranchStore(clock=TickClock())
        for op in ops:
            apply_operation(store, op)
            _assert_invariants(store)

    @given(ops=operation_sequences)
    @settings(max_examples=50, deadline=None)
    def test_capacity_never_exceeded(self, ops):
        store = BranchStore(config=BranchStoreConfig(max_branches=3), clock=TickClock())
        for op in ops:
            apply_operation(store, op)
            assert len(store) <= 3

    @given(ops=operation_sequences)
    @settings(max_examples=50, deadline=None)
    def test_export_import_round_trip(self, ops):
        store = BranchStore(clock=TickClock())
        for op in ops:
            apply_operation(store, op)

        other = BranchStore(clock=TickClock())
        other.import_branches(store.export_branches())
        assert other.snapshot() == store.snapshot()
