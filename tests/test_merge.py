"""Tests for merge strategies and BranchStore.merge_branches().

Tests cover:
- find_common_ancestor on shared prefixes, divergent and empty sequences
- append, interleave, replace and smart strategies (pure functions)
- Store-level merge: protection, force, delete_source, history, events
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chatbranch import (
    BranchError,
    BranchHasChildrenError,
    BranchMerged,
    BranchNotFoundError,
    MergeStrategy,
    Message,
    ProtectedBranchError,
    UnknownMergeStrategyError,
)
from chatbranch.operations.merge import (
    find_common_ancestor,
    interleave_messages,
    merge_messages,
    resolve_strategy,
    smart_merge,
)
from tests.conftest import populate

_T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _msg(mid: str, second: int, content: str | None = None) -> Message:
    return Message(
        id=mid,
        role="user",
        content=content if content is not None else mid,
        timestamp=_T0 + timedelta(seconds=second),
        branch="x",
        index=0,
    )


def _ids(messages: list[Message]) -> list[str]:
    return [m.id for m in messages]


# ---------------------------------------------------------------------------
# Strategy resolution
# ---------------------------------------------------------------------------

class TestResolveStrategy:
    def test_enum_passthrough(self):
        assert resolve_strategy(MergeStrategy.SMART) is MergeStrategy.SMART

    @pytest.mark.parametrize("name", ["append", "interleave", "replace", "smart"])
    def test_by_name(self, name):
        assert resolve_strategy(name).value == name

    def test_unknown(self):
        with pytest.raises(UnknownMergeStrategyError, match="rebase"):
            resolve_strategy("rebase")


# ---------------------------------------------------------------------------
# Common ancestor
# ---------------------------------------------------------------------------

class TestFindCommonAncestor:
    def test_identical(self):
        a = [_msg("1", 1), _msg("2", 2)]
        assert find_common_ancestor(a, list(a)) == 1

    def test_prefix(self):
        a = [_msg("1", 1), _msg("2", 2)]
        b = [*a, _msg("3", 3)]
        assert find_common_ancestor(a, b) == 1
        assert find_common_ancestor(b, a) == 1

    def test_diverged(self):
        a = [_msg("1", 1), _msg("2", 2)]
        b = [_msg("1", 1), _msg("9", 3)]
        assert find_common_ancestor(a, b) == 0

    def test_nothing_shared(self):
        assert find_common_ancestor([_msg("1", 1)], [_msg("2", 2)]) == -1

    def test_empty(self):
        assert find_common_ancestor([], [_msg("1", 1)]) == -1
        assert find_common_ancestor([], []) == -1


# ---------------------------------------------------------------------------
# Pure strategies
# ---------------------------------------------------------------------------

class TestStrategies:
    def test_append(self):
        target = [_msg("m1", 1), _msg("m2", 2)]
        source = [_msg("m3", 3), _msg("m4", 4)]
        merged = merge_messages(target, source, MergeStrategy.APPEND, common_ancestor=-1)
        assert _ids(merged) == ["m1", "m2", "m3", "m4"]

    def test_append_keeps_duplicates(self):
        shared = _msg("m1", 1)
        merged = merge_messages(
            [shared], [shared, _msg("m2", 2)], MergeStrategy.APPEND, common_ancestor=0
        )
        assert _ids(merged) == ["m1", "m1", "m2"]

    def test_interleave_orders_by_timestamp(self):
        target = [_msg("a", 1), _msg("c", 3)]
        source = [_msg("b", 2), _msg("d", 4)]
        merged = merge_messages(target, source, MergeStrategy.INTERLEAVE, common_ancestor=-1)
        assert _ids(merged) == ["a", "b", "c", "d"]

    def test_interleave_ties_keep_target_first(self):
        merged = interleave_messages([_msg("t", 5)], [_msg("s", 5)])
        assert _ids(merged) == ["t", "s"]

    def test_replace_at_common_ancestor(self):
        target = [_msg("a", 1), _msg("b", 2), _msg("c", 3)]
        source = [_msg("a", 1), _msg("x", 4), _msg("y", 5)]
        merged = merge_messages(target, source, MergeStrategy.REPLACE, common_ancestor=0)
        assert _ids(merged) == ["a", "x", "y"]

    def test_replace_explicit_point(self):
        target = [_msg("a", 1), _msg("b", 2), _msg("c", 3)]
        source = [_msg("p", 1), _msg("q", 4), _msg("r", 5)]
        merged = merge_messages(
            target, source, MergeStrategy.REPLACE, common_ancestor=-1, merge_point=2
        )
        assert _ids(merged) == ["a", "b", "r"]

    def test_replace_negative_point_clamped(self):
        target = [_msg("a", 1)]
        source = [_msg("x", 2), _msg("y", 3)]
        merged = merge_messages(target, source, MergeStrategy.REPLACE, common_ancestor=-1)
        assert _ids(merged) == ["x", "y"]

    def test_replace_explicit_negative_point_clamped(self):
        target = [_msg("a", 1), _msg("b", 2)]
        source = [_msg("x", 3), _msg("y", 4)]
        merged = merge_messages(
            target, source, MergeStrategy.REPLACE, common_ancestor=1, merge_point=-1
        )
        assert _ids(merged) == ["x", "y"]

    def test_replace_explicit_zero_is_not_the_default(self):
        target = [_msg("a", 1), _msg("b", 2)]
        source = [_msg("p", 3), _msg("q", 4)]
        merged = merge_messages(
            target, source, MergeStrategy.REPLACE, common_ancestor=1, merge_point=0
        )
        assert _ids(merged) == ["p", "q"]
        merged = merge_messages(target, source, MergeStrategy.REPLACE, common_ancestor=1)
        assert _ids(merged) == ["a", "q"]

    def test_smart_keeps_prefix_and_interleaves_rest(self):
        target = [_msg("a", 1), _msg("b", 2), _msg("d", 4)]
        source = [_msg("a", 1), _msg("c", 3)]
        merged = smart_merge(target, source, 0)
        assert _ids(merged) == ["a", "b", "c", "d"]

    def test_smart_without_common_ancestor(self):
        target = [_msg("b", 2)]
        source = [_msg("a", 1)]
        merged = merge_messages(target, source, MergeStrategy.SMART, common_ancestor=-1)
        assert _ids(merged) == ["a", "b"]

    def test_smart_prefix_uses_target_copy(self):
        target = [_msg("a", 1, content="target text")]
        source = [_msg("a", 1, content="source text"), _msg("z", 2)]
        merged = smart_merge(target, source, 0)
        assert merged[0].content == "target text"

    def test_inputs_not_modified(self):
        target = [_msg("a", 1)]
        source = [_msg("b", 2)]
        merged = merge_messages(target, source, MergeStrategy.APPEND, common_ancestor=-1)
        merged[0].content = "changed"
        assert target[0].content == "a"
        assert _ids(target) == ["a"]
        assert _ids(source) == ["b"]


# ---------------------------------------------------------------------------
# Store merges
# ---------------------------------------------------------------------------

@pytest.fixture
def diverged(store):
    """main = [a, b, d], alt = [a, c] with b < c < d in time."""
    populate(store, ["a", "b"])
    store.fork("alt", from_message=0)
    store.add_message("user", "c")
    store.switch_branch("main")
    store.add_message("user", "d")
    return store


def _contents(store, name):
    return [m.content for m in store.get_branch(name).messages]


class TestMergeBranches:
    def test_append_into_unprotected_target(self, store):
        populate(store, ["m1", "m2"])
        store.fork("target")
        store.switch_branch("main")
        store.create_branch("source")
        store.switch_branch("source")
        populate(store, ["m3", "m4"])

        result = store.merge_branches("source", "target")

        assert _contents(store, "target") == ["m1", "m2", "m3", "m4"]
        assert [m.content for m in result.messages] == ["m1", "m2", "m3", "m4"]
        assert result.strategy is MergeStrategy.APPEND
        assert result.source_deleted is False
        # Source untouched
        assert _contents(store, "source") == ["m3", "m4"]

    def test_protected_target_requires_force(self, diverged):
        before = diverged.snapshot()
        with pytest.raises(ProtectedBranchError, match="merge into"):
            diverged.merge_branches("alt", "main")
        assert diverged.snapshot() == before

    def test_force_into_protected_target(self, diverged):
        result = diverged.merge_branches("alt", "main", strategy="smart", force=True)
        assert _contents(diverged, "main") == ["a", "b", "c", "d"]
        assert result.common_ancestor == 0

    def test_interleave(self, diverged):
        diverged.merge_branches("alt", "main", strategy="interleave", force=True)
        assert _contents(diverged, "main") == ["a", "a", "b", "c", "d"]

    def test_replace_defaults_to_common_ancestor(self, diverged):
        diverged.merge_branches("alt", "main", strategy=MergeStrategy.REPLACE, force=True)
        assert _contents(diverged, "main") == ["a", "c"]

    def test_replace_with_merge_point(self, diverged):
        diverged.merge_branches("alt", "main", strategy="replace", force=True, merge_point=1)
        assert _contents(diverged, "main") == ["a", "c"]
        diverged.merge_branches("alt", "main", strategy="replace", force=True, merge_point=2)
        assert _contents(diverged, "main") == ["a", "c"]

    def test_merge_into_child(self, diverged):
        diverged.merge_branches("main", "alt", strategy="smart")
        assert _contents(diverged, "alt") == ["a", "b", "c", "d"]
        assert _contents(diverged, "main") == ["a", "b", "d"]

    def test_stats_refreshed(self, diverged):
        diverged.merge_branches("alt", "main", force=True)
        stats = diverged.get_branch("main").stats
        assert stats.message_count == 5
        assert stats.token_count == 5

    def test_merge_record_appended(self, diverged):
        diverged.merge_branches("alt", "main", strategy="smart", force=True)
        history = diverged.get_branch("main").metadata.merge_history
        assert len(history) == 1
        assert history[0].from_branch == "alt"
        assert history[0].strategy == "smart"
        assert history[0].author == "anonymous"

    def test_merge_recorded_in_store_history(self, diverged):
        diverged.merge_branches("alt", "main", force=True)
        entry = diverged.history[-1]
        assert entry.action == "merge_branches"
        assert entry.details == {"source": "alt", "target": "main", "strategy": "append"}

    def test_unknown_strategy_changes_nothing(self, diverged):
        before = diverged.snapshot()
        with pytest.raises(UnknownMergeStrategyError):
            diverged.merge_branches("alt", "main", strategy="octopus", force=True)
        assert diverged.snapshot() == before

    def test_missing_branches(self, diverged):
        with pytest.raises(BranchNotFoundError):
            diverged.merge_branches("ghost", "main", force=True)
        with pytest.raises(BranchNotFoundError):
            diverged.merge_branches("alt", "ghost")

    def test_delete_source(self, diverged):
        diverged.switch_branch("alt")
        result = diverged.merge_branches("alt", "main", force=True, delete_source=True)
        assert result.source_deleted is True
        assert "alt" not in diverged
        assert diverged.current_branch == "main"

    def test_delete_source_with_children_checked_first(self, diverged):
        diverged.create_branch("grandchild", parent="alt")
        before = diverged.snapshot()
        with pytest.raises(BranchHasChildrenError):
            diverged.merge_branches("alt", "main", force=True, delete_source=True)
        assert diverged.snapshot() == before

    def test_delete_protected_source_rejected(self, diverged):
        diverged.create_branch("keep", parent="main", protected=True)
        with pytest.raises(ProtectedBranchError):
            diverged.merge_branches("keep", "alt", delete_source=True)
        assert _contents(diverged, "alt") == ["a", "c"]

    def test_delete_source_into_itself(self, diverged):
        with pytest.raises(BranchError):
            diverged.merge_branches("alt", "alt", delete_source=True)
        assert "alt" in diverged

    def test_merged_event(self, diverged):
        seen = []
        diverged.subscribe(BranchMerged, seen.append)
        diverged.merge_branches("alt", "main", force=True)
        assert len(seen) == 1
        assert seen[0].source == "alt"
        assert seen[0].target == "main"
        assert [m.content for m in seen[0].messages] == ["a", "b", "d", "a", "c"]

    def test_result_str(self, diverged):
        result = diverged.merge_branches("alt", "main", force=True)
        assert str(result) == "append merge alt->main (5 messages)"
