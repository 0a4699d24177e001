"""Tests for adding and editing messages."""

from __future__ import annotations

import io

import pytest

from chatbranch import BranchLimitError, DuplicateBranchError, MessageNotFoundError
from chatbranch.formatting import pprint_messages
from tests.conftest import make_store, populate


# ---------------------------------------------------------------------------
# add_message
# ---------------------------------------------------------------------------

class TestAddMessage:
    def test_appends_to_current_branch(self, store):
        msg = store.add_message("user", "hello")
        main = store.get_branch("main")
        assert [m.id for m in main.messages] == [msg.id]
        assert msg.role == "user"
        assert msg.branch == "main"
        assert msg.index == 0
        assert msg.edited is False
        assert msg.original_content is None

    def test_index_is_position(self, store):
        populate(store, ["a", "b", "c"])
        assert [m.index for m in store.get_branch("main").messages] == [0, 1, 2]

    def test_ids_are_unique(self, store):
        ids = populate(store, ["a"] * 20)
        assert len(set(ids)) == 20

    def test_stats_updated(self, store):
        populate(store, ["abcd", "abcde"])
        stats = store.get_branch("main").stats
        assert stats.message_count == 2
        assert stats.token_count == 3

    def test_empty_content_counts_zero_tokens(self, store):
        store.add_message("system", "")
        assert store.get_branch("main").stats.token_count == 0

    def test_metadata_stored(self, store):
        msg = store.add_message("assistant", "hi", metadata={"model": "x"})
        assert store.get_branch("main").messages[0].metadata == {"model": "x"}
        assert msg.metadata == {"model": "x"}

    def test_goes_to_switched_branch(self, store):
        store.create_branch("alt")
        store.switch_branch("alt")
        store.add_message("user", "only alt")
        assert store.get_branch("main").messages == []
        assert store.get_branch("alt").messages[0].branch == "alt"

    def test_updates_last_modified(self, store):
        before = store.metadata.last_modified
        store.add_message("user", "x")
        assert store.metadata.last_modified > before

    def test_returned_message_is_a_copy(self, store):
        msg = store.add_message("user", "x")
        msg.content = "mutated"
        assert store.get_branch("main").messages[0].content == "x"


# ---------------------------------------------------------------------------
# edit_message
# ---------------------------------------------------------------------------

class TestEditMessage:
    def test_edit_creates_branch_by_default(self, store):
        ids = populate(store, ["a", "b", "c"])
        edited = store.edit_message(ids[1], "B2")

        assert store.current_branch.startswith("edit-")
        branch = store.get_current_branch()
        assert branch.parent == "main"
        assert [m.content for m in branch.messages] == ["a", "B2"]
        assert edited.edited is True
        assert edited.original_content == "b"
        assert edited.edited_at is not None
        assert edited.id == ids[1]

    def test_original_branch_untouched(self, store):
        ids = populate(store, ["a", "b", "c"])
        store.edit_message(ids[1], "B2")
        main = store.get_branch("main")
        assert [m.content for m in main.messages] == ["a", "b", "c"]
        assert main.messages[1].edited is False

    def test_named_edit_branch(self, store):
        ids = populate(store, ["a"])
        store.edit_message(ids[0], "A", branch_name="rewrite")
        assert store.current_branch == "rewrite"
        assert store.get_branch("rewrite").metadata.description == f"Edit of message {ids[0]}"

    def test_named_edit_branch_duplicate(self, store):
        ids = populate(store, ["a"])
        store.create_branch("rewrite")
        with pytest.raises(DuplicateBranchError):
            store.edit_message(ids[0], "A", branch_name="rewrite")
        assert store.current_branch == "main"
        assert store.get_branch("main").messages[0].content == "a"

    def test_in_place_edit(self, store):
        ids = populate(store, ["a", "b"])
        store.edit_message(ids[0], "A", create_branch=False)
        assert store.current_branch == "main"
        assert len(store) == 1
        msg = store.get_branch("main").messages[0]
        assert msg.content == "A"
        assert msg.original_content == "a"
        assert msg.edited is True

    def test_second_edit_keeps_first_original(self, store):
        ids = populate(store, ["a"])
        store.edit_message(ids[0], "A", create_branch=False)
        store.edit_message(ids[0], "AA", create_branch=False)
        msg = store.get_branch("main").messages[0]
        assert msg.content == "AA"
        assert msg.original_content == "a"

    def test_edit_refreshes_token_count(self, store):
        ids = populate(store, ["abcd"])
        store.edit_message(ids[0], "abcdefghijkl", create_branch=False)
        assert store.get_branch("main").stats.token_count == 3

    def test_missing_message(self, store):
        populate(store, ["a"])
        with pytest.raises(MessageNotFoundError) as exc_info:
            store.edit_message("nope", "x")
        assert exc_info.value.branch_name == "main"
        assert len(store) == 1

    def test_message_on_other_branch_not_found(self, store):
        ids = populate(store, ["a"])
        store.create_branch("alt")
        store.switch_branch("alt")
        with pytest.raises(MessageNotFoundError):
            store.edit_message(ids[0], "x")

    def test_edit_recorded_in_history(self, store):
        ids = populate(store, ["a"])
        store.edit_message(ids[0], "A", create_branch=False)
        entry = store.history[-1]
        assert entry.action == "edit_message"
        assert entry.details == {"branch": "main", "message": ids[0]}

    def test_edit_needs_room_for_branch(self):
        store = make_store(max_branches=1)
        ids = populate(store, ["a"])

        with pytest.raises(BranchLimitError):
            store.edit_message(ids[0], "A")
        store.edit_message(ids[0], "A", create_branch=False)
        assert store.get_branch("main").messages[0].content == "A"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestPrintMessages:
    def test_markup_in_role_printed_literally(self, store):
        store.add_message("[bold]x", "[red]hi")
        out = io.StringIO()
        pprint_messages(store.get_branch("main").messages, file=out)
        text = out.getvalue()
        assert "[bold]x" in text
        assert "[red]hi" in text

    def test_edited_marker_shown(self, store):
        ids = populate(store, ["a"])
        store.edit_message(ids[0], "b", create_branch=False)
        out = io.StringIO()
        pprint_messages(store.get_branch("main").messages, file=out)
        assert "[edited]" in out.getvalue()
