"""BranchStore -- the public SDK entry point for chatbranch.

Owns a tree of named conversation branches and exposes create / fork /
switch / delete, message add and edit, merge, compare, visualize,
checkpoints and export/import.  Users interact with ``BranchStore.open()``
or construct a purely in-memory store with ``BranchStore()``.

Not thread-safe.  A store assumes a single logical writer; hosts that share
one store between callers must serialize access themselves.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable

from chatbranch import codec
from chatbranch.engine.tokens import counter_for_config
from chatbranch.events import (
    BranchCreated,
    BranchDeleted,
    BranchEvent,
    BranchMerged,
    BranchSwitched,
    CheckpointRestored,
    EventBus,
)
from chatbranch.exceptions import (
    BranchError,
    BranchLimitError,
    BranchNotFoundError,
    CheckpointNotFoundError,
    CorruptSnapshotError,
    DuplicateBranchError,
    MessageNotFoundError,
    ProtectedBranchError,
)
from chatbranch.models.branch import (
    Branch,
    BranchInfo,
    BranchMetadata,
    BranchStats,
    MergeRecord,
    Message,
)
from chatbranch.models.config import BranchStoreConfig, MergeStrategy
from chatbranch.models.merge import BranchComparison, BranchTreeNode, MergeResult
from chatbranch.models.state import Checkpoint, HistoryEntry, StoreMetadata, StoreState
from chatbranch.operations.branch import (
    ancestry,
    check_deletable,
    copy_prefix,
    get_child_branches,
    validate_branch_name,
)
from chatbranch.operations.diff import build_tree, compare_branches
from chatbranch.operations.merge import (
    find_common_ancestor,
    merge_messages,
    resolve_strategy,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from chatbranch.persistence import Autosaver
    from chatbranch.protocols import BranchListener, TokenCounter

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BranchStore:
    """A tree of conversation branches rooted at a protected root branch.

    Example::

        with BranchStore.open() as store:
            store.add_message("user", "Hi")
            store.fork("alt")
            store.add_message("user", "Hello instead")
            print(store.compare_branches("main", "alt").divergence_point)
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        *,
        config: BranchStoreConfig | None = None,
        tokenizer: TokenCounter | None = None,
        autosaver: Autosaver | None = None,
        state: StoreState | None = None,
        checkpoints: dict[str, Checkpoint] | None = None,
        clock: Callable[[], datetime] | None = None,
        engine: Engine | None = None,
        session: Session | None = None,
    ) -> None:
        self._config = config or BranchStoreConfig()
        self._token_counter = tokenizer or counter_for_config(self._config)
        self._autosaver = autosaver
        self._clock = clock or _utcnow
        self._engine = engine
        self._session = session
        self._events = EventBus()
        self._checkpoints: dict[str, Checkpoint] = dict(checkpoints or {})
        self._batch_depth = 0
        self._save_pending = False
        self._closed = False

        if state is not None:
            self._validate_state(state)
            self._state = state.model_copy(deep=True)
            self._recount(self._state.branches.values())
        else:
            now = self._now()
            self._state = StoreState(
                current_branch=self._config.root_branch,
                metadata=StoreMetadata(
                    created=now, last_modified=now, author=self._config.author
                ),
            )
            self._create_root()

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        store_key: str = "default",
        url: str | None = None,
        config: BranchStoreConfig | None = None,
        tokenizer: TokenCounter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> BranchStore:
        """Open (or create) a persisted branch store.

        Args:
            path: SQLite path.  ``":memory:"`` for in-memory (default).
            store_key: Which store to open inside the database.
            url: Full SQLAlchemy URL; overrides *path*.
            config: Store configuration.  Defaults created if *None*.
            tokenizer: Pluggable token counter.
            clock: Timestamp source, mainly for tests.

        Returns:
            A ready-to-use ``BranchStore``, loaded from storage when a
            snapshot for *store_key* exists.
        """
        from chatbranch.persistence import Autosaver
        from chatbranch.storage.engine import (
            create_session_factory,
            create_store_engine,
            init_db,
        )
        from chatbranch.storage.sqlite import (
            SqliteCheckpointRepository,
            SqliteSnapshotRepository,
        )

        config = config or BranchStoreConfig()

        engine = create_store_engine(path, url=url)
        init_db(engine)
        session = create_session_factory(engine)()

        autosaver = Autosaver(
            store_key=store_key,
            snapshot_repo=SqliteSnapshotRepository(session),
            checkpoint_repo=SqliteCheckpointRepository(session),
            session=session,
            max_attempts=config.save_retries,
            retry_wait=config.save_retry_wait,
        )

        try:
            state = autosaver.load()
            checkpoints = autosaver.load_checkpoints()
            store = cls(
                config=config,
                tokenizer=tokenizer,
                autosaver=autosaver,
                state=state,
                checkpoints=checkpoints,
                clock=clock,
                engine=engine,
                session=session,
            )
        except Exception:
            session.close()
            engine.dispose()
            raise
        if state is None:
            logger.debug("Initialized new store '%s'", store_key)
        else:
            logger.debug(
                "Loaded store '%s' with %d branches", store_key, len(state.branches)
            )
        return store

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> BranchStoreConfig:
        return self._config

    @property
    def root_branch(self) -> str:
        """Name of the root branch."""
        return self._config.root_branch

    @property
    def current_branch(self) -> str:
        """Name of the branch new messages are added to."""
        return self._state.current_branch

    @property
    def metadata(self) -> StoreMetadata:
        return self._state.metadata.model_copy()

    @property
    def history(self) -> list[HistoryEntry]:
        """Audit trail of store actions, oldest first."""
        return [entry.model_copy(deep=True) for entry in self._state.history]

    @property
    def branches(self) -> list[Branch]:
        return [b.model_copy(deep=True) for b in self._state.branches.values()]

    @property
    def branch_names(self) -> list[str]:
        return list(self._state.branches)

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def dirty(self) -> bool:
        """True when a save failed and there are unsaved changes."""
        return self._autosaver is not None and self._autosaver.dirty

    def __len__(self) -> int:
        return len(self._state.branches)

    def __contains__(self, name: object) -> bool:
        return name in self._state.branches

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        return self._clock()

    def _new_id(self) -> str:
        return uuid.uuid4().hex

    def _require(self, name: str) -> Branch:
        branch = self._state.branches.get(name)
        if branch is None:
            raise BranchNotFoundError(name)
        return branch

    def _count_tokens(self, messages: Iterable[Message]) -> int:
        return sum(self._token_counter.count_text(m.content) for m in messages)

    def _refresh_stats(self, branch: Branch, now: datetime) -> None:
        branch.stats.message_count = len(branch.messages)
        branch.stats.token_count = self._count_tokens(branch.messages)
        branch.stats.last_activity = now

    def _recount(self, branches: Iterable[Branch]) -> None:
        """Recompute counts of loaded branches with this store's tokenizer."""
        for branch in branches:
            branch.stats.message_count = len(branch.messages)
            branch.stats.token_count = self._count_tokens(branch.messages)

    def _record(self, action: str, now: datetime, **details: str) -> None:
        history = self._state.history
        history.append(HistoryEntry(action=action, timestamp=now, details=details))
        if len(history) > self._config.history_limit:
            keep = self._config.history_trim_to
            self._state.history = history[len(history) - keep:]

    def _touch(self, now: datetime) -> None:
        self._state.metadata.last_modified = now

    def _mutated(self) -> None:
        """Autosave after a mutation, or defer it inside batch()."""
        if self._autosaver is None or not self._config.autosave:
            return
        if self._batch_depth > 0:
            self._save_pending = True
            return
        self._autosaver.autosave(self._state)

    def _create_root(self) -> None:
        name = self._config.root_branch
        validate_branch_name(name)
        now = self._now()
        branch = Branch(
            id=self._new_id(),
            name=name,
            parent=None,
            author=self._config.author,
            created_at=now,
            modified_at=now,
            metadata=BranchMetadata(
                description="Main conversation thread", protected=True
            ),
            stats=BranchStats(last_activity=now),
        )
        self._state.branches[name] = branch
        self._state.current_branch = name
        self._record("create_branch", now, branch=name)
        self._mutated()

    def _validate_state(self, state: StoreState) -> None:
        """Reject state that would break the store invariants."""
        root = self._config.root_branch
        roots = [name for name, b in state.branches.items() if b.parent is None]
        if roots != [root]:
            raise CorruptSnapshotError(
                f"Expected exactly one root branch named '{root}', found {roots}"
            )
        if not state.branches[root].metadata.protected:
            raise CorruptSnapshotError(f"Root branch '{root}' must be protected")
        for name in state.branches:
            try:
                ancestry(state.branches, name)
            except BranchNotFoundError as exc:
                raise CorruptSnapshotError(
                    f"Branch '{name}' has a dangling parent '{exc.branch_name}'"
                ) from exc
            except ValueError as exc:
                raise CorruptSnapshotError(str(exc)) from exc
        if state.current_branch not in state.branches:
            raise CorruptSnapshotError(
                f"Current branch '{state.current_branch}' does not exist"
            )
        if len(state.branches) > self._config.max_branches:
            raise BranchLimitError(self._config.max_branches)

    # ------------------------------------------------------------------
    # Batching and persistence
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Defer autosave until the outermost ``with`` block exits.

        Example::

            with store.batch():
                for text in texts:
                    store.add_message("user", text)
        """
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._save_pending:
                self._save_pending = False
                self._mutated()

    def flush(self) -> None:
        """Save the current state now.

        Raises:
            PersistenceError: If the store has storage and saving fails.
        """
        if self._autosaver is not None:
            self._autosaver.save(self._state)

    def snapshot(self) -> StoreState:
        """Deep copy of the full live state."""
        return self._state.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(
        self, event_type: type[BranchEvent], listener: BranchListener
    ) -> Callable[[], None]:
        """Register a listener.  Returns a callable that unsubscribes it."""
        return self._events.subscribe(event_type, listener)

    def unsubscribe(self, event_type: type[BranchEvent], listener: BranchListener) -> None:
        self._events.unsubscribe(event_type, listener)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_branch(self, name: str) -> Branch | None:
        """Get a copy of a branch, or None if it does not exist."""
        branch = self._state.branches.get(name)
        return branch.model_copy(deep=True) if branch is not None else None

    def get_current_branch(self) -> Branch:
        return self._require(self._state.current_branch).model_copy(deep=True)

    def get_child_branches(self, name: str) -> list[str]:
        """Names of branches created directly from ``name``."""
        return get_child_branches(self._state.branches, name)

    def list_branches(self) -> list[BranchInfo]:
        """List all branches with current branch indicator."""
        current = self._state.current_branch
        return [
            BranchInfo(
                name=b.name,
                parent=b.parent,
                message_count=b.stats.message_count,
                is_current=(b.name == current),
                protected=b.metadata.protected,
                description=b.metadata.description,
            )
            for b in self._state.branches.values()
        ]

    def find_common_ancestor(self, branch_a: str, branch_b: str) -> int:
        """Last index where both branches share message ids (-1 if none)."""
        a = self._require(branch_a)
        b = self._require(branch_b)
        return find_common_ancestor(a.messages, b.messages)

    # ------------------------------------------------------------------
    # Branch operations
    # ------------------------------------------------------------------

    def create_branch(
        self,
        name: str,
        from_index: int | None = None,
        *,
        parent: str | None = None,
        description: str = "",
        tags: Iterable[str] = (),
        protected: bool = False,
        experimental: bool = False,
    ) -> Branch:
        """Create a new branch.

        Args:
            name: Branch name (git-style naming rules apply).
            from_index: If given, the new branch starts with copies of the
                parent's messages ``[0 .. from_index]`` inclusive.  Otherwise
                it starts empty.
            parent: Parent branch.  Defaults to the current branch.
            description: Free-form description.
            tags: Labels stored in the branch metadata.
            protected: Protected branches cannot be deleted or merged into
                without ``force``.
            experimental: Informational flag.

        Returns:
            A copy of the new branch.

        Raises:
            InvalidBranchNameError: If the name is invalid.
            DuplicateBranchError: If the name is taken.
            BranchLimitError: If the store is at ``max_branches``.
            BranchNotFoundError: If the parent does not exist.
        """
        validate_branch_name(name)
        if name in self._state.branches:
            raise DuplicateBranchError(name)
        if len(self._state.branches) >= self._config.max_branches:
            raise BranchLimitError(self._config.max_branches)

        parent_name = parent if parent is not None else self._state.current_branch
        parent_branch = self._require(parent_name)

        now = self._now()
        messages = (
            copy_prefix(parent_branch.messages, from_index)
            if from_index is not None
            else []
        )
        branch = Branch(
            id=self._new_id(),
            name=name,
            parent=parent_name,
            author=self._config.author,
            messages=messages,
            created_at=now,
            modified_at=now,
            metadata=BranchMetadata(
                description=description,
                tags=list(tags),
                protected=protected,
                experimental=experimental,
            ),
            stats=BranchStats(last_activity=now),
        )
        self._refresh_stats(branch, now)

        self._state.branches[name] = branch
        self._record("create_branch", now, branch=name, parent=parent_name)
        self._touch(now)
        logger.debug("Created branch '%s' from '%s' (%d messages)", name, parent_name, len(messages))
        self._mutated()

        self._events.emit(BranchCreated(branch=branch.model_copy(deep=True)))
        return branch.model_copy(deep=True)

    def switch_branch(self, name: str) -> Branch:
        """Make ``name`` the current branch.

        Raises:
            BranchNotFoundError: If the branch does not exist.
        """
        branch = self._require(name)
        previous = self._state.current_branch
        now = self._now()

        self._state.current_branch = name
        branch.stats.last_activity = now
        self._record("switch_branch", now, **{"from": previous, "to": name})
        self._mutated()

        self._events.emit(BranchSwitched(name=name, previous=previous))
        return branch.model_copy(deep=True)

    def fork(
        self,
        name: str,
        *,
        from_message: int | None = None,
        switch_to: bool = True,
        description: str = "",
        tags: Iterable[str] = (),
        protected: bool = False,
        experimental: bool = False,
    ) -> Branch:
        """Branch off the current branch at ``from_message`` (inclusive).

        ``from_message`` defaults to the last message of the current branch.
        Switches to the new branch unless ``switch_to`` is False.
        """
        current_name = self._state.current_branch
        current = self._require(current_name)
        fork_point = from_message if from_message is not None else len(current.messages) - 1

        with self.batch():
            self.create_branch(
                name,
                fork_point,
                parent=current_name,
                description=description,
                tags=tags,
                protected=protected,
                experimental=experimental,
            )
            if switch_to:
                self.switch_branch(name)
        return self._require(name).model_copy(deep=True)

    def delete_branch(self, name: str) -> None:
        """Delete a branch.  Irreversible.

        Deleting the current branch switches to the root branch first.

        Raises:
            BranchNotFoundError: If the branch does not exist.
            ProtectedBranchError: If the branch is protected.
            BranchHasChildrenError: If other branches were created from it.
        """
        check_deletable(self._state.branches, name)

        with self.batch():
            if name == self._state.current_branch:
                self.switch_branch(self._config.root_branch)

            now = self._now()
            del self._state.branches[name]
            self._record("delete_branch", now, branch=name)
            self._touch(now)
            logger.debug("Deleted branch '%s'", name)
            self._mutated()

        self._events.emit(BranchDeleted(name=name))

    # ------------------------------------------------------------------
    # Message operations
    # ------------------------------------------------------------------

    def add_message(
        self,
        role: str,
        content: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message to the current branch and return a copy of it."""
        branch = self._require(self._state.current_branch)
        now = self._now()

        message = Message(
            id=self._new_id(),
            role=role,
            content=content,
            timestamp=now,
            branch=branch.name,
            index=len(branch.messages),
            metadata=dict(metadata or {}),
        )
        branch.messages.append(message)
        branch.modified_at = now
        branch.stats.message_count += 1
        branch.stats.token_count += self._token_counter.count_text(content)
        branch.stats.last_activity = now
        self._touch(now)
        self._mutated()
        return message.model_copy(deep=True)

    def edit_message(
        self,
        message_id: str,
        new_content: str,
        *,
        create_branch: bool = True,
        branch_name: str | None = None,
    ) -> Message:
        """Edit a message of the current branch.

        By default the edit is non-destructive: a branch named
        ``branch_name`` (or ``edit-<epoch-ms>``) is forked at the message,
        switched to, and edited there.  With ``create_branch=False`` the
        message is changed in place; ``original_content`` keeps the text
        from before the first edit.

        Raises:
            MessageNotFoundError: If the id is not on the current branch.
        """
        current = self._require(self._state.current_branch)
        index = current.find_message_index(message_id)
        if index == -1:
            raise MessageNotFoundError(message_id, current.name)

        with self.batch():
            if create_branch:
                name = branch_name or f"edit-{int(self._now().timestamp() * 1000)}"
                self.fork(
                    name,
                    from_message=index,
                    description=f"Edit of message {message_id}",
                    switch_to=True,
                )

            branch = self._require(self._state.current_branch)
            now = self._now()
            old = branch.messages[index]
            edited = old.model_copy(
                update={
                    "content": new_content,
                    "edited": True,
                    "edited_at": now,
                    "original_content": (
                        old.original_content
                        if old.original_content is not None
                        else old.content
                    ),
                },
                deep=True,
            )
            branch.messages[index] = edited
            branch.modified_at = now
            self._refresh_stats(branch, now)
            self._record("edit_message", now, branch=branch.name, message=message_id)
            self._touch(now)
            self._mutated()

        return edited.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def merge_branches(
        self,
        source: str,
        target: str,
        *,
        strategy: MergeStrategy | str = MergeStrategy.APPEND,
        force: bool = False,
        merge_point: int | None = None,
        delete_source: bool = False,
    ) -> MergeResult:
        """Merge ``source`` into ``target``.

        Args:
            source: Branch to take messages from.  Left untouched unless
                ``delete_source`` is set.
            target: Branch whose messages are replaced by the merge result.
            strategy: ``append``, ``interleave``, ``replace`` or ``smart``.
            force: Allow merging into a protected branch.
            merge_point: Cut index for ``replace``; defaults to the common
                ancestor index.
            delete_source: Delete ``source`` after merging.  Its delete
                preconditions are checked before anything changes.

        Returns:
            :class:`MergeResult` with the merged message list.

        Raises:
            UnknownMergeStrategyError: If the strategy is not recognised.
            BranchNotFoundError: If either branch does not exist.
            ProtectedBranchError: If ``target`` is protected and not forced.
            BranchHasChildrenError: If ``delete_source`` is set and
                ``source`` has children.
        """
        strat = resolve_strategy(strategy)
        src = self._require(source)
        tgt = self._require(target)

        if tgt.metadata.protected and not force:
            raise ProtectedBranchError(target, "merge into")
        if delete_source:
            if source == target:
                raise BranchError("Cannot delete the source of a merge into itself")
            check_deletable(self._state.branches, source)

        common_ancestor = find_common_ancestor(src.messages, tgt.messages)
        merged = merge_messages(
            tgt.messages,
            src.messages,
            strat,
            common_ancestor=common_ancestor,
            merge_point=merge_point,
        )

        with self.batch():
            now = self._now()
            tgt.messages = merged
            tgt.modified_at = now
            self._refresh_stats(tgt, now)
            tgt.metadata.merge_history.append(
                MergeRecord(
                    from_branch=source,
                    timestamp=now,
                    strategy=strat.value,
                    author=self._state.metadata.author,
                )
            )

            if delete_source:
                self.delete_branch(source)

            self._record(
                "merge_branches", now, source=source, target=target, strategy=strat.value
            )
            self._touch(now)
            logger.debug(
                "Merged '%s' into '%s' (%s, %d messages)",
                source, target, strat.value, len(merged),
            )
            self._mutated()

        messages = [m.model_copy(deep=True) for m in merged]
        self._events.emit(BranchMerged(source=source, target=target, messages=messages))
        return MergeResult(
            source_branch=source,
            target_branch=target,
            strategy=strat,
            common_ancestor=common_ancestor,
            messages=[m.model_copy(deep=True) for m in merged],
            source_deleted=delete_source,
        )

    # ------------------------------------------------------------------
    # Comparison and visualization
    # ------------------------------------------------------------------

    def compare_branches(self, branch_a: str, branch_b: str) -> BranchComparison:
        """Compare two branches.

        Raises:
            BranchNotFoundError: If either branch does not exist.
        """
        return compare_branches(self._require(branch_a), self._require(branch_b))

    def visualize_branches(self) -> BranchTreeNode:
        """Tree of branches rooted at the root branch."""
        return build_tree(self._state.branches, self._config.root_branch)

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------

    def create_checkpoint(self, name: str, description: str = "") -> Checkpoint:
        """Snapshot branches, current branch and metadata under ``name``.

        An existing checkpoint with the same name is replaced.  Checkpoints
        do not count toward ``max_branches``.
        """
        now = self._now()
        checkpoint = Checkpoint(
            id=self._new_id(),
            name=name,
            description=description,
            timestamp=now,
            branches={k: v.model_copy(deep=True) for k, v in self._state.branches.items()},
            current_branch=self._state.current_branch,
            metadata=self._state.metadata.model_copy(),
        )
        self._checkpoints[name] = checkpoint
        if self._autosaver is not None:
            self._autosaver.save_checkpoint(checkpoint)

        self._record("create_checkpoint", now, checkpoint=name)
        self._mutated()
        return checkpoint.model_copy(deep=True)

    def restore_checkpoint(self, name: str) -> Checkpoint:
        """Replace branches, current branch and metadata with a checkpoint.

        History is kept and gains a ``restore_checkpoint`` entry.  The
        checkpoint is validated against the current configuration first, so
        a checkpoint saved under a larger ``max_branches`` is refused.

        Raises:
            CheckpointNotFoundError: If no checkpoint has that name.
            BranchLimitError: If the checkpoint holds more than
                ``max_branches`` branches.
            CorruptSnapshotError: If the checkpoint would break store
                invariants.
        """
        checkpoint = self._checkpoints.get(name)
        if checkpoint is None:
            raise CheckpointNotFoundError(name)

        candidate = StoreState(
            branches={k: v.model_copy(deep=True) for k, v in checkpoint.branches.items()},
            current_branch=checkpoint.current_branch,
            metadata=checkpoint.metadata.model_copy(),
        )
        self._validate_state(candidate)
        self._recount(candidate.branches.values())

        now = self._now()
        self._state.branches = candidate.branches
        self._state.current_branch = candidate.current_branch
        self._state.metadata = candidate.metadata
        self._record("restore_checkpoint", now, checkpoint=name)
        logger.debug("Restored checkpoint '%s'", name)
        self._mutated()

        self._events.emit(CheckpointRestored(name=name))
        return checkpoint.model_copy(deep=True)

    def list_checkpoints(self) -> list[Checkpoint]:
        """All checkpoints, oldest first."""
        return [
            cp.model_copy(deep=True)
            for cp in sorted(self._checkpoints.values(), key=lambda c: c.timestamp)
        ]

    def delete_checkpoint(self, name: str) -> None:
        """Delete a checkpoint.

        Raises:
            CheckpointNotFoundError: If no checkpoint has that name.
        """
        if name not in self._checkpoints:
            raise CheckpointNotFoundError(name)
        del self._checkpoints[name]
        if self._autosaver is not None:
            self._autosaver.delete_checkpoint(name)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_branches(self) -> dict[str, Any]:
        """Versioned, JSON-compatible envelope of the whole store state."""
        return codec.encode_state(self._state, exported=self._now())

    def import_branches(self, data: dict[str, Any]) -> None:
        """Replace the store state with an exported envelope.

        The envelope is fully decoded and validated before anything changes.
        Message and token counts are recomputed rather than trusted.

        Raises:
            VersionMismatchError: If ``data["version"]`` is not ``"1.0"``.
            CorruptSnapshotError: If the data would break store invariants.
            BranchLimitError: If it holds more than ``max_branches`` branches.
            pydantic.ValidationError: If a record is malformed, including
                timestamps without a UTC offset.
        """
        state = codec.decode_state(data)
        self._validate_state(state)
        self._recount(state.branches.values())
        self._state = state
        logger.debug("Imported %d branches", len(state.branches))
        self._mutated()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Retry any failed autosave, then close the session and engine."""
        if self._closed:
            return
        self._closed = True
        if self._autosaver is not None and self._autosaver.dirty:
            self._autosaver.autosave(self._state)
        if self._session is not None:
            self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> BranchStore:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._closed:
            return "BranchStore(closed=True)"
        return (
            f"BranchStore(current='{self._state.current_branch}', "
            f"branches={len(self._state.branches)})"
        )
