"""Best-effort persistence of branch store state.

The Autosaver writes codec-encoded snapshots (and checkpoints) through the
repository interfaces, retrying transient storage failures with tenacity.
``autosave()`` never raises: a failure is logged and the store stays dirty
until the next successful save. ``save()`` raises PersistenceError so
callers that need durability can find out.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import tenacity
from sqlalchemy.exc import SQLAlchemyError

from chatbranch import codec
from chatbranch.exceptions import PersistenceError
from chatbranch.models.state import Checkpoint
from chatbranch.storage.schema import CheckpointRow, StoreSnapshotRow

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from chatbranch.models.state import StoreState
    from chatbranch.storage.repositories import CheckpointRepository, SnapshotRepository

logger = logging.getLogger(__name__)

_RETRYABLE = (SQLAlchemyError, OSError)


class Autosaver:
    """Writes store state to a SnapshotRepository, with retry."""

    def __init__(
        self,
        *,
        store_key: str,
        snapshot_repo: SnapshotRepository,
        checkpoint_repo: CheckpointRepository | None = None,
        session: Session | None = None,
        max_attempts: int = 3,
        retry_wait: float = 0.1,
    ) -> None:
        self._store_key = store_key
        self._snapshot_repo = snapshot_repo
        self._checkpoint_repo = checkpoint_repo
        self._session = session
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait
        self._dirty = False
        self._last_error: BaseException | None = None

    @property
    def store_key(self) -> str:
        return self._store_key

    @property
    def dirty(self) -> bool:
        """True when the last save attempt failed and state is unsaved."""
        return self._dirty

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _retrying(self) -> tenacity.Retrying:
        """Build a retryer. Programmatic so attempts are per-instance."""
        if self._retry_wait > 0:
            wait = tenacity.wait_exponential(multiplier=self._retry_wait, max=2)
        else:
            wait = tenacity.wait_none()
        return tenacity.Retrying(
            retry=tenacity.retry_if_exception_type(_RETRYABLE),
            wait=wait,
            stop=tenacity.stop_after_attempt(self._max_attempts),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _commit(self) -> None:
        if self._session is not None:
            self._session.commit()

    def _rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _write_snapshot(self, payload: str) -> None:
        try:
            self._snapshot_repo.save(
                StoreSnapshotRow(
                    store_key=self._store_key,
                    format_version=codec.FORMAT_VERSION,
                    payload_json=payload,
                    saved_at=datetime.now(timezone.utc),
                )
            )
            self._commit()
        except _RETRYABLE:
            self._rollback()
            raise

    def save(self, state: StoreState) -> None:
        """Persist ``state`` now.

        Raises:
            PersistenceError: If every attempt failed.
        """
        payload = codec.dumps(state)
        try:
            self._retrying()(self._write_snapshot, payload)
        except _RETRYABLE as exc:
            self._dirty = True
            self._last_error = exc
            raise PersistenceError(
                f"Failed to save store '{self._store_key}': {exc}"
            ) from exc
        self._dirty = False
        self._last_error = None
        logger.debug("Saved store '%s' (%d bytes)", self._store_key, len(payload))

    def autosave(self, state: StoreState) -> bool:
        """Best-effort save. Returns False (and logs) instead of raising."""
        try:
            self.save(state)
        except PersistenceError as exc:
            logger.warning("Autosave failed, in-memory state kept: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> StoreState | None:
        """Load the saved state for this store, or None if never saved."""
        row = self._snapshot_repo.get(self._store_key)
        if row is None:
            return None
        return codec.loads(row.payload_json)

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------

    def save_checkpoint(self, checkpoint: Checkpoint) -> bool:
        """Best-effort checkpoint write. Returns False (and logs) on failure."""
        if self._checkpoint_repo is None:
            return True
        repo = self._checkpoint_repo
        row = CheckpointRow(
            store_key=self._store_key,
            name=checkpoint.name,
            payload_json=checkpoint.model_dump_json(),
            created_at=checkpoint.timestamp,
        )

        def _write() -> None:
            try:
                repo.save(row)
                self._commit()
            except _RETRYABLE:
                self._rollback()
                raise

        try:
            self._retrying()(_write)
        except _RETRYABLE as exc:
            logger.warning("Failed to save checkpoint '%s': %s", checkpoint.name, exc)
            return False
        return True

    def load_checkpoints(self) -> dict[str, Checkpoint]:
        """All saved checkpoints of this store, keyed by name."""
        if self._checkpoint_repo is None:
            return {}
        checkpoints: dict[str, Checkpoint] = {}
        for row in self._checkpoint_repo.list_for_store(self._store_key):
            checkpoints[row.name] = Checkpoint.model_validate_json(row.payload_json)
        return checkpoints

    def delete_checkpoint(self, name: str) -> None:
        if self._checkpoint_repo is None:
            return
        try:
            self._checkpoint_repo.delete(self._store_key, name)
            self._commit()
        except _RETRYABLE as exc:
            self._rollback()
            logger.warning("Failed to delete checkpoint '%s': %s", name, exc)
