"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor and only flushes;
committing is the caller's job.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from chatbranch.storage.repositories import CheckpointRepository, SnapshotRepository
from chatbranch.storage.schema import CheckpointRow, StoreSnapshotRow


class SqliteSnapshotRepository(SnapshotRepository):
    """SQLite implementation of snapshot repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, store_key: str) -> StoreSnapshotRow | None:
        stmt = select(StoreSnapshotRow).where(StoreSnapshotRow.store_key == store_key)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, snapshot: StoreSnapshotRow) -> None:
        existing = self.get(snapshot.store_key)
        if existing is None:
            self._session.add(snapshot)
        else:
            existing.format_version = snapshot.format_version
            existing.payload_json = snapshot.payload_json
            existing.saved_at = snapshot.saved_at
        self._session.flush()

    def delete(self, store_key: str) -> bool:
        existing = self.get(store_key)
        if existing is None:
            return False
        self._session.delete(existing)
        self._session.flush()
        return True

    def list_keys(self) -> list[str]:
        stmt = select(StoreSnapshotRow.store_key).order_by(StoreSnapshotRow.store_key)
        return list(self._session.execute(stmt).scalars().all())


class SqliteCheckpointRepository(CheckpointRepository):
    """SQLite implementation of checkpoint repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, store_key: str, name: str) -> CheckpointRow | None:
        stmt = select(CheckpointRow).where(
            CheckpointRow.store_key == store_key, CheckpointRow.name == name
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, checkpoint: CheckpointRow) -> None:
        existing = self.get(checkpoint.store_key, checkpoint.name)
        if existing is None:
            self._session.add(checkpoint)
        else:
            existing.payload_json = checkpoint.payload_json
            existing.created_at = checkpoint.created_at
        self._session.flush()

    def list_for_store(self, store_key: str) -> Sequence[CheckpointRow]:
        stmt = (
            select(CheckpointRow)
            .where(CheckpointRow.store_key == store_key)
            .order_by(CheckpointRow.created_at)
        )
        return list(self._session.execute(stmt).scalars().all())

    def delete(self, store_key: str, name: str) -> bool:
        existing = self.get(store_key, name)
        if existing is None:
            return False
        self._session.delete(existing)
        self._session.flush()
        return True
