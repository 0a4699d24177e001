"""Abstract repository interfaces for chatbranch storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from chatbranch.storage.schema import CheckpointRow, StoreSnapshotRow


class SnapshotRepository(ABC):
    """Abstract interface for whole-store snapshot storage."""

    @abstractmethod
    def get(self, store_key: str) -> StoreSnapshotRow | None:
        """Get the snapshot for a store. Returns None if never saved."""
        ...

    @abstractmethod
    def save(self, snapshot: StoreSnapshotRow) -> None:
        """Insert or replace the snapshot for ``snapshot.store_key``."""
        ...

    @abstractmethod
    def delete(self, store_key: str) -> bool:
        """Delete a store's snapshot. Returns True if one existed."""
        ...

    @abstractmethod
    def list_keys(self) -> list[str]:
        """All store keys with a saved snapshot."""
        ...


class CheckpointRepository(ABC):
    """Abstract interface for checkpoint storage."""

    @abstractmethod
    def get(self, store_key: str, name: str) -> CheckpointRow | None:
        """Get one checkpoint. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, checkpoint: CheckpointRow) -> None:
        """Insert or replace a checkpoint."""
        ...

    @abstractmethod
    def list_for_store(self, store_key: str) -> Sequence[CheckpointRow]:
        """All checkpoints of a store, oldest first."""
        ...

    @abstractmethod
    def delete(self, store_key: str, name: str) -> bool:
        """Delete a checkpoint. Returns True if it existed."""
        ...
