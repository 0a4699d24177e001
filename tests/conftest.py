"""Shared test fixtures for chatbranch.

Provides a deterministic clock, in-memory stores, and SQLite engine,
session and repository fixtures.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from chatbranch import BranchStore, BranchStoreConfig
from chatbranch.storage.engine import create_store_engine, init_db
from chatbranch.storage.sqlite import SqliteCheckpointRepository, SqliteSnapshotRepository


class TickClock:
    """Clock that advances by ``step`` on every call."""

    def __init__(
        self,
        start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now


@pytest.fixture
def clock() -> TickClock:
    return TickClock()


@pytest.fixture
def store(clock: TickClock) -> BranchStore:
    """In-memory store (no persistence) with a deterministic clock."""
    return BranchStore(clock=clock)


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_store_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def snapshot_repo(session: Session) -> SqliteSnapshotRepository:
    return SqliteSnapshotRepository(session)


@pytest.fixture
def checkpoint_repo(session: Session) -> SqliteCheckpointRepository:
    return SqliteCheckpointRepository(session)


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def make_store(clock: TickClock | None = None, **config) -> BranchStore:
    """Create an in-memory store with the given config overrides."""
    return BranchStore(config=BranchStoreConfig(**config), clock=clock or TickClock())


def populate(store: BranchStore, texts: list[str], role: str = "user") -> list[str]:
    """Add messages to the current branch and return their ids."""
    return [store.add_message(role, text).id for text in texts]
