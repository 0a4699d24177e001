"""SQLAlchemy ORM schema for chatbranch.

Defines the persisted tables: store_snapshots, checkpoints, _chatbranch_meta.
Snapshot and checkpoint payloads are codec-encoded JSON documents; the
tables only key and timestamp them.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all chatbranch ORM models."""

    pass


class StoreSnapshotRow(Base):
    """Latest saved state of one branch store, keyed by store_key."""

    __tablename__ = "store_snapshots"

    store_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    format_version: Mapped[str] = mapped_column(String(16), nullable=False)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    saved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class CheckpointRow(Base):
    """A named checkpoint belonging to a store."""

    __tablename__ = "checkpoints"

    store_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_checkpoints_store_time", "store_key", "created_at"),
    )


class StoreMetaRow(Base):
    """Key-value metadata for the database itself (e.g., schema version)."""

    __tablename__ = "_chatbranch_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
