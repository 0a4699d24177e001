"""Whole-store state models for chatbranch.

StoreState is what gets persisted and exported. Checkpoint is a named,
deep-copied snapshot of the branch map, current pointer and metadata.
"""

from __future__ import annotations

from pydantic import AwareDatetime, BaseModel, Field

from chatbranch.models.branch import Branch


class StoreMetadata(BaseModel):
    """Store-level bookkeeping."""

    created: AwareDatetime
    last_modified: AwareDatetime
    author: str = "anonymous"


class HistoryEntry(BaseModel):
    """An audit record of one store action."""

    action: str
    timestamp: AwareDatetime
    details: dict[str, str] = Field(default_factory=dict)

    def __str__(self) -> str:
        parts = " ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.action} {parts}".rstrip()


class StoreState(BaseModel):
    """Everything a BranchStore owns apart from its checkpoints."""

    branches: dict[str, Branch] = Field(default_factory=dict)
    current_branch: str
    metadata: StoreMetadata
    history: list[HistoryEntry] = Field(default_factory=list)


class Checkpoint(BaseModel):
    """Full snapshot of the branch map, restorable as an atomic rollback."""

    id: str
    name: str
    description: str = ""
    timestamp: AwareDatetime
    branches: dict[str, Branch]
    current_branch: str
    metadata: StoreMetadata

    def __repr__(self) -> str:
        return f"Checkpoint({self.name!r} branches={len(self.branches)})"
