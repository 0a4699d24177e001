"""Branch domain models for chatbranch.

Branch is the stored record: an ordered list of Message records plus
metadata and derived stats. BranchInfo is the lightweight listing view.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AwareDatetime, BaseModel, Field


class Message(BaseModel):
    """A single message as stored inside a branch.

    ``id`` is unique across the whole store and is what merge and compare
    use for identity. Edits keep the id and record the prior content.
    """

    id: str
    role: str
    content: str
    timestamp: AwareDatetime
    branch: str  # branch the message was authored on
    index: int  # position at append time
    edited: bool = False
    edited_at: Optional[AwareDatetime] = None
    original_content: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Message({self.id[:8]} {self.role} #{self.index})"


class MergeRecord(BaseModel):
    """One entry in a branch's merge history."""

    from_branch: str
    timestamp: AwareDatetime
    strategy: str
    author: str


class BranchMetadata(BaseModel):
    """Descriptive flags attached to a branch."""

    description: str = ""
    tags: list[str] = Field(default_factory=list)
    protected: bool = False
    experimental: bool = False
    merge_history: list[MergeRecord] = Field(default_factory=list)


class BranchStats(BaseModel):
    """Derived counters. Kept consistent with ``Branch.messages``."""

    message_count: int = 0
    token_count: int = 0
    last_activity: AwareDatetime


class Branch(BaseModel):
    """A named, ordered sequence of messages descending from a parent branch."""

    id: str
    name: str
    parent: Optional[str] = None  # None only for the root branch
    author: str = "anonymous"
    messages: list[Message] = Field(default_factory=list)
    created_at: AwareDatetime
    modified_at: AwareDatetime
    metadata: BranchMetadata = Field(default_factory=BranchMetadata)
    stats: BranchStats

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def find_message_index(self, message_id: str) -> int:
        """Return the position of ``message_id``, or -1 when absent."""
        for i, message in enumerate(self.messages):
            if message.id == message_id:
                return i
        return -1

    def __repr__(self) -> str:
        return (
            f"Branch({self.name!r} parent={self.parent!r} "
            f"messages={len(self.messages)})"
        )


class BranchInfo(BaseModel):
    """Listing view of a branch.

    Returned by BranchStore.list_branches().
    """

    name: str
    parent: Optional[str] = None
    message_count: int = 0
    is_current: bool = False
    protected: bool = False
    description: str = ""
