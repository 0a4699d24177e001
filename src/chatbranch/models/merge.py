"""Merge, comparison and tree models for chatbranch."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from chatbranch.models.branch import Branch, BranchStats, Message
from chatbranch.models.config import MergeStrategy


class MergeResult(BaseModel):
    """Outcome of BranchStore.merge_branches()."""

    source_branch: str
    target_branch: str
    strategy: MergeStrategy
    common_ancestor: int  # -1 when the branches share no prefix
    messages: list[Message] = Field(default_factory=list)
    source_deleted: bool = False

    def __repr__(self) -> str:
        return (
            f"MergeResult({self.strategy.value} "
            f"{self.source_branch}->{self.target_branch} "
            f"messages={len(self.messages)})"
        )

    def __str__(self) -> str:
        return (
            f"{self.strategy.value} merge {self.source_branch}->{self.target_branch} "
            f"({len(self.messages)} messages)"
        )

    def pprint(self) -> None:
        """Pretty-print this merge result summary."""
        from chatbranch.formatting import pprint_merge_result

        pprint_merge_result(self)


class BranchSide(BaseModel):
    """One side of a branch comparison."""

    name: str
    unique_messages: list[Message] = Field(default_factory=list)
    total_messages: int = 0
    stats: BranchStats


class BranchComparison(BaseModel):
    """Result of BranchStore.compare_branches().

    ``similarity`` is the shared-prefix ratio ``divergence_point / max(len)``,
    not an edit-distance metric. Messages that differ after the first
    divergence do not change it.
    """

    divergence_point: int
    branch_a: BranchSide
    branch_b: BranchSide
    common_messages: int
    similarity: float

    def pprint(self) -> None:
        """Pretty-print this comparison."""
        from chatbranch.formatting import pprint_comparison

        pprint_comparison(self)


class BranchTreeNode(BaseModel):
    """A node of the rendered branch tree."""

    name: str
    branch: Optional[Branch] = None
    children: list[BranchTreeNode] = Field(default_factory=list)

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def pprint(self, current: str | None = None) -> None:
        """Pretty-print the tree."""
        from chatbranch.formatting import pprint_tree

        pprint_tree(self, current=current)


BranchTreeNode.model_rebuild()
