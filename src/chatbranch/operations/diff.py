"""Branch comparison and tree building for chatbranch.

compare_branches() finds where two branches part ways and reports each
side's unique tail. build_tree() turns parent pointers into a rooted tree.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from chatbranch.models.merge import BranchComparison, BranchSide, BranchTreeNode
from chatbranch.operations.branch import get_child_branches

if TYPE_CHECKING:
    from chatbranch.models.branch import Branch, Message


def find_divergence_point(messages_a: list[Message], messages_b: list[Message]) -> int:
    """First index where the id or the content differs.

    Content edits count as divergence even when the id is shared. Defaults
    to ``min(len)`` when one sequence is a prefix of the other.
    """
    shared = min(len(messages_a), len(messages_b))
    for i in range(shared):
        a, b = messages_a[i], messages_b[i]
        if a.id != b.id or a.content != b.content:
            return i
    return shared


def calculate_similarity(messages_a: list[Message], messages_b: list[Message]) -> float:
    """Shared-prefix ratio: ``divergence_point / max(len_a, len_b)``.

    Two empty branches are identical (1.0).
    """
    total = max(len(messages_a), len(messages_b))
    if total == 0:
        return 1.0
    return find_divergence_point(messages_a, messages_b) / total


def compare_branches(branch_a: Branch, branch_b: Branch) -> BranchComparison:
    """Structured comparison of two branches."""
    point = find_divergence_point(branch_a.messages, branch_b.messages)

    def _side(branch: Branch) -> BranchSide:
        return BranchSide(
            name=branch.name,
            unique_messages=[m.model_copy(deep=True) for m in branch.messages[point:]],
            total_messages=len(branch.messages),
            stats=branch.stats.model_copy(),
        )

    return BranchComparison(
        divergence_point=point,
        branch_a=_side(branch_a),
        branch_b=_side(branch_b),
        common_messages=point,
        similarity=calculate_similarity(branch_a.messages, branch_b.messages),
    )


def build_tree(branches: Mapping[str, Branch], root: str) -> BranchTreeNode:
    """Rooted tree following parent pointers down from ``root``.

    Iterative, and each branch is visited at most once, so it terminates
    even on a malformed parent graph.
    """
    root_node = BranchTreeNode(
        name=root,
        branch=branches[root].model_copy(deep=True) if root in branches else None,
    )
    visited = {root}
    stack = [root_node]
    while stack:
        node = stack.pop()
        for child_name in get_child_branches(branches, node.name):
            if child_name in visited:
                continue
            visited.add(child_name)
            child = BranchTreeNode(
                name=child_name,
                branch=branches[child_name].model_copy(deep=True),
            )
            node.children.append(child)
            stack.append(child)
    return root_node
