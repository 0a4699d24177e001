"""Branch tree operations for chatbranch.

Name validation, child lookup, prefix copying and delete checks.
Pure functions over the branch map; the BranchStore composes them into
higher-level actions.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Mapping

from chatbranch.exceptions import (
    BranchHasChildrenError,
    BranchNotFoundError,
    InvalidBranchNameError,
    ProtectedBranchError,
)

if TYPE_CHECKING:
    from chatbranch.models.branch import Branch, Message


# Characters forbidden in branch names (git-style)
_FORBIDDEN_CHARS = re.compile(r"[\s~^:?*\[\\]")


def validate_branch_name(name: str) -> None:
    """Validate a branch name against git-style naming rules.

    Raises InvalidBranchNameError on violation.
    """
    if not name:
        raise InvalidBranchNameError(name, "branch name cannot be empty")

    if ".." in name:
        raise InvalidBranchNameError(name, "branch name cannot contain '..'")

    if name.startswith("."):
        raise InvalidBranchNameError(name, "branch name cannot start with '.'")

    if name.endswith("."):
        raise InvalidBranchNameError(name, "branch name cannot end with '.'")

    if _FORBIDDEN_CHARS.search(name):
        raise InvalidBranchNameError(
            name, "branch name contains forbidden characters (whitespace, ~, ^, :, ?, *, [, \\)"
        )

    if name.startswith("/") or name.endswith("/") or "//" in name:
        raise InvalidBranchNameError(name, "branch name has invalid slash usage")


def get_child_branches(branches: Mapping[str, Branch], parent_name: str) -> list[str]:
    """Names of branches whose parent is ``parent_name``, in creation order."""
    return [name for name, branch in branches.items() if branch.parent == parent_name]


def copy_prefix(messages: list[Message], from_index: int) -> list[Message]:
    """Deep copies of ``messages[0 .. from_index]`` inclusive.

    ``-1`` (fork of an empty branch) yields an empty list. Indexes past the
    end copy everything.
    """
    stop = max(from_index + 1, 0)
    return [m.model_copy(deep=True) for m in messages[:stop]]


def check_deletable(branches: Mapping[str, Branch], name: str) -> None:
    """Raise unless ``name`` exists, is unprotected and has no children."""
    branch = branches.get(name)
    if branch is None:
        raise BranchNotFoundError(name)

    if branch.metadata.protected:
        raise ProtectedBranchError(name, "delete")

    children = get_child_branches(branches, name)
    if children:
        raise BranchHasChildrenError(name, children)


def ancestry(branches: Mapping[str, Branch], name: str) -> list[str]:
    """Follow parent pointers from ``name`` to the root.

    Returns the path ``[name, parent, ..., root]``. Raises BranchNotFoundError
    on a dangling parent and ValueError on a cycle.
    """
    path: list[str] = []
    seen: set[str] = set()
    current: str | None = name
    while current is not None:
        if current in seen:
            raise ValueError(f"Parent cycle detected at branch '{current}'")
        branch = branches.get(current)
        if branch is None:
            raise BranchNotFoundError(current)
        seen.add(current)
        path.append(current)
        current = branch.parent
    return path
