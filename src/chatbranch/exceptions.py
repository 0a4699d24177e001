"""chatbranch exception hierarchy.

All chatbranch-specific exceptions inherit from BranchError.
"""


class BranchError(Exception):
    """Base exception for all chatbranch errors."""


class DuplicateBranchError(BranchError):
    """Raised when trying to create a branch that already exists."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch already exists: {branch_name}")


class BranchLimitError(BranchError):
    """Raised when the store is already holding ``max_branches`` branches."""

    def __init__(self, max_branches: int) -> None:
        self.max_branches = max_branches
        super().__init__(f"Maximum number of branches ({max_branches}) reached")


class BranchNotFoundError(BranchError):
    """Raised when a branch lookup fails."""

    def __init__(self, branch_name: str) -> None:
        self.branch_name = branch_name
        super().__init__(f"Branch not found: {branch_name}")


class InvalidBranchNameError(BranchError):
    """Raised when a branch name violates naming rules."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid branch name '{name}': {reason}")


class ProtectedBranchError(BranchError):
    """Raised on delete of a protected branch, or an unforced merge into one."""

    def __init__(self, branch_name: str, action: str = "modify") -> None:
        self.branch_name = branch_name
        self.action = action
        super().__init__(f"Cannot {action} protected branch '{branch_name}'")


class BranchHasChildrenError(BranchError):
    """Raised when deleting a branch that other branches were created from."""

    def __init__(self, branch_name: str, children: list[str]) -> None:
        self.branch_name = branch_name
        self.children = children
        super().__init__(
            f"Cannot delete branch '{branch_name}' with child branches: "
            f"{', '.join(children)}"
        )


class MessageNotFoundError(BranchError):
    """Raised when a message id is not present on the current branch."""

    def __init__(self, message_id: str, branch_name: str) -> None:
        self.message_id = message_id
        self.branch_name = branch_name
        super().__init__(
            f"Message '{message_id}' not found in branch '{branch_name}'"
        )


class CheckpointNotFoundError(BranchError):
    """Raised when a checkpoint lookup fails."""

    def __init__(self, checkpoint_name: str) -> None:
        self.checkpoint_name = checkpoint_name
        super().__init__(f"Checkpoint not found: {checkpoint_name}")


class UnknownMergeStrategyError(BranchError):
    """Raised when a merge names a strategy that does not exist."""

    def __init__(self, strategy: str) -> None:
        self.strategy = strategy
        super().__init__(
            f"Unknown merge strategy '{strategy}'. "
            f"Expected one of: append, interleave, replace, smart"
        )


class VersionMismatchError(BranchError):
    """Raised when importing data written in an incompatible format version."""

    def __init__(self, found: object, expected: str) -> None:
        self.found = found
        self.expected = expected
        super().__init__(
            f"Incompatible branch data version: {found!r} (expected {expected!r})"
        )


class CorruptSnapshotError(BranchError):
    """Raised when imported or loaded state would break store invariants.

    A snapshot with no root, dangling parents, or a current branch that does
    not exist is rejected as a whole; the live store is left untouched.
    """


class PersistenceError(BranchError):
    """Raised when saving the store to its backing storage fails."""
