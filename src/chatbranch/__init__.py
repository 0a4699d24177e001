"""chatbranch: branch, merge and compare conversation threads.

A conversation is a tree of named branches. Fork at any message, edit
without losing the original, merge threads back together and roll the
whole tree back to a checkpoint.
"""

from chatbranch._version import __version__

# Core entry point
from chatbranch.store import BranchStore

# Models
from chatbranch.models.branch import (
    Branch,
    BranchInfo,
    BranchMetadata,
    BranchStats,
    MergeRecord,
    Message,
)
from chatbranch.models.config import BranchStoreConfig, MergeStrategy
from chatbranch.models.merge import (
    BranchComparison,
    BranchSide,
    BranchTreeNode,
    MergeResult,
)
from chatbranch.models.state import Checkpoint, HistoryEntry, StoreMetadata, StoreState

# Events
from chatbranch.events import (
    BranchCreated,
    BranchDeleted,
    BranchEvent,
    BranchMerged,
    BranchSwitched,
    CheckpointRestored,
    EventBus,
)

# Protocols and token counters
from chatbranch.protocols import BranchListener, TokenCounter
from chatbranch.engine.tokens import (
    CharRatioTokenCounter,
    NullTokenCounter,
    TiktokenCounter,
)

# Codec
from chatbranch.codec import FORMAT_VERSION, decode_state, encode_state

# Exceptions
from chatbranch.exceptions import (
    BranchError,
    DuplicateBranchError,
    BranchLimitError,
    BranchNotFoundError,
    InvalidBranchNameError,
    ProtectedBranchError,
    BranchHasChildrenError,
    MessageNotFoundError,
    CheckpointNotFoundError,
    UnknownMergeStrategyError,
    VersionMismatchError,
    CorruptSnapshotError,
    PersistenceError,
)

__all__ = [
    "__version__",
    "BranchStore",
    # Models
    "Branch",
    "BranchInfo",
    "BranchMetadata",
    "BranchStats",
    "MergeRecord",
    "Message",
    "BranchStoreConfig",
    "MergeStrategy",
    "BranchComparison",
    "BranchSide",
    "BranchTreeNode",
    "MergeResult",
    "Checkpoint",
    "HistoryEntry",
    "StoreMetadata",
    "StoreState",
    # Events
    "BranchEvent",
    "BranchCreated",
    "BranchSwitched",
    "BranchMerged",
    "BranchDeleted",
    "CheckpointRestored",
    "EventBus",
    # Protocols
    "BranchListener",
    "TokenCounter",
    "CharRatioTokenCounter",
    "NullTokenCounter",
    "TiktokenCounter",
    # Codec
    "FORMAT_VERSION",
    "encode_state",
    "decode_state",
    # Exceptions
    "BranchError",
    "DuplicateBranchError",
    "BranchLimitError",
    "BranchNotFoundError",
    "InvalidBranchNameError",
    "ProtectedBranchError",
    "BranchHasChildrenError",
    "MessageNotFoundError",
    "CheckpointNotFoundError",
    "UnknownMergeStrategyError",
    "VersionMismatchError",
    "CorruptSnapshotError",
    "PersistenceError",
]
