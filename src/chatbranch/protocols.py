"""Protocol definitions for chatbranch.

Defines the pluggable TokenCounter and BranchListener interfaces.
No SQLAlchemy imports allowed in this module -- pure domain protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatbranch.events import BranchEvent


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for pluggable token counting."""

    def count_text(self, text: str) -> int:
        """Count tokens in a plain text string."""
        ...


class BranchListener(Protocol):
    """Callable invoked with each emitted branch event."""

    def __call__(self, event: BranchEvent) -> None: ...
