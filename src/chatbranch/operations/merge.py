"""Merge operations for chatbranch.

Implements the common-ancestor scan and the four merge strategies:
append, interleave, replace and smart. None of them re-validate ordering
afterwards; only interleave and smart produce timestamp-sorted output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatbranch.exceptions import UnknownMergeStrategyError
from chatbranch.models.config import MergeStrategy

if TYPE_CHECKING:
    from chatbranch.models.branch import Message


def resolve_strategy(strategy: MergeStrategy | str) -> MergeStrategy:
    """Coerce a strategy name to MergeStrategy."""
    if isinstance(strategy, MergeStrategy):
        return strategy
    try:
        return MergeStrategy(strategy)
    except ValueError:
        raise UnknownMergeStrategyError(str(strategy)) from None


def find_common_ancestor(messages_a: list[Message], messages_b: list[Message]) -> int:
    """Last index at which both sequences still hold the same message ids.

    Scans from index 0 until the first id mismatch. If one sequence is a
    prefix of the other, returns ``min(len) - 1``. Returns -1 when the
    sequences share nothing (or either is empty).
    """
    shared = min(len(messages_a), len(messages_b))
    for i in range(shared):
        if messages_a[i].id != messages_b[i].id:
            return i - 1
    return shared - 1


def interleave_messages(first: list[Message], second: list[Message]) -> list[Message]:
    """Concatenate and stable-sort by timestamp.

    Ties keep their input order, ``first`` ahead of ``second``.
    """
    return sorted([*first, *second], key=lambda m: m.timestamp)


def smart_merge(
    target: list[Message],
    source: list[Message],
    common_ancestor: int,
) -> list[Message]:
    """Keep the shared prefix (target's copy) and interleave what diverged.

    With ``common_ancestor < 0`` there is no shared prefix and both full
    sequences are interleaved.
    """
    merged: list[Message] = []
    for i in range(common_ancestor + 1):
        merged.append(target[i] if i < len(target) else source[i])

    start = max(common_ancestor + 1, 0)
    merged.extend(interleave_messages(target[start:], source[start:]))
    return merged


def merge_messages(
    target: list[Message],
    source: list[Message],
    strategy: MergeStrategy,
    *,
    common_ancestor: int,
    merge_point: int | None = None,
) -> list[Message]:
    """Combine ``source`` into ``target`` with the given strategy.

    Args:
        target: Messages of the branch being merged into.
        source: Messages of the branch being merged from.
        strategy: One of the MergeStrategy values.
        common_ancestor: Result of find_common_ancestor(source, target).
        merge_point: Cut index for ``replace``. Defaults to common_ancestor.
            An explicit 0 is honoured. Negative values are treated as 0
            rather than counted from the end of the list.

    Returns:
        New list of deep-copied messages. Inputs are not modified.
    """
    if strategy is MergeStrategy.APPEND:
        merged = [*target, *source]
    elif strategy is MergeStrategy.INTERLEAVE:
        merged = interleave_messages(target, source)
    elif strategy is MergeStrategy.REPLACE:
        point = common_ancestor if merge_point is None else merge_point
        point = max(point, 0)
        merged = [*target[:point], *source[point:]]
    elif strategy is MergeStrategy.SMART:
        merged = smart_merge(target, source, common_ancestor)
    else:
        raise UnknownMergeStrategyError(str(strategy))

    return [m.model_copy(deep=True) for m in merged]
