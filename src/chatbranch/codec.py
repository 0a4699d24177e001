"""Versioned serialize/deserialize for branch store state.

The on-disk and export shape is a plain JSON-compatible envelope::

    {
        "version": "1.0",
        "exported": "<iso-8601>",
        "branches": [[name, branch_record], ...],
        "current_branch": "main",
        "metadata": {...},
        "history": [...]
    }

The branch map is flattened to ``[name, record]`` pairs so insertion order
survives any JSON store. Only FORMAT_VERSION is accepted on decode. The
camelCase key ``currentBranch`` is also read, for envelopes written by
JavaScript clients.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from chatbranch.exceptions import CorruptSnapshotError, VersionMismatchError
from chatbranch.models.branch import Branch
from chatbranch.models.state import HistoryEntry, StoreMetadata, StoreState

FORMAT_VERSION = "1.0"


def encode_state(state: StoreState, *, exported: datetime | None = None) -> dict[str, Any]:
    """Flatten a StoreState into a JSON-compatible envelope."""
    exported = exported or datetime.now(timezone.utc)
    return {
        "version": FORMAT_VERSION,
        "exported": exported.isoformat(),
        "branches": [
            [name, branch.model_dump(mode="json")]
            for name, branch in state.branches.items()
        ],
        "current_branch": state.current_branch,
        "metadata": state.metadata.model_dump(mode="json"),
        "history": [entry.model_dump(mode="json") for entry in state.history],
    }


def decode_state(data: dict[str, Any]) -> StoreState:
    """Rebuild a StoreState from an envelope produced by encode_state().

    Raises:
        VersionMismatchError: If ``data["version"]`` is not FORMAT_VERSION.
        CorruptSnapshotError: If the envelope is structurally unusable.
        pydantic.ValidationError: If a record fails model validation.
    """
    if not isinstance(data, dict):
        raise CorruptSnapshotError(f"Expected a mapping, got {type(data).__name__}")

    version = data.get("version")
    if version != FORMAT_VERSION:
        raise VersionMismatchError(version, FORMAT_VERSION)

    pairs = data.get("branches")
    if not isinstance(pairs, list):
        raise CorruptSnapshotError("'branches' must be a list of [name, branch] pairs")

    branches: dict[str, Branch] = {}
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise CorruptSnapshotError(f"Malformed branch entry: {pair!r}")
        name, record = pair
        branch = Branch.model_validate(record)
        if branch.name != name:
            raise CorruptSnapshotError(
                f"Branch key '{name}' does not match record name '{branch.name}'"
            )
        if name in branches:
            raise CorruptSnapshotError(f"Duplicate branch name: {name}")
        branches[name] = branch

    current = data.get("current_branch", data.get("currentBranch"))
    if not isinstance(current, str):
        raise CorruptSnapshotError("'current_branch' must be a branch name")

    return StoreState(
        branches=branches,
        current_branch=current,
        metadata=StoreMetadata.model_validate(data.get("metadata") or {}),
        history=[HistoryEntry.model_validate(h) for h in data.get("history") or []],
    )


def dumps(state: StoreState) -> str:
    """Serialize state to a JSON string."""
    return json.dumps(encode_state(state))


def loads(payload: str) -> StoreState:
    """Deserialize state from a JSON string."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise CorruptSnapshotError(f"Invalid JSON payload: {exc}") from exc
    return decode_state(data)
