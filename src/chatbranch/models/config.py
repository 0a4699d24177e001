"""Configuration models for chatbranch.

BranchStoreConfig holds per-store settings.
MergeStrategy enumerates the supported merge strategies.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class MergeStrategy(str, enum.Enum):
    """How source messages are combined into the target branch."""

    APPEND = "append"
    INTERLEAVE = "interleave"
    REPLACE = "replace"
    SMART = "smart"

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class BranchStoreConfig(BaseModel):
    """Per-store configuration."""

    max_branches: int = Field(default=100, ge=1)
    autosave: bool = True
    author: str = "anonymous"
    root_branch: str = "main"
    history_limit: int = Field(default=1000, ge=1)
    history_trim_to: int = Field(default=500, ge=0)
    tokenizer_encoding: Optional[str] = None  # None = character-ratio estimate
    save_retries: int = Field(default=3, ge=1)
    save_retry_wait: float = Field(default=0.1, ge=0)  # seconds, exponential base

    @model_validator(mode="after")
    def _check_history_bounds(self) -> BranchStoreConfig:
        if self.history_trim_to > self.history_limit:
            raise ValueError("history_trim_to cannot exceed history_limit")
        return self
