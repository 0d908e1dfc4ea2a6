"""Data models for archived conversations, drafts and storage metadata."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    sender: Literal["user", "assistant"]


class Conversation(BaseModel):
    id: int
    title: str
    messages: list[Message] = []
    timestamp: str


class Draft(BaseModel):
    messages: list[Message] = []
    timestamp: str


class BackupSnapshot(BaseModel):
    history: list[Conversation] = []
    timestamp: str


class Settings(BaseModel):
    """UI preferences, persisted with the camelCase keys of the browser client."""

    model_config = ConfigDict(populate_by_name=True)

    theme: str = "light"
    font_size: str = Field(default="medium", alias="fontSize")
    auto_scroll: bool = Field(default=True, alias="autoScroll")


class LastMessage(BaseModel):
    text: str
    timestamp: str


class StorageStatus(BaseModel):
    used: int
    quota: int
    percentage: float


class WriteResult(BaseModel):
    """Outcome of a write. Truthy only on success.

    ``quota_exceeded`` lets callers apply their own pruning before retrying.
    """

    ok: bool
    error: str | None = None
    quota_exceeded: bool = False

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> WriteResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str, quota_exceeded: bool = False) -> WriteResult:
        return cls(ok=False, error=error, quota_exceeded=quota_exceeded)
