"""Persistence entry points for the chat UI, wired to a durable and a session medium."""

from __future__ import annotations

import logging
from pathlib import Path

from .archive import ArchiveStore
from .backends import MemoryStorage, SQLiteStorage, StoragePort
from .backup import BackupManager
from .capacity import get_storage_status
from .config import STORAGE_QUOTA
from .draft import DraftStore
from .models import StorageStatus
from .probe import is_storage_available
from .settings import LastMessageStore, SettingsStore

logger = logging.getLogger(__name__)


class StorageService:
    """Groups the stores that share the two media.

    Single writer only: the archive save and its follow-up backup are a
    read-modify-write on the durable medium with no locking.
    """

    def __init__(
        self,
        durable: StoragePort,
        session: StoragePort | None = None,
        quota: int = STORAGE_QUOTA,
    ):
        self.durable = durable
        self.session = session if session is not None else MemoryStorage()
        self.quota = quota

        self.backup = BackupManager(durable)
        self.archive = ArchiveStore(durable, backup=self.backup)
        self.drafts = DraftStore(self.session)
        self.settings = SettingsStore(durable)
        self.last_message = LastMessageStore(durable)

    @classmethod
    def open(cls, db_path: Path, quota: int = STORAGE_QUOTA) -> StorageService:
        """Service over a SQLite file with a fresh in-memory session medium."""
        return cls(SQLiteStorage(db_path, quota=quota), MemoryStorage(), quota=quota)

    def durable_available(self) -> bool:
        return is_storage_available(self.durable)

    def session_available(self) -> bool:
        return is_storage_available(self.session)

    def get_storage_status(self) -> StorageStatus | None:
        return get_storage_status(self.durable, quota=self.quota)

    def clear_all(self):
        """Drop the draft, the archive with its backup, and the settings."""
        self.drafts.clear_draft()
        self.archive.clear_archive(include_backup=True)
        self.settings.clear_settings()

    def close(self):
        close = getattr(self.durable, "close", None)
        if close is not None:
            close()
