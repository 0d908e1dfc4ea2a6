"""Durable archive of completed conversations."""

from __future__ import annotations

import json
import logging
from typing import Any

from .backends import QuotaExceededError, StorageError, StoragePort
from .backup import BackupManager
from .config import STORAGE_KEYS
from .models import Conversation, WriteResult
from .probe import is_storage_available
from .validation import normalize_archive

logger = logging.getLogger(__name__)


class ArchiveStore:
    """List of archived conversations under one key of the durable medium.

    Every successful save is mirrored by the backup manager, and every failed
    read gets exactly one restore-and-retry from that mirror. Ids are not
    checked for uniqueness here; callers generate them.
    """

    def __init__(
        self,
        storage: StoragePort,
        backup: BackupManager | None = None,
        key: str = STORAGE_KEYS["CHAT_HISTORY"],
    ):
        self.storage = storage
        self.key = key
        self.backup = backup or BackupManager(storage, history_key=key)

    def save_archive(self, history: Any) -> WriteResult:
        if not is_storage_available(self.storage):
            logger.warning("Durable storage is not available")
            return WriteResult.failure("storage unavailable")

        if not isinstance(history, (list, tuple)):
            logger.error("Error saving chat history: history must be a list")
            return WriteResult.failure("history must be a list")

        conversations = normalize_archive(history)
        try:
            payload = json.dumps([c.model_dump() for c in conversations])
            self.storage.set_item(self.key, payload)
        except QuotaExceededError as e:
            logger.error("Error saving chat history: %s", e)
            return WriteResult.failure(str(e), quota_exceeded=True)
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Error saving chat history", exc_info=True)
            return WriteResult.failure(str(e))

        logger.debug("Saved %d conversations", len(conversations))
        self.backup.create_backup()
        return WriteResult.success()

    def _read(self) -> list[Conversation] | None:
        """Stored archive, or None if it is missing or unreadable."""
        try:
            raw = self.storage.get_item(self.key)
            if raw is None:
                logger.debug("No chat history stored")
                return None
            parsed = json.loads(raw)
        except (StorageError, ValueError):
            logger.error("Error getting chat history", exc_info=True)
            return None

        if not isinstance(parsed, list):
            logger.error("Error getting chat history: invalid structure")
            return None
        return normalize_archive(parsed)

    def get_archive(self) -> list[Conversation]:
        if not is_storage_available(self.storage):
            return []

        history = self._read()
        if history is not None:
            return history

        if self.backup.restore_from_backup(self.save_archive):
            history = self._read()
            if history is not None:
                return history
        return []

    def clear_archive(self, include_backup: bool = False):
        """Remove the archive key. The backup survives unless asked otherwise,
        so the next read will restore from it."""
        if not is_storage_available(self.storage):
            return
        try:
            self.storage.remove_item(self.key)
        except StorageError:
            logger.error("Error clearing chat history", exc_info=True)
            return
        if include_backup:
            self.backup.clear()
