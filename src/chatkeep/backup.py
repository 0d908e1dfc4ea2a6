"""Redundant snapshot of the archive, and replay of it into the primary slot."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from .backends import QuotaExceededError, StorageError, StoragePort
from .config import STORAGE_KEYS
from .models import BackupSnapshot, WriteResult
from .probe import is_storage_available
from .validation import is_valid_backup, normalize_archive, now_iso

logger = logging.getLogger(__name__)


class BackupManager:
    """Mirrors the archive key into a backup key on the same durable medium."""

    def __init__(
        self,
        storage: StoragePort,
        history_key: str = STORAGE_KEYS["CHAT_HISTORY"],
        backup_key: str = STORAGE_KEYS["BACKUP"],
    ):
        self.storage = storage
        self.history_key = history_key
        self.backup_key = backup_key

    def create_backup(self) -> WriteResult:
        """Snapshot the archive as currently stored.

        Reads the raw primary value rather than going through the archive
        store, so a backup never triggers a restore. A missing or unreadable
        primary leaves the existing backup untouched.
        """
        if not is_storage_available(self.storage):
            logger.warning("Durable storage unavailable, backup skipped")
            return WriteResult.failure("storage unavailable")

        try:
            raw = self.storage.get_item(self.history_key)
            if raw is None:
                return WriteResult.failure("no archive to back up")

            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                return WriteResult.failure("archive is not a list")

            snapshot = BackupSnapshot(history=normalize_archive(parsed), timestamp=now_iso())
            self.storage.set_item(self.backup_key, json.dumps(snapshot.model_dump()))
        except QuotaExceededError as e:
            logger.error("Error creating backup: %s", e)
            return WriteResult.failure(str(e), quota_exceeded=True)
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Error creating backup", exc_info=True)
            return WriteResult.failure(str(e))

        logger.debug("Backup written (%d conversations)", len(snapshot.history))
        return WriteResult.success()

    def read_snapshot(self) -> BackupSnapshot | None:
        """Return the stored snapshot if it passes validation."""
        if not is_storage_available(self.storage):
            return None

        try:
            raw = self.storage.get_item(self.backup_key)
            if not raw:
                return None
            parsed = json.loads(raw)
        except (StorageError, ValueError):
            logger.error("Error reading backup", exc_info=True)
            return None

        if not is_valid_backup(parsed):
            logger.warning("Backup has an invalid structure, ignoring it")
            return None
        return BackupSnapshot(
            history=normalize_archive(parsed["history"]),
            timestamp=parsed["timestamp"],
        )

    def restore_from_backup(self, save_archive: Callable[[Any], WriteResult]) -> bool:
        """Write the backed-up history back through ``save_archive``.

        Returns False, without writing anything, when no valid backup exists.
        """
        snapshot = self.read_snapshot()
        if snapshot is None:
            return False

        result = save_archive(snapshot.history)
        if result:
            logger.warning(
                "Archive restored from backup taken at %s (%d conversations)",
                snapshot.timestamp,
                len(snapshot.history),
            )
        return result.ok

    def clear(self):
        if not is_storage_available(self.storage):
            return
        try:
            self.storage.remove_item(self.backup_key)
        except StorageError:
            logger.error("Error clearing backup", exc_info=True)
