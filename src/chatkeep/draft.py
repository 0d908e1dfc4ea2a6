"""Single in-progress conversation in the session-scoped medium."""

from __future__ import annotations

import json
import logging
from typing import Any

from .backends import StorageError, StoragePort
from .config import STORAGE_KEYS
from .models import Draft, Message, WriteResult
from .probe import is_storage_available
from .validation import is_message_sequence, normalize_messages, now_iso

logger = logging.getLogger(__name__)


class DraftStore:
    """No backup and no repair: a corrupted draft is discarded."""

    def __init__(self, storage: StoragePort, key: str = STORAGE_KEYS["CURRENT_CHAT"]):
        self.storage = storage
        self.key = key

    def save_draft(self, messages: Any) -> WriteResult:
        if not is_storage_available(self.storage):
            logger.warning("Session storage is not available")
            return WriteResult.failure("storage unavailable")

        if not is_message_sequence(messages):
            logger.error("Error saving current chat: not a list of messages")
            return WriteResult.failure("messages must be a list of messages")
        if not messages:
            return WriteResult.failure("nothing to save")

        draft = Draft(messages=normalize_messages(messages), timestamp=now_iso())
        try:
            self.storage.set_item(self.key, json.dumps(draft.model_dump()))
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Error saving current chat", exc_info=True)
            return WriteResult.failure(str(e))
        return WriteResult.success()

    def get_draft(self) -> list[Message]:
        if not is_storage_available(self.storage):
            return []

        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return []
            parsed = json.loads(raw)
        except (StorageError, ValueError):
            logger.error("Error getting current chat", exc_info=True)
            return []

        messages = parsed.get("messages") if isinstance(parsed, dict) else None
        if not is_message_sequence(messages):
            logger.warning("Discarding malformed current chat")
            return []
        return normalize_messages(messages)

    def clear_draft(self):
        if not is_storage_available(self.storage):
            return
        try:
            self.storage.remove_item(self.key)
        except StorageError:
            logger.error("Error clearing current chat", exc_info=True)
