"""UI settings and the last-sent-message slot, both on the durable medium."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from .backends import StorageError, StoragePort
from .config import DEFAULT_SETTINGS, STORAGE_KEYS
from .models import LastMessage, Settings, WriteResult
from .probe import is_storage_available
from .validation import now_iso

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, storage: StoragePort, key: str = STORAGE_KEYS["SETTINGS"]):
        self.storage = storage
        self.key = key

    def get_settings(self) -> Settings:
        """Stored settings merged over the defaults; defaults on any problem."""
        if not is_storage_available(self.storage):
            return Settings()

        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return Settings()
            parsed = json.loads(raw)
        except (StorageError, ValueError):
            logger.error("Error getting settings", exc_info=True)
            return Settings()

        if not isinstance(parsed, dict) or not all(k in parsed for k in DEFAULT_SETTINGS):
            return Settings()
        try:
            return Settings.model_validate({**DEFAULT_SETTINGS, **parsed})
        except ValidationError:
            logger.warning("Stored settings are invalid, using defaults", exc_info=True)
            return Settings()

    def save_settings(self, settings: Any) -> WriteResult:
        if not is_storage_available(self.storage):
            return WriteResult.failure("storage unavailable")

        if isinstance(settings, BaseModel):
            settings = settings.model_dump(by_alias=True)
        if not isinstance(settings, dict):
            logger.error("Error saving settings: settings must be a mapping")
            return WriteResult.failure("settings must be a mapping")

        try:
            self.storage.set_item(self.key, json.dumps(settings))
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Error saving settings", exc_info=True)
            return WriteResult.failure(str(e))
        return WriteResult.success()

    def clear_settings(self):
        if not is_storage_available(self.storage):
            return
        try:
            self.storage.remove_item(self.key)
        except StorageError:
            logger.error("Error clearing settings", exc_info=True)


class LastMessageStore:
    def __init__(self, storage: StoragePort, key: str = STORAGE_KEYS["LAST_MESSAGE"]):
        self.storage = storage
        self.key = key

    def save_last_message(self, text: str) -> WriteResult:
        if not is_storage_available(self.storage):
            logger.warning("Durable storage is not available")
            return WriteResult.failure("storage unavailable")
        if not text:
            return WriteResult.failure("empty message")

        last = LastMessage(text=text, timestamp=now_iso())
        try:
            self.storage.set_item(self.key, json.dumps(last.model_dump()))
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Error saving last message", exc_info=True)
            return WriteResult.failure(str(e))
        return WriteResult.success()

    def get_last_message(self) -> LastMessage | None:
        if not is_storage_available(self.storage):
            return None

        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return None
            parsed = json.loads(raw)
        except (StorageError, ValueError):
            logger.error("Error getting last message", exc_info=True)
            return None

        if (
            isinstance(parsed, dict)
            and isinstance(parsed.get("text"), str)
            and isinstance(parsed.get("timestamp"), str)
            and parsed["timestamp"]
        ):
            return LastMessage(text=parsed["text"], timestamp=parsed["timestamp"])
        return None

    def clear_last_message(self):
        if not is_storage_available(self.storage):
            return
        try:
            self.storage.remove_item(self.key)
        except StorageError:
            logger.error("Error clearing last message", exc_info=True)
