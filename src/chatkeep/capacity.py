"""Utilization estimate for the durable medium."""

from __future__ import annotations

import logging

from .backends import StorageError, StoragePort
from .config import STORAGE_QUOTA
from .models import StorageStatus
from .probe import is_storage_available

logger = logging.getLogger(__name__)


def get_storage_status(storage: StoragePort, quota: int = STORAGE_QUOTA) -> StorageStatus | None:
    """Sum key and value lengths across the whole medium.

    Character count stands in for bytes. Returns None if the medium is
    unavailable. Nothing is pruned here; that is left to the caller.
    """
    if not is_storage_available(storage):
        return None

    try:
        total = 0
        for key in storage.keys():
            value = storage.get_item(key)
            total += len(key) + len(value or "")
    except StorageError:
        logger.error("Error getting storage status", exc_info=True)
        return None

    return StorageStatus(used=total, quota=quota, percentage=total / quota * 100)
