"""Availability probe for a storage medium."""

from __future__ import annotations

import logging

from .backends import QuotaExceededError, StorageError, StoragePort
from .config import PROBE_KEY

logger = logging.getLogger(__name__)


def is_storage_available(storage: StoragePort) -> bool:
    """Write then remove a sentinel key; True if the medium accepts both.

    A full medium still counts as available: the caller's own write will
    report the quota failure.
    """
    # Probed on every call, not cached: a medium can go away between operations.
    try:
        storage.set_item(PROBE_KEY, PROBE_KEY)
        storage.remove_item(PROBE_KEY)
    except QuotaExceededError:
        return True
    except StorageError:
        logger.debug("Probe failed on %r", storage, exc_info=True)
        return False
    return True
