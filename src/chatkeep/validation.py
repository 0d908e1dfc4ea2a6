"""Coerce decoded JSON into canonical entities, repairing instead of rejecting."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from .config import SENDERS, UNTITLED_TITLE
from .models import Conversation, Message

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    """Current UTC time as ``2024-01-01T00:00:00.000Z``."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, dict):
        return value
    return {}


def valid_id(value: Any) -> int | None:
    """Positive integer id, or None if the value cannot be used as one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def parse_message(value: Any) -> Message | None:
    """Return a Message if ``value`` has a string text and a known sender."""
    data = _as_dict(value)
    text = data.get("text")
    sender = data.get("sender")
    if not isinstance(text, str) or sender not in SENDERS:
        return None
    return Message(text=text, sender=sender)


def normalize_messages(value: Any) -> list[Message]:
    """Keep the well-formed messages of a sequence; anything else becomes []."""
    if not isinstance(value, (list, tuple)):
        return []

    messages: list[Message] = []
    for item in value:
        msg = parse_message(item)
        if msg is None:
            logger.warning("Dropping malformed message: %r", item)
            continue
        messages.append(msg)
    return messages


def is_message_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(
        parse_message(item) is not None for item in value
    )


def normalize_conversation(value: Any) -> Conversation:
    """Fill in every missing or invalid field of a single conversation.

    Never raises. Applying it to its own output returns an equal value.
    """
    data = _as_dict(value)

    conv_id = valid_id(data.get("id"))
    title = data.get("title")
    timestamp = data.get("timestamp")

    return Conversation(
        id=conv_id if conv_id is not None else now_ms(),
        title=title if isinstance(title, str) and title else UNTITLED_TITLE,
        messages=normalize_messages(data.get("messages")),
        timestamp=timestamp if isinstance(timestamp, str) and timestamp else now_iso(),
    )


def normalize_archive(value: Any) -> list[Conversation]:
    """Normalize each entry independently. A non-sequence yields []."""
    if not isinstance(value, (list, tuple)):
        return []
    return [normalize_conversation(item) for item in value]


def is_valid_backup(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("history"), list)
        and isinstance(value.get("timestamp"), str)
    )
