"""Chat flow on top of the stores: sending, promoting drafts, quota fallback."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .config import FALLBACK_REPLY, TITLE_LENGTH
from .models import Conversation, Message, WriteResult
from .service import StorageService
from .validation import now_iso, now_ms

logger = logging.getLogger(__name__)

# prompt -> reply text. Anything else, or an exception, counts as a failure.
Generator = Callable[[str], Any]


def derive_title(messages: list[Message]) -> str:
    return messages[0].text[:TITLE_LENGTH] + "..."


class ChatSession:
    """One UI instance: the current messages plus the loaded archive.

    The archive is kept newest first.
    """

    def __init__(self, service: StorageService, generate: Generator | None = None):
        self.service = service
        self.generate = generate
        self.messages: list[Message] = service.drafts.get_draft()
        self.history: list[Conversation] = service.archive.get_archive()

    def _reply(self, prompt: str) -> str:
        if self.generate is None:
            return FALLBACK_REPLY
        try:
            reply = self.generate(prompt)
        except Exception:
            logger.error("Generation failed", exc_info=True)
            return FALLBACK_REPLY
        if not isinstance(reply, str) or not reply:
            logger.error("Generation returned an unusable reply: %r", reply)
            return FALLBACK_REPLY
        return reply

    def send_message(self, text: str) -> Message:
        """Append the user's text and the assistant's reply; returns the reply."""
        self.messages.append(Message(text=text, sender="user"))
        self.service.drafts.save_draft(self.messages)
        self.service.last_message.save_last_message(text)

        reply = Message(text=self._reply(text), sender="assistant")
        self.messages.append(reply)
        self.service.drafts.save_draft(self.messages)
        return reply

    def _is_archived(self, messages: list[Message]) -> bool:
        texts = [m.text for m in messages]
        return any([m.text for m in conv.messages] == texts for conv in self.history)

    def _next_id(self) -> int:
        highest = max((conv.id for conv in self.history), default=0)
        return max(now_ms(), highest + 1)

    def save_history(self, history: list[Any]) -> WriteResult:
        """Save the archive; on quota exhaustion keep the newest half and retry once."""
        result = self.service.archive.save_archive(history)
        if not result and result.quota_exceeded:
            reduced = history[: len(history) // 2]
            logger.warning(
                "Storage full, dropping %d oldest conversations", len(history) - len(reduced)
            )
            result = self.service.archive.save_archive(reduced)
        if result:
            self.history = self.service.archive.get_archive()
        return result

    def new_chat(self) -> Conversation | None:
        """Promote the current messages into the archive and start over.

        Returns the archived conversation, or None if nothing was promoted
        or it did not fit in storage. The current messages are kept then.
        """
        promoted = None
        if self.messages and not self._is_archived(self.messages):
            promoted = Conversation(
                id=self._next_id(),
                title=derive_title(self.messages),
                messages=list(self.messages),
                timestamp=now_iso(),
            )
            if not self.save_history([promoted, *self.history]):
                logger.error("Could not archive the current chat")
                return None
            if all(conv.id != promoted.id for conv in self.history):
                logger.warning("Storage full, the current chat was not archived")
                return None

        self.messages = []
        self.service.drafts.clear_draft()
        return promoted

    def load_chat(self, chat_id: int) -> bool:
        for conv in self.history:
            if conv.id == chat_id:
                self.messages = list(conv.messages)
                self.service.drafts.save_draft(self.messages)
                return True
        return False

    def delete_chat(self, chat_id: int) -> bool:
        remaining = [conv for conv in self.history if conv.id != chat_id]
        if len(remaining) == len(self.history):
            return False
        return self.save_history(remaining).ok
