"""FastMCP server exposing the conversation archive as tools."""

from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .config import DATA_DIR, DURABLE_PATH
from .service import StorageService
from .session import ChatSession

# Logging to stderr only — stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

mcp = FastMCP(
    "chatkeep",
    instructions=(
        "Browse the user's archived assistant conversations. "
        "Use list_conversations to browse by date or keyword. "
        "Use get_conversation to read a full transcript. "
        "Use get_storage_status to see how full the archive is."
    ),
)

# Singleton service — reused across tool calls
_service: StorageService | None = None


def _get_service() -> StorageService:
    global _service
    if _service is None:
        _service = StorageService.open(DURABLE_PATH)
    return _service


@mcp.tool()
def list_conversations(
    limit: int = 20,
    offset: int = 0,
    keyword: str | None = None,
) -> str:
    """Browse archived conversations, newest first.

    Args:
        limit: Maximum results (default 20)
        offset: Skip this many results (for pagination)
        keyword: Optional keyword to filter by (searches titles and messages)
    """
    conversations = _get_service().archive.get_archive()
    if keyword:
        needle = keyword.lower()
        conversations = [
            c for c in conversations
            if needle in c.title.lower() or any(needle in m.text.lower() for m in c.messages)
        ]
    page = conversations[offset : offset + limit]

    if not page:
        if keyword:
            return f"No conversations found matching '{keyword}'."
        return "No conversations found."

    lines = []
    if keyword:
        lines.append(f"Conversations matching '{keyword}':\n")
    else:
        lines.append(f"Conversations (showing {offset + 1}–{offset + len(page)}):\n")

    for i, c in enumerate(page, offset + 1):
        lines.append(f"{i}. **{c.title}** ({c.timestamp[:10]})")
        lines.append(f"   ID: `{c.id}` | {len(c.messages)} msgs")

    if offset + limit < len(conversations):
        lines.append(f"\nMore available — use offset={offset + limit} to see the next page.")

    return "\n".join(lines)


@mcp.tool()
def get_conversation(conversation_id: int) -> str:
    """Retrieve a full conversation transcript.

    Args:
        conversation_id: The numeric conversation id (from list_conversations)
    """
    conversations = _get_service().archive.get_archive()
    conv = next((c for c in conversations if c.id == conversation_id), None)
    if conv is None:
        return f"Conversation not found: {conversation_id}"

    lines = [
        f"# {conv.title}",
        f"Date: {conv.timestamp}",
        f"Messages: {len(conv.messages)}",
        "",
        "---",
        "",
    ]
    for msg in conv.messages:
        role = "**User**" if msg.sender == "user" else "**Assistant**"
        lines.append(f"{role}:")
        lines.append(msg.text)
        lines.append("")

    return "\n".join(lines)


@mcp.tool()
def delete_conversation(conversation_id: int) -> str:
    """Delete one conversation from the archive.

    Args:
        conversation_id: The numeric conversation id
    """
    session = ChatSession(_get_service())
    if not session.delete_chat(conversation_id):
        return f"Conversation not found or could not be deleted: {conversation_id}"
    return f"Deleted conversation {conversation_id}."


@mcp.tool()
def get_storage_status() -> str:
    """Report how much of the storage quota the archive and its backup use."""
    service = _get_service()
    report = service.get_storage_status()
    if report is None:
        return f"Storage is not available at {DURABLE_PATH}"

    snapshot = service.backup.read_snapshot()
    lines = [
        "# Storage status",
        "",
        f"- **Used**: {report.used:,} of {report.quota:,} chars",
        f"- **Utilization**: {report.percentage:.1f}%",
        f"- **Backup**: {snapshot.timestamp if snapshot else 'none'}",
        "",
        f"*Data stored in: {DATA_DIR}*",
    ]
    return "\n".join(lines)
